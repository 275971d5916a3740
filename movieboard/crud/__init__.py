from .taxonomy import genre, country, movie_type
from .movie import movie

__all__ = ["genre", "country", "movie_type", "movie"]
