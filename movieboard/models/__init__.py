from movieboard.database import Base
from movieboard.models.movie import Movie, movie_genres, movie_countries
from movieboard.models.genre import Genre
from movieboard.models.country import Country
from movieboard.models.movie_type import MovieType
from movieboard.models.episode import Episode, EpisodeServer
from movieboard.models.user import User, UserRole
from movieboard.models.user_interaction import UserInteraction, InteractionType
from movieboard.models.watch_history import WatchHistory

# This ensures all models are registered with Base.metadata
__all__ = [
    "Base", "Movie", "movie_genres", "movie_countries", "Genre", "Country",
    "MovieType", "Episode", "EpisodeServer", "User", "UserRole",
    "UserInteraction", "InteractionType", "WatchHistory",
]
