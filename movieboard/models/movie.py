# movieboard/models/movie.py
"""
Movie model for the streaming catalog

Movies are created by hand in the dashboard or imported from KKPhim.
Deleting a movie removes its episodes, servers, interactions and watch history.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Float, ForeignKey, JSON, Table
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base, generate_id

# Association tables (many-to-many)
movie_genres = Table(
    'movie_genres',
    Base.metadata,
    Column('movie_id', String(36), ForeignKey('movies.id', ondelete="CASCADE"), primary_key=True),
    Column('genre_id', String(36), ForeignKey('genres.id', ondelete="CASCADE"), primary_key=True)
)

movie_countries = Table(
    'movie_countries',
    Base.metadata,
    Column('movie_id', String(36), ForeignKey('movies.id', ondelete="CASCADE"), primary_key=True),
    Column('country_id', String(36), ForeignKey('countries.id', ondelete="CASCADE"), primary_key=True)
)


class Movie(Base):
    __tablename__ = "movies"

    # ==================== PRIMARY KEY ====================
    id = Column(String(36), primary_key=True, default=generate_id)

    # ==================== BASIC INFO ====================
    name = Column(String(500), nullable=False, index=True)
    slug = Column(String(500), unique=True, nullable=False, index=True)
    origin_name = Column(String(500), nullable=True)
    content = Column(Text, nullable=True)
    type_id = Column(String(36), ForeignKey('movie_types.id'), nullable=True, index=True)

    # ==================== MEDIA URLS ====================
    poster_url = Column(String(1000), nullable=True)
    thumb_url = Column(String(1000), nullable=True)
    trailer_url = Column(String(1000), nullable=True)

    # ==================== MOVIE DETAILS ====================
    year = Column(Integer, nullable=True, index=True)
    time = Column(String(100), nullable=True)
    quality = Column(String(50), nullable=True)
    lang = Column(String(100), nullable=True)
    status = Column(String(50), nullable=True)
    episode_current = Column(String(100), nullable=True)
    episode_total = Column(String(100), nullable=True)
    notify = Column(String(500), nullable=True)
    showtimes = Column(String(500), nullable=True)
    sub_docquyen = Column(Boolean, default=False)
    is_copyright = Column(Boolean, default=False)
    chieurap = Column(Boolean, default=False)

    # ==================== PEOPLE ====================
    actor = Column(JSON, nullable=True)  # ["Actor 1", "Actor 2"]
    director = Column(JSON, nullable=True)

    # ==================== EXTERNAL IDS ====================
    tmdb_id = Column(String(50), nullable=True)
    tmdb_type = Column(String(50), nullable=True)
    tmdb_season = Column(Integer, nullable=True)
    vote_average = Column(Float, nullable=True)
    vote_count = Column(Integer, nullable=True)
    imdb_id = Column(String(50), nullable=True)

    # ==================== ENGAGEMENT ====================
    view = Column(Integer, default=0, nullable=False, index=True)
    rating = Column(Float, default=0.0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    dislike_count = Column(Integer, default=0, nullable=False)
    is_imported = Column(Boolean, default=False)

    # ==================== TIMESTAMPS ====================
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), index=True)

    # ==================== RELATIONSHIPS ====================
    type = relationship("MovieType", back_populates="movies")

    genres = relationship(
        "Genre",
        secondary=movie_genres,
        back_populates="movies"
    )

    countries = relationship(
        "Country",
        secondary=movie_countries,
        back_populates="movies"
    )

    episodes = relationship(
        "Episode",
        back_populates="movie",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Episode.created_at"
    )

    interactions = relationship(
        "UserInteraction",
        back_populates="movie",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    watch_history = relationship(
        "WatchHistory",
        back_populates="movie",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    def __repr__(self):
        return f"<Movie(id={self.id}, slug={self.slug})>"
