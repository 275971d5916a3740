from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from .taxonomy import TaxonomyRef
from .episode import EpisodeOut


class MovieBase(BaseModel):
    name: str
    slug: str
    origin_name: Optional[str] = None
    content: Optional[str] = None
    type_id: Optional[str] = None
    year: Optional[int] = None
    time: Optional[str] = None
    poster_url: Optional[str] = None
    thumb_url: Optional[str] = None
    trailer_url: Optional[str] = None
    quality: Optional[str] = None
    lang: Optional[str] = None
    status: Optional[str] = None
    episode_current: Optional[str] = None
    episode_total: Optional[str] = None
    sub_docquyen: bool = False
    is_copyright: bool = False
    chieurap: bool = False
    actor: List[str] = []
    director: List[str] = []


class MovieCreate(MovieBase):
    genre_ids: List[str] = []
    country_ids: List[str] = []


class MovieUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    origin_name: Optional[str] = None
    content: Optional[str] = None
    type_id: Optional[str] = None
    year: Optional[int] = None
    time: Optional[str] = None
    poster_url: Optional[str] = None
    thumb_url: Optional[str] = None
    trailer_url: Optional[str] = None
    quality: Optional[str] = None
    lang: Optional[str] = None
    status: Optional[str] = None
    episode_current: Optional[str] = None
    episode_total: Optional[str] = None
    sub_docquyen: Optional[bool] = None
    is_copyright: Optional[bool] = None
    chieurap: Optional[bool] = None
    actor: Optional[List[str]] = None
    director: Optional[List[str]] = None
    genre_ids: Optional[List[str]] = None
    country_ids: Optional[List[str]] = None


class MovieSummary(BaseModel):
    """Card-sized projection used by lists and recommendations"""
    id: str
    name: str
    slug: str
    origin_name: Optional[str] = None
    poster_url: Optional[str] = None
    thumb_url: Optional[str] = None
    year: Optional[int] = None
    quality: Optional[str] = None
    lang: Optional[str] = None
    episode_current: Optional[str] = None
    view: int = 0
    rating: float = 0.0
    type: Optional[TaxonomyRef] = None
    genres: List[TaxonomyRef] = []
    countries: List[TaxonomyRef] = []
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MovieOut(MovieSummary):
    content: Optional[str] = None
    type_id: Optional[str] = None
    time: Optional[str] = None
    trailer_url: Optional[str] = None
    status: Optional[str] = None
    episode_total: Optional[str] = None
    notify: Optional[str] = None
    showtimes: Optional[str] = None
    sub_docquyen: Optional[bool] = False
    is_copyright: Optional[bool] = False
    chieurap: Optional[bool] = False
    actor: Optional[List[str]] = None
    director: Optional[List[str]] = None
    tmdb_id: Optional[str] = None
    tmdb_type: Optional[str] = None
    tmdb_season: Optional[int] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    imdb_id: Optional[str] = None
    rating_count: int = 0
    like_count: int = 0
    dislike_count: int = 0
    is_imported: Optional[bool] = False
    created_at: Optional[datetime] = None


class MovieDetail(MovieOut):
    episodes: List[EpisodeOut] = []


# ==================== FILTERS ====================

SORTABLE_FIELDS = ("name", "year", "created_at", "updated_at", "view", "rating")


class MovieFilter(BaseModel):
    """Dashboard movie filter"""
    page: int = 1
    limit: int = 24
    type_id: Optional[str] = None
    genre_ids: List[str] = []
    country_id: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    name: Optional[str] = None
    sort_by: str = "updated_at"
    sort_direction: str = "desc"
    include_statistics: bool = False


class PublicMovieFilter(BaseModel):
    type_id: Optional[str] = None
    genre_ids: List[str] = []
    country_id: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    name: Optional[str] = None
    content_search: Optional[str] = None
    page: int = 1
    limit: int = 20


class BulkDeleteRequest(BaseModel):
    movie_ids: Optional[List[str]] = None


class CheckImportRequest(BaseModel):
    slugs: Optional[List[str]] = None
