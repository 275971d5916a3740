"""Request bodies for end-user tracking endpoints (views, reactions, progress)"""
from pydantic import BaseModel
from typing import Optional


class ViewRequest(BaseModel):
    id_token: Optional[str] = None
    movie_id: Optional[str] = None


class InteractionRequest(BaseModel):
    id_token: Optional[str] = None
    movie_id: Optional[str] = None
    interaction_type: Optional[str] = None
    rating: Optional[float] = None


class WatchHistoryRequest(BaseModel):
    id_token: Optional[str] = None
    movie_id: Optional[str] = None
    episode_server_id: Optional[str] = None
    progress: Optional[float] = None
    duration_watched: Optional[float] = None


class EpisodeHistoryRequest(BaseModel):
    episode_id: Optional[str] = None
    id_token: Optional[str] = None


class RecentlyAddedRequest(BaseModel):
    limit: Optional[int] = None


class SimilarMoviesRequest(BaseModel):
    movie_id: Optional[str] = None
    limit: Optional[int] = None


class TrendingRequest(BaseModel):
    limit: Optional[int] = None


class TypeTrendingRequest(BaseModel):
    type_id: Optional[str] = None
    type_slug: Optional[str] = None
    limit: Optional[int] = None


class GenreTrendingRequest(BaseModel):
    genre_id: Optional[str] = None
    limit: Optional[int] = None


class RecentlyWatchedRequest(BaseModel):
    id_token: Optional[str] = None
    limit: Optional[int] = None


class RecentlyLikedRequest(BaseModel):
    user_id: Optional[str] = None
    limit: Optional[int] = None


class HybridForYouRequest(BaseModel):
    id_token: Optional[str] = None
    limit: Optional[int] = None
