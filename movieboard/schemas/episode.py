from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class EpisodeIn(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None


class EpisodeServerIn(BaseModel):
    server_name: Optional[str] = None
    filename: Optional[str] = None
    link_embed: Optional[str] = None
    link_m3u8: Optional[str] = None
    link_mp4: Optional[str] = None


class EpisodeServerOut(BaseModel):
    id: str
    server_name: str
    filename: Optional[str] = None
    link_embed: Optional[str] = None
    link_m3u8: Optional[str] = None
    link_mp4: Optional[str] = None
    episode_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EpisodeOut(BaseModel):
    id: str
    name: str
    slug: str
    movie_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    servers: List[EpisodeServerOut] = []

    class Config:
        from_attributes = True
