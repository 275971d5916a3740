import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from ..models import EpisodeServer, Movie, WatchHistory
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)


def save_progress(
    db: Session,
    user_id: str,
    movie_id: str,
    episode_server_id: str,
    progress: float,
    duration_watched: Optional[float] = None,
) -> WatchHistory:
    """Upsert on (user, movie, server); duration_watched accumulates."""
    entry = (
        db.query(WatchHistory)
        .filter(
            WatchHistory.user_id == user_id,
            WatchHistory.movie_id == movie_id,
            WatchHistory.episode_server_id == episode_server_id,
        )
        .first()
    )
    if entry is None:
        entry = WatchHistory(
            user_id=user_id,
            movie_id=movie_id,
            episode_server_id=episode_server_id,
            duration_watched=0.0,
        )
        db.add(entry)

    entry.progress = progress
    if duration_watched:
        entry.duration_watched = (entry.duration_watched or 0.0) + duration_watched
    entry.watched_at = utcnow()
    db.commit()
    db.refresh(entry)
    return entry


def list_history(db: Session, user_id: str, page: int, limit: int) -> Tuple[List[WatchHistory], int]:
    query = db.query(WatchHistory).filter(WatchHistory.user_id == user_id)
    total = query.count()
    entries = (
        query.options(
            selectinload(WatchHistory.movie),
            selectinload(WatchHistory.episode_server).selectinload(EpisodeServer.episode),
        )
        .order_by(WatchHistory.watched_at.desc(), WatchHistory.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return entries, total


def episode_history(db: Session, user_id: str, episode_id: str) -> List[WatchHistory]:
    return (
        db.query(WatchHistory)
        .join(EpisodeServer, EpisodeServer.id == WatchHistory.episode_server_id)
        .options(selectinload(WatchHistory.episode_server))
        .filter(WatchHistory.user_id == user_id, EpisodeServer.episode_id == episode_id)
        .order_by(WatchHistory.watched_at.desc())
        .all()
    )


def serialize_entry(entry: WatchHistory) -> dict:
    movie: Movie = entry.movie
    server: EpisodeServer = entry.episode_server
    episode = server.episode if server is not None else None
    return {
        "id": entry.id,
        "progress": entry.progress,
        "duration_watched": entry.duration_watched,
        "watched_at": entry.watched_at,
        "movie": {
            "id": movie.id,
            "name": movie.name,
            "slug": movie.slug,
            "poster_url": movie.poster_url,
            "thumb_url": movie.thumb_url,
        } if movie is not None else None,
        "episode_server": {
            "id": server.id,
            "server_name": server.server_name,
            "episode": {
                "id": episode.id,
                "name": episode.name,
                "slug": episode.slug,
            } if episode is not None else None,
        } if server is not None else None,
    }
