# movieboard/api/v1/public/user_movie.py
"""Views, reactions, ratings and watch history from the apps"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ....database import get_db
from ....models import Episode, EpisodeServer, InteractionType, Movie, User
from ....schemas.tracking import EpisodeHistoryRequest, InteractionRequest, ViewRequest, WatchHistoryRequest
from ....services import interactions, watch_history
from ...deps import bearer_user_id, user_id_from_token

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/user-movie", tags=["user-movie"])


def _serialize_interaction(interaction) -> dict:
    return {
        "id": interaction.id,
        "user_id": interaction.user_id,
        "movie_id": interaction.movie_id,
        "interaction_type": interaction.interaction_type.value,
        "rating": interaction.rating,
        "timestamp": interaction.timestamp,
    }


@router.post("/view")
def track_view(data: ViewRequest, db: Session = Depends(get_db)):
    """Count a view and refresh the user's VIEW interaction"""
    if not data.id_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="ID token is required")
    if not data.movie_id:
        raise HTTPException(status_code=400, detail="movie_id is required")

    user_id = user_id_from_token(data.id_token)
    movie = db.query(Movie).filter(Movie.id == data.movie_id).first()
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")

    try:
        interactions.record_view(db, user_id, movie)
    except Exception as e:
        db.rollback()
        logger.error(f"Error tracking view for {data.movie_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to track view")

    return {"success": True, "view": movie.view}


@router.post("/interaction", status_code=status.HTTP_201_CREATED)
def create_interaction(data: InteractionRequest, db: Session = Depends(get_db)):
    """
    VIEW / LIKE / DISLIKE / RATE.

    LIKE and DISLIKE toggle: repeating one removes it and the opposite one
    is replaced. RATE needs a rating between 0 and 5.
    """
    if not data.movie_id or not data.interaction_type:
        raise HTTPException(status_code=400, detail="movie_id and interaction_type are required")
    try:
        interaction_type = InteractionType(data.interaction_type.upper())
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid interaction type")

    if interaction_type == InteractionType.RATE:
        if data.rating is None or not 0 <= data.rating <= 5:
            raise HTTPException(status_code=400, detail="Rating must be between 0 and 5")
    elif data.rating is not None:
        raise HTTPException(status_code=400, detail="Rating is only allowed for RATE interactions")

    user_id = user_id_from_token(data.id_token)
    if not db.query(User.id).filter(User.id == user_id).first():
        raise HTTPException(status_code=404, detail="User not found")
    movie = db.query(Movie).filter(Movie.id == data.movie_id).first()
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")

    try:
        interaction = interactions.apply_interaction(db, user_id, movie, interaction_type, data.rating)
    except Exception as e:
        db.rollback()
        logger.error(f"Error saving {interaction_type.value} for {movie.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save interaction")

    return {
        "success": True,
        "interaction": _serialize_interaction(interaction) if interaction else None,
        "movie": {
            "id": movie.id,
            "view": movie.view,
            "rating": movie.rating,
            "rating_count": movie.rating_count,
            "like_count": movie.like_count,
            "dislike_count": movie.dislike_count,
        },
    }


# ==================== WATCH HISTORY ====================

@router.post("/watch-history")
def save_watch_history(data: WatchHistoryRequest, db: Session = Depends(get_db)):
    if not data.movie_id or not data.episode_server_id:
        raise HTTPException(status_code=400, detail="movie_id and episode_server_id are required")
    if data.progress is None or data.progress < 0:
        raise HTTPException(status_code=400, detail="progress must be a non-negative number")
    if data.duration_watched is not None and data.duration_watched < 0:
        raise HTTPException(status_code=400, detail="duration_watched must be a non-negative number")

    user_id = user_id_from_token(data.id_token)
    if not db.query(User.id).filter(User.id == user_id).first():
        raise HTTPException(status_code=404, detail="User not found")
    if not db.query(Movie.id).filter(Movie.id == data.movie_id).first():
        raise HTTPException(status_code=404, detail="Movie not found")

    server = (
        db.query(EpisodeServer)
        .join(Episode, Episode.id == EpisodeServer.episode_id)
        .filter(EpisodeServer.id == data.episode_server_id)
        .first()
    )
    if not server:
        raise HTTPException(status_code=404, detail="Episode server not found")
    if server.episode.movie_id != data.movie_id:
        raise HTTPException(status_code=400, detail="Episode server does not belong to this movie")

    try:
        entry = watch_history.save_progress(
            db, user_id, data.movie_id, server.id, data.progress, data.duration_watched
        )
    except Exception as e:
        db.rollback()
        logger.error(f"Error saving watch history for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save watch history")

    return {
        "success": True,
        "data": {
            "id": entry.id,
            "movie_id": entry.movie_id,
            "episode_server_id": entry.episode_server_id,
            "progress": entry.progress,
            "duration_watched": entry.duration_watched,
            "watched_at": entry.watched_at,
        },
    }


@router.get("/watch-history")
def get_watch_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    user_id: str = Depends(bearer_user_id),
    db: Session = Depends(get_db),
):
    limit = min(limit, 50)
    entries, total = watch_history.list_history(db, user_id, page, limit)
    return {
        "data": [watch_history.serialize_entry(entry) for entry in entries],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": (total + limit - 1) // limit,
        },
    }


@router.post("/watch-history/episode")
def get_episode_watch_history(data: EpisodeHistoryRequest, db: Session = Depends(get_db)):
    """Per-server progress for one episode"""
    if not data.episode_id:
        raise HTTPException(status_code=400, detail="episode_id is required")
    user_id = user_id_from_token(data.id_token)

    entries = watch_history.episode_history(db, user_id, data.episode_id)
    return {
        "data": [
            {
                "id": entry.id,
                "episode_server_id": entry.episode_server_id,
                "server_name": entry.episode_server.server_name,
                "progress": entry.progress,
                "duration_watched": entry.duration_watched,
                "watched_at": entry.watched_at,
            }
            for entry in entries
        ]
    }
