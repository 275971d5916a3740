# movieboard/api/v1/episodes.py
"""Episodes of a movie and the servers that stream them"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, selectinload

from ...crud.movie import movie as movie_crud
from ...database import get_db
from ...models import Episode, EpisodeServer
from ...schemas.episode import EpisodeIn, EpisodeOut, EpisodeServerIn, EpisodeServerOut

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/movies/{movie_id}/episodes", tags=["episodes"])


def _episode_slug_taken(db: Session, movie_id: str, slug: str, exclude_id: str = None) -> bool:
    query = db.query(Episode.id).filter(Episode.movie_id == movie_id, Episode.slug == slug)
    if exclude_id:
        query = query.filter(Episode.id != exclude_id)
    return query.first() is not None


def _get_owned_episode(db: Session, movie_id: str, episode_id: str) -> Episode:
    """404 when missing, 400 when it belongs to another movie."""
    episode = db.query(Episode).filter(Episode.id == episode_id).first()
    if not episode:
        raise HTTPException(status_code=404, detail="Episode not found")
    if episode.movie_id != movie_id:
        raise HTTPException(status_code=400, detail="Episode does not belong to this movie")
    return episode


def _get_episode_in_movie(db: Session, movie_id: str, episode_id: str) -> Episode:
    episode = (
        db.query(Episode)
        .filter(Episode.id == episode_id, Episode.movie_id == movie_id)
        .first()
    )
    if not episode:
        raise HTTPException(status_code=404, detail="Episode not found or does not belong to this movie")
    return episode


def _get_server_in_episode(db: Session, episode_id: str, server_id: str) -> EpisodeServer:
    server = (
        db.query(EpisodeServer)
        .filter(EpisodeServer.id == server_id, EpisodeServer.episode_id == episode_id)
        .first()
    )
    if not server:
        raise HTTPException(status_code=404, detail="Episode server not found or does not belong to this episode")
    return server


def _server_name_taken(db: Session, episode_id: str, server_name: str, exclude_id: str = None) -> bool:
    query = db.query(EpisodeServer.id).filter(
        EpisodeServer.episode_id == episode_id,
        EpisodeServer.server_name == server_name,
    )
    if exclude_id:
        query = query.filter(EpisodeServer.id != exclude_id)
    return query.first() is not None


# ==================== EPISODES ====================

@router.get("", response_model=list[EpisodeOut])
def list_episodes(movie_id: str, db: Session = Depends(get_db)):
    if not movie_crud.get(db, movie_id):
        raise HTTPException(status_code=404, detail="Movie not found")
    return (
        db.query(Episode)
        .options(selectinload(Episode.servers))
        .filter(Episode.movie_id == movie_id)
        .order_by(Episode.created_at.asc(), Episode.id)
        .all()
    )


@router.post("", response_model=EpisodeOut, status_code=status.HTTP_201_CREATED)
def create_episode(movie_id: str, data: EpisodeIn, db: Session = Depends(get_db)):
    try:
        if not data.name or not data.slug:
            raise HTTPException(status_code=400, detail="Name and slug are required")
        if not movie_crud.get(db, movie_id):
            raise HTTPException(status_code=404, detail="Movie not found")
        if _episode_slug_taken(db, movie_id, data.slug):
            raise HTTPException(status_code=400, detail="Episode slug already exists for this movie")

        episode = Episode(name=data.name, slug=data.slug, movie_id=movie_id)
        db.add(episode)
        db.commit()
        db.refresh(episode)
        logger.info(f"Episode created: {movie_id}/{episode.slug}")
        return episode
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating episode for {movie_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create episode")


@router.patch("/{episode_id}", response_model=EpisodeOut)
def update_episode(movie_id: str, episode_id: str, data: EpisodeIn, db: Session = Depends(get_db)):
    try:
        if not data.name or not data.slug:
            raise HTTPException(status_code=400, detail="Name and slug are required")
        episode = _get_owned_episode(db, movie_id, episode_id)
        if _episode_slug_taken(db, movie_id, data.slug, exclude_id=episode_id):
            raise HTTPException(status_code=400, detail="Episode slug already exists for this movie")

        episode.name = data.name
        episode.slug = data.slug
        db.commit()
        db.refresh(episode)
        return episode
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating episode {episode_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update episode")


@router.delete("/{episode_id}")
def delete_episode(movie_id: str, episode_id: str, db: Session = Depends(get_db)):
    try:
        episode = _get_owned_episode(db, movie_id, episode_id)
        db.delete(episode)
        db.commit()
        logger.info(f"Episode deleted: {movie_id}/{episode_id}")
        return {"message": "Episode deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting episode {episode_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete episode")


# ==================== SERVERS ====================

@router.post("/{episode_id}/servers", response_model=EpisodeServerOut, status_code=status.HTTP_201_CREATED)
def create_server(movie_id: str, episode_id: str, data: EpisodeServerIn, db: Session = Depends(get_db)):
    try:
        if not data.server_name:
            raise HTTPException(status_code=400, detail="Server name is required")
        _get_episode_in_movie(db, movie_id, episode_id)
        if _server_name_taken(db, episode_id, data.server_name):
            raise HTTPException(status_code=400, detail="Server name already exists for this episode")

        server = EpisodeServer(episode_id=episode_id, **data.model_dump())
        db.add(server)
        db.commit()
        db.refresh(server)
        return server
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating server for episode {episode_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create episode server")


@router.patch("/{episode_id}/servers/{server_id}", response_model=EpisodeServerOut)
def update_server(
    movie_id: str,
    episode_id: str,
    server_id: str,
    data: EpisodeServerIn,
    db: Session = Depends(get_db)
):
    try:
        _get_episode_in_movie(db, movie_id, episode_id)
        server = _get_server_in_episode(db, episode_id, server_id)
        if data.server_name and _server_name_taken(db, episode_id, data.server_name, exclude_id=server_id):
            raise HTTPException(status_code=400, detail="Server name already exists for this episode")

        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "server_name" and not value:
                continue
            setattr(server, field, value)
        db.commit()
        db.refresh(server)
        return server
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating server {server_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update episode server")


@router.delete("/{episode_id}/servers/{server_id}")
def delete_server(movie_id: str, episode_id: str, server_id: str, db: Session = Depends(get_db)):
    try:
        _get_episode_in_movie(db, movie_id, episode_id)
        server = _get_server_in_episode(db, episode_id, server_id)
        db.delete(server)
        db.commit()
        return {"message": "Episode server deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting server {server_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete episode server")
