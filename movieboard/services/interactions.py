"""
User ↔ movie interactions

- VIEW: one row per (user, movie), timestamp refreshed on every view
- LIKE / DISLIKE: toggles, mutually exclusive, mirrored in movie counters
- RATE: 0-5 stars, movie.rating is the running average
"""
import logging
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ..models import InteractionType, Movie, UserInteraction
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)

OPPOSITE = {
    InteractionType.LIKE: InteractionType.DISLIKE,
    InteractionType.DISLIKE: InteractionType.LIKE,
}

COUNTER = {
    InteractionType.LIKE: Movie.like_count,
    InteractionType.DISLIKE: Movie.dislike_count,
}


def _find(db: Session, user_id: str, movie_id: str, interaction_type: InteractionType) -> Optional[UserInteraction]:
    return (
        db.query(UserInteraction)
        .filter(
            UserInteraction.user_id == user_id,
            UserInteraction.movie_id == movie_id,
            UserInteraction.interaction_type == interaction_type,
        )
        .first()
    )


def upsert_view(db: Session, user_id: str, movie_id: str) -> UserInteraction:
    """Create or refresh the single VIEW interaction for this pair (not committed)."""
    interaction = _find(db, user_id, movie_id, InteractionType.VIEW)
    if interaction is None:
        interaction = UserInteraction(
            user_id=user_id,
            movie_id=movie_id,
            interaction_type=InteractionType.VIEW,
        )
        db.add(interaction)
    interaction.timestamp = utcnow()
    return interaction


def _bump(db: Session, movie: Movie, column, delta: int) -> None:
    """Add ``delta`` to a movie counter in SQL, never going below 0."""
    current = func.coalesce(column, 0)
    value = current + delta if delta > 0 else case((current + delta > 0, current + delta), else_=0)
    (
        db.query(Movie)
        .filter(Movie.id == movie.id)
        .update({column: value}, synchronize_session=False)
    )


def _adjust(db: Session, movie: Movie, interaction_type: InteractionType, delta: int) -> None:
    _bump(db, movie, COUNTER[interaction_type], delta)


def record_view(db: Session, user_id: str, movie: Movie) -> None:
    """
    Bump the movie's view counter, then track the VIEW interaction.

    The counter is committed first; a failure while tracking the
    interaction is logged and does not undo it.
    """
    _bump(db, movie, Movie.view, 1)
    db.commit()
    db.refresh(movie)

    try:
        upsert_view(db, user_id, movie.id)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.warning(f"⚠️ Could not record VIEW interaction user={user_id} movie={movie.id}: {e}")


def toggle_reaction(db: Session, user_id: str, movie: Movie, interaction_type: InteractionType) -> Optional[UserInteraction]:
    """
    LIKE/DISLIKE toggle. Returns the new interaction, or None when the
    same reaction was removed.
    """
    current = _find(db, user_id, movie.id, interaction_type)
    if current is not None:
        db.delete(current)
        _adjust(db, movie, interaction_type, -1)
        db.commit()
        db.refresh(movie)
        return None

    opposite = _find(db, user_id, movie.id, OPPOSITE[interaction_type])
    if opposite is not None:
        db.delete(opposite)
        _adjust(db, movie, OPPOSITE[interaction_type], -1)

    interaction = UserInteraction(
        user_id=user_id,
        movie_id=movie.id,
        interaction_type=interaction_type,
        timestamp=utcnow(),
    )
    db.add(interaction)
    _adjust(db, movie, interaction_type, 1)
    db.commit()
    db.refresh(movie)
    db.refresh(interaction)
    return interaction


def rate(db: Session, user_id: str, movie: Movie, rating: float) -> UserInteraction:
    interaction = _find(db, user_id, movie.id, InteractionType.RATE)
    if interaction is None:
        interaction = UserInteraction(user_id=user_id, movie_id=movie.id, interaction_type=InteractionType.RATE)
        db.add(interaction)
    interaction.rating = rating
    interaction.timestamp = utcnow()
    db.flush()

    average, count = (
        db.query(func.avg(UserInteraction.rating), func.count(UserInteraction.id))
        .filter(
            UserInteraction.movie_id == movie.id,
            UserInteraction.interaction_type == InteractionType.RATE,
            UserInteraction.rating.isnot(None),
        )
        .one()
    )
    movie.rating = round(float(average or 0), 2)
    movie.rating_count = count
    db.commit()
    db.refresh(interaction)
    return interaction


def apply_interaction(
    db: Session,
    user_id: str,
    movie: Movie,
    interaction_type: InteractionType,
    rating: Optional[float] = None,
) -> Optional[UserInteraction]:
    if interaction_type == InteractionType.VIEW:
        _bump(db, movie, Movie.view, 1)
        interaction = upsert_view(db, user_id, movie.id)
        db.commit()
        db.refresh(movie)
        db.refresh(interaction)
        return interaction
    if interaction_type == InteractionType.RATE:
        return rate(db, user_id, movie, rating)
    return toggle_reaction(db, user_id, movie, interaction_type)


def user_interaction_summary(db: Session, user_id: str, movie_id: str) -> dict:
    rows = (
        db.query(UserInteraction.interaction_type, UserInteraction.rating)
        .filter(UserInteraction.user_id == user_id, UserInteraction.movie_id == movie_id)
        .all()
    )
    types = {interaction_type for interaction_type, _ in rows}
    rating = next(
        (value for interaction_type, value in rows if interaction_type == InteractionType.RATE),
        None,
    )
    return {
        "is_liked": InteractionType.LIKE in types,
        "is_disliked": InteractionType.DISLIKE in types,
        "rating": rating,
    }
