# movieboard/api/v1/public/recommendations.py
import logging
import re
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ....crud import taxonomy
from ....database import get_db
from ....models import InteractionType
from ....schemas.movie import MovieSummary
from ....schemas.tracking import (
    GenreTrendingRequest,
    HybridForYouRequest,
    RecentlyAddedRequest,
    RecentlyLikedRequest,
    RecentlyWatchedRequest,
    SimilarMoviesRequest,
    TrendingRequest,
    TypeTrendingRequest,
)
from ....services import recommendations
from ...deps import user_id_from_token

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/recommendations", tags=["recommendations"])

RECENT_DEFAULT_LIMIT = 12
DEFAULT_LIMIT = 10
MAX_LIMIT = 50
LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _limit(value, default: int) -> int:
    """
    Leading digits count ("5abc" is 5). Non-positive or unparsable limits
    fall back to the default; capped at 50.
    """
    if value is None:
        return default
    match = LEADING_INT.match(str(value))
    if not match:
        return default
    value = int(match.group(1))
    if value <= 0:
        return default
    return min(value, MAX_LIMIT)


def _response(items: List[dict], strategy: str, **extra) -> dict:
    data = []
    for item in items:
        entry = MovieSummary.model_validate(item["movie"]).model_dump()
        entry.update({key: value for key, value in item.items() if key != "movie"})
        data.append(entry)
    return {"data": data, "strategy": strategy, "count": len(data), **extra}


# ==================== RECENTLY ADDED ====================

@router.post("/recently-added")
def recently_added(data: RecentlyAddedRequest, db: Session = Depends(get_db)):
    items, strategy = recommendations.recently_added(db, _limit(data.limit, RECENT_DEFAULT_LIMIT))
    return _response(items, strategy)


@router.get("/recently-added/type/{type_id}")
def recently_added_by_type(type_id: str, limit: Optional[str] = None, db: Session = Depends(get_db)):
    movie_type = taxonomy.movie_type.get(db, type_id)
    if not movie_type:
        raise HTTPException(status_code=404, detail="Movie type not found")

    items, strategy = recommendations.recently_added(
        db, _limit(limit, RECENT_DEFAULT_LIMIT), type_id=type_id
    )
    return _response(items, strategy, type={"id": movie_type.id, "name": movie_type.name, "slug": movie_type.slug})


@router.get("/recently-added/genre/{genre_id}")
def recently_added_by_genre(genre_id: str, limit: Optional[str] = None, db: Session = Depends(get_db)):
    genre = taxonomy.genre.get(db, genre_id)
    if not genre:
        raise HTTPException(status_code=404, detail="Genre not found")

    items, strategy = recommendations.recently_added(
        db, _limit(limit, RECENT_DEFAULT_LIMIT), genre_id=genre_id
    )
    return _response(items, strategy, genre={"id": genre.id, "name": genre.name, "slug": genre.slug})


# ==================== CONTENT / POPULARITY ====================

@router.post("/similar")
def similar(data: SimilarMoviesRequest, db: Session = Depends(get_db)):
    if not data.movie_id:
        raise HTTPException(status_code=400, detail="movie_id is required")
    items, strategy = recommendations.similar_movies(db, data.movie_id, _limit(data.limit, DEFAULT_LIMIT))
    return _response(items, strategy)


@router.post("/trending")
def trending(data: TrendingRequest, db: Session = Depends(get_db)):
    items, strategy = recommendations.global_trending(db, _limit(data.limit, DEFAULT_LIMIT))
    return _response(items, strategy)


@router.post("/trending/type")
def trending_by_type(data: TypeTrendingRequest, db: Session = Depends(get_db)):
    if data.type_id:
        movie_type = taxonomy.movie_type.get(db, data.type_id)
    elif data.type_slug:
        movie_type = taxonomy.movie_type.get_by_slug(db, slug=data.type_slug)
    else:
        raise HTTPException(status_code=400, detail="type_id or type_slug is required")
    if not movie_type:
        raise HTTPException(status_code=404, detail="Movie type not found")

    items, strategy = recommendations.type_trending(db, movie_type.id, _limit(data.limit, DEFAULT_LIMIT))
    return _response(items, strategy, type={"id": movie_type.id, "name": movie_type.name, "slug": movie_type.slug})


@router.post("/trending/genre")
def trending_by_genre(data: GenreTrendingRequest, db: Session = Depends(get_db)):
    if not data.genre_id:
        raise HTTPException(status_code=400, detail="genre_id is required")
    genre = taxonomy.genre.get(db, data.genre_id)
    if not genre:
        raise HTTPException(status_code=404, detail="Genre not found")

    items, strategy = recommendations.genre_trending(db, genre.id, _limit(data.limit, DEFAULT_LIMIT))
    return _response(items, strategy, genre={"id": genre.id, "name": genre.name, "slug": genre.slug})


# ==================== PERSONALIZED ====================

@router.post("/personalized/recently-watched")
def recently_watched(data: RecentlyWatchedRequest, db: Session = Depends(get_db)):
    user_id = user_id_from_token(data.id_token)
    items, strategy = recommendations.personalized(
        db, user_id, InteractionType.VIEW, _limit(data.limit, DEFAULT_LIMIT)
    )
    return _response(items, strategy)


@router.post("/personalized/recently-liked")
def recently_liked(data: RecentlyLikedRequest, db: Session = Depends(get_db)):
    if not data.user_id:
        raise HTTPException(status_code=400, detail="user_id is required")
    items, strategy = recommendations.personalized(
        db, data.user_id, InteractionType.LIKE, _limit(data.limit, DEFAULT_LIMIT)
    )
    return _response(items, strategy)


@router.post("/personalized/hybrid-for-you")
def hybrid_for_you(data: HybridForYouRequest, db: Session = Depends(get_db)):
    user_id = user_id_from_token(data.id_token)
    items, strategy = recommendations.hybrid_for_you(db, user_id, _limit(data.limit, DEFAULT_LIMIT))
    return _response(items, strategy)
