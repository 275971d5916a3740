# movieboard/api/v1/public/catalog.py
"""Read-only catalog for the mobile and web apps"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ....crud import taxonomy
from ....crud.movie import movie as movie_crud
from ....database import get_db
from ....schemas.movie import MovieDetail, PublicMovieFilter
from ....schemas.taxonomy import TaxonomyRef
from ....services import embeddings, interactions, vector_search

logger = logging.getLogger(__name__)
router = APIRouter(tags=["public"])

CONTENT_SEARCH_LIMIT = 500
CONTENT_SEARCH_CANDIDATES = 5000


@router.get("/countries")
def public_countries(db: Session = Depends(get_db)):
    return {"data": [TaxonomyRef.model_validate(c) for c in taxonomy.country.list_by_name(db)]}


@router.get("/genres")
def public_genres(db: Session = Depends(get_db)):
    return {"data": [TaxonomyRef.model_validate(g) for g in taxonomy.genre.list_by_name(db)]}


@router.get("/types")
def public_types(db: Session = Depends(get_db)):
    return {"data": [TaxonomyRef.model_validate(t) for t in taxonomy.movie_type.list_by_name(db)]}


@router.get("/movies/{id_or_slug}")
def public_movie_detail(id_or_slug: str, user_id: Optional[str] = None, db: Session = Depends(get_db)):
    """Full movie with episodes; user_interaction is included when user_id is given"""
    movie = movie_crud.get_by_id_or_slug(db, id_or_slug)
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")

    data = MovieDetail.model_validate(movie).model_dump()
    if user_id:
        data["user_interaction"] = interactions.user_interaction_summary(db, user_id, movie.id)
    return {"data": data}


async def _content_search_ids(text: str) -> list:
    try:
        vector = await embeddings.generate_embedding(text)
        hits = await run_in_threadpool(
            vector_search.perform_vector_search,
            vector,
            CONTENT_SEARCH_LIMIT,
            CONTENT_SEARCH_CANDIDATES,
            None,
            {"_id": 1, "score": {"$meta": "vectorSearchScore"}},
        )
    except Exception as e:
        logger.error(f"❌ Content search failed: {e}")
        raise HTTPException(status_code=500, detail="Content search failed")
    return [hit["id"] for hit in hits if hit.get("id")]


@router.post("/filter")
async def public_filter(criteria: PublicMovieFilter, db: Session = Depends(get_db)):
    """
    Filter the catalog.

    genre_ids must ALL match. content_search narrows the result to the
    vector-search hits for the text.
    """
    criteria.page = max(criteria.page, 1)
    criteria.limit = min(max(criteria.limit, 1), 100)

    restrict_ids = None
    if criteria.content_search and criteria.content_search.strip():
        restrict_ids = await _content_search_ids(criteria.content_search)
        if not restrict_ids:
            return {
                "data": [],
                "pagination": {"page": criteria.page, "limit": criteria.limit, "total": 0, "total_pages": 0},
            }

    movies, total = movie_crud.public_filter(db, criteria, restrict_ids=restrict_ids)
    return {
        "data": [
            {
                "id": m.id,
                "name": m.name,
                "slug": m.slug,
                "poster_url": m.poster_url,
                "thumb_url": m.thumb_url,
                "year": m.year,
                "genres": [TaxonomyRef.model_validate(g) for g in m.genres],
            }
            for m in movies
        ],
        "pagination": {
            "page": criteria.page,
            "limit": criteria.limit,
            "total": total,
            "total_pages": (total + criteria.limit - 1) // criteria.limit,
        },
    }
