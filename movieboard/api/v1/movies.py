# movieboard/api/v1/movies.py
import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...crud import taxonomy
from ...crud.movie import movie as movie_crud
from ...database import get_db
from ...models.user import User
from ...schemas.movie import (
    BulkDeleteRequest,
    CheckImportRequest,
    MovieCreate,
    MovieDetail,
    MovieFilter,
    MovieSummary,
    MovieUpdate,
    SORTABLE_FIELDS,
)
from ..deps import require_admin

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/movies", tags=["movies"])


def _check_type(db: Session, type_id):
    if type_id and not taxonomy.movie_type.get(db, type_id):
        raise HTTPException(status_code=400, detail="Movie type not found")


@router.get("")
def list_movies(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Paginated movies, most recently updated first"""
    try:
        movies, total = movie_crud.get_page(db, page=page, limit=limit)
        return {
            "movies": [MovieSummary.model_validate(m) for m in movies],
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "pages": (total + limit - 1) // limit,
            },
        }
    except Exception as e:
        logger.error(f"Error fetching movies: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch movies")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=MovieDetail)
def create_movie(data: MovieCreate, db: Session = Depends(get_db)):
    try:
        if movie_crud.slug_taken(db, slug=data.slug):
            raise HTTPException(status_code=400, detail="Slug is already in use")
        _check_type(db, data.type_id)

        movie = movie_crud.create_with_relations(db, obj_in=data)
        logger.info(f"🎬 Movie created: {movie.slug}")
        return movie
    except HTTPException:
        raise
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating movie: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create movie")


@router.post("/filter")
def filter_movies(criteria: MovieFilter, db: Session = Depends(get_db)):
    """
    Dashboard search.

    genre_ids matches movies having ANY of the genres; sort_by falls back
    to updated_at for unknown columns.
    """
    started = time.perf_counter()
    criteria.page = max(criteria.page, 1)
    criteria.limit = min(max(criteria.limit, 1), 100)
    if criteria.sort_by not in SORTABLE_FIELDS:
        criteria.sort_by = "updated_at"
    if criteria.sort_direction not in ("asc", "desc"):
        criteria.sort_direction = "desc"

    try:
        movies, total, statistics = movie_crud.admin_filter(db, criteria)
    except Exception as e:
        logger.error(f"Error filtering movies: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to filter movies")

    return {
        "data": [MovieSummary.model_validate(m) for m in movies],
        "pagination": {
            "current_page": criteria.page,
            "limit": criteria.limit,
            "total_pages": (total + criteria.limit - 1) // criteria.limit,
            "total_count": total,
        },
        "filters": {
            "type_id": criteria.type_id,
            "genre_ids": criteria.genre_ids,
            "country_id": criteria.country_id,
            "start_year": criteria.start_year,
            "end_year": criteria.end_year,
            "name": criteria.name,
        },
        "sort": {"sort_by": criteria.sort_by, "sort_direction": criteria.sort_direction},
        "metadata": {
            "statistics": statistics,
            "query_time": round((time.perf_counter() - started) * 1000, 2),
        },
    }


@router.post("/bulk-delete")
def bulk_delete_movies(
    data: BulkDeleteRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Admin only. Deletes the ids that exist and reports the rest."""
    if not data.movie_ids:
        raise HTTPException(status_code=400, detail="movie_ids must be a non-empty array")

    try:
        deleted, not_found = movie_crud.bulk_remove(db, data.movie_ids)
    except Exception as e:
        db.rollback()
        logger.error(f"Bulk delete failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete movies")

    if not deleted:
        raise HTTPException(status_code=404, detail="No movies found with the provided IDs")

    logger.info(f"🗑️ {admin.id} bulk-deleted {len(deleted)} movies")
    return {
        "message": f"Successfully deleted {len(deleted)} movies",
        "count": len(deleted),
        "deleted_ids": deleted,
        "not_found_ids": not_found,
    }


@router.post("/check-import")
def check_import(data: CheckImportRequest, db: Session = Depends(get_db)):
    """Which catalog slugs are already in the database"""
    if data.slugs is None:
        raise HTTPException(status_code=400, detail="slugs must be an array")
    return {"existing_slugs": movie_crud.existing_slugs(db, data.slugs)}


@router.get("/{movie_id}", response_model=MovieDetail)
def get_movie(movie_id: str, db: Session = Depends(get_db)):
    movie = movie_crud.get_with_relations(db, movie_id)
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")
    return movie


@router.patch("/{movie_id}", response_model=MovieDetail)
def update_movie(movie_id: str, data: MovieUpdate, db: Session = Depends(get_db)):
    try:
        movie = movie_crud.get(db, movie_id)
        if not movie:
            raise HTTPException(status_code=404, detail="Movie not found")
        if data.slug and movie_crud.slug_taken(db, slug=data.slug, exclude_id=movie_id):
            raise HTTPException(status_code=400, detail="Slug is already in use")
        _check_type(db, data.type_id)

        movie = movie_crud.update_with_relations(db, db_obj=movie, obj_in=data)
        logger.info(f"🎬 Movie updated: {movie.slug}")
        return movie
    except HTTPException:
        raise
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating movie {movie_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update movie")


@router.delete("/{movie_id}")
def delete_movie(movie_id: str, db: Session = Depends(get_db)):
    """Delete a movie with its episodes, servers and history"""
    try:
        movie = movie_crud.get(db, movie_id)
        if not movie:
            raise HTTPException(status_code=404, detail="Movie not found")

        movie_crud.remove(db, db_obj=movie)
        logger.info(f"🗑️ Movie deleted: {movie.slug}")
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting movie {movie_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete movie")
