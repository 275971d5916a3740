# movieboard/api/v1/imports.py
"""
KKPhim catalog browsing and bulk import/update

/catalog/* proxies phimapi.com for the dashboard import screen;
/movies/import and /movies/update-movies write a prepared payload.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...schemas.imports import CatalogImportRequest, ImportPayload
from ...services import importer, kkphim

logger = logging.getLogger(__name__)
router = APIRouter(tags=["import"])


def _validated(payload: ImportPayload) -> dict:
    if payload.movies is None:
        raise HTTPException(status_code=400, detail="movies must be an array")
    if payload.episodes is None:
        raise HTTPException(status_code=400, detail="episodes must be an array")
    if payload.episode_servers is None:
        raise HTTPException(status_code=400, detail="episode_servers must be an array")
    return {
        "movies": payload.movies,
        "episodes": payload.episodes,
        "episode_servers": payload.episode_servers,
    }


@router.post("/movies/import")
def import_movies(payload: ImportPayload, db: Session = Depends(get_db)):
    data = _validated(payload)
    logger.info(
        f"📥 Importing {len(data['movies'])} movies, {len(data['episodes'])} episodes, "
        f"{len(data['episode_servers'])} servers"
    )
    return importer.import_movies(db, data)


@router.post("/movies/update-movies")
def update_movies(payload: ImportPayload, db: Session = Depends(get_db)):
    data = _validated(payload)
    logger.info(f"🔁 Updating up to {len(data['movies'])} existing movies")
    return importer.update_movies(db, data)


@router.get("/catalog/movies")
async def catalog_movies(page: int = Query(1)):
    """Latest movies from KKPhim; upstream failures come back as an error field"""
    return await kkphim.kkphim_client.get_movies_list(page)


@router.get("/catalog/movies/{slug}")
async def catalog_movie_detail(slug: str):
    result = await kkphim.kkphim_client.get_movie_detail(slug)
    if result.get("movie") is None:
        raise HTTPException(status_code=404, detail=result.get("error") or "Movie not found")
    return result


@router.post("/catalog/import")
async def catalog_import(data: CatalogImportRequest, db: Session = Depends(get_db)):
    """Fetch each slug from KKPhim, then import movies with episodes and servers"""
    if not data.slugs:
        raise HTTPException(status_code=400, detail="slugs must be a non-empty array")

    details = []
    fetch_errors = []
    for slug in data.slugs:
        result = await kkphim.kkphim_client.get_movie_detail(slug)
        if result.get("movie") is None:
            fetch_errors.append({"slug": slug, "message": result.get("error")})
            continue
        details.append(result)

    payload = kkphim.format_import_payload(details)
    report = importer.import_movies(db, payload)
    report["fetch_errors"] = fetch_errors
    return report
