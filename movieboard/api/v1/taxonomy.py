# movieboard/api/v1/taxonomy.py
"""Genres, countries and movie types share the same slug-keyed CRUD"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...crud import taxonomy
from ...crud.taxonomy import CRUDTaxonomy
from ...database import get_db
from ...schemas.taxonomy import TaxonomyIn, TaxonomyOut

logger = logging.getLogger(__name__)


def build_router(crud: CRUDTaxonomy, prefix: str, plural: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[plural])
    label = crud.label
    lower = label.lower()

    @router.get("", response_model=list[TaxonomyOut])
    def list_items(db: Session = Depends(get_db)):
        try:
            return crud.list_recent(db)
        except Exception as e:
            logger.error(f"Error fetching {plural}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Failed to fetch {plural}")

    @router.post("", response_model=TaxonomyOut, status_code=status.HTTP_201_CREATED)
    def create_item(data: TaxonomyIn, db: Session = Depends(get_db)):
        try:
            if not data.name or not data.slug:
                raise HTTPException(status_code=400, detail="Name and slug are required")
            if crud.slug_taken(db, slug=data.slug):
                raise HTTPException(status_code=400, detail="Slug is already in use")

            item = crud.create(db, obj_in={"name": data.name, "slug": data.slug})
            logger.info(f"{label} created: {item.slug}")
            return item
        except HTTPException:
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"Error creating {lower}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to create {lower}")

    @router.get("/{item_id}", response_model=TaxonomyOut)
    def get_item(item_id: str, db: Session = Depends(get_db)):
        item = crud.get(db, item_id)
        if not item:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return item

    @router.patch("/{item_id}", response_model=TaxonomyOut)
    def update_item(item_id: str, data: TaxonomyIn, db: Session = Depends(get_db)):
        try:
            if not data.name or not data.slug:
                raise HTTPException(status_code=400, detail="Name and slug are required")
            item = crud.get(db, item_id)
            if not item:
                raise HTTPException(status_code=404, detail=f"{label} not found")
            if crud.slug_taken(db, slug=data.slug, exclude_id=item_id):
                raise HTTPException(status_code=400, detail="Slug is already in use")

            item = crud.update(db, db_obj=item, obj_in={"name": data.name, "slug": data.slug})
            logger.info(f"{label} updated: {item.slug}")
            return item
        except HTTPException:
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"Error updating {lower} {item_id}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to update {lower}")

    @router.delete("/{item_id}")
    def delete_item(item_id: str, db: Session = Depends(get_db)):
        try:
            item = crud.get(db, item_id)
            if not item:
                raise HTTPException(status_code=404, detail=f"{label} not found")
            if crud.has_movies(db, id=item_id):
                raise HTTPException(
                    status_code=400,
                    detail=(
                        f"Cannot delete {lower} that is associated with movies. "
                        "Remove all movie associations first."
                    ),
                )

            crud.remove(db, db_obj=item)
            logger.info(f"{label} deleted: {item.slug}")
            return {"message": f"{label} deleted successfully"}
        except HTTPException:
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"Error deleting {lower} {item_id}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to delete {lower}")

    return router


genres_router = build_router(taxonomy.genre, "/genres", "genres")
countries_router = build_router(taxonomy.country, "/countries", "countries")
movie_types_router = build_router(taxonomy.movie_type, "/movie-types", "movie-types")
