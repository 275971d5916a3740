from typing import List, Optional
from sqlalchemy.orm import Session
from .base import CRUDBase
from ..models import Country, Genre, Movie, MovieType
from ..schemas.taxonomy import TaxonomyIn


class CRUDTaxonomy(CRUDBase[Genre, TaxonomyIn, TaxonomyIn]):
    """Shared slug-keyed CRUD for genres, countries and movie types"""

    def __init__(self, model, label: str):
        super().__init__(model)
        self.label = label

    def list_recent(self, db: Session) -> List:
        return db.query(self.model).order_by(self.model.created_at.desc()).all()

    def list_by_name(self, db: Session) -> List:
        return db.query(self.model).order_by(self.model.name.asc()).all()

    def get_by_slug(self, db: Session, *, slug: str):
        return db.query(self.model).filter(self.model.slug == slug).first()

    def slug_taken(self, db: Session, *, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = db.query(self.model.id).filter(self.model.slug == slug)
        if exclude_id is not None:
            query = query.filter(self.model.id != exclude_id)
        return query.first() is not None

    def upsert_by_slug(self, db: Session, *, name: str, slug: str):
        """Return the row with this slug, creating it in the open transaction when missing."""
        obj = self.get_by_slug(db, slug=slug)
        if obj is None:
            obj = self.model(name=name or slug, slug=slug)
            db.add(obj)
            db.flush()
        return obj

    def has_movies(self, db: Session, *, id: str) -> bool:
        if self.model is MovieType:
            condition = Movie.type_id == id
        elif self.model is Genre:
            condition = Movie.genres.any(Genre.id == id)
        else:
            condition = Movie.countries.any(Country.id == id)
        return db.query(Movie.id).filter(condition).first() is not None


genre = CRUDTaxonomy(Genre, "Genre")
country = CRUDTaxonomy(Country, "Country")
movie_type = CRUDTaxonomy(MovieType, "Movie type")
