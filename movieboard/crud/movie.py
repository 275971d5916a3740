from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from .base import CRUDBase
from ..models import Country, Episode, Genre, Movie, MovieType
from ..schemas.movie import MovieCreate, MovieFilter, MovieUpdate, PublicMovieFilter, SORTABLE_FIELDS

# Eager loads used by every movie listing
SUMMARY_OPTIONS = (
    selectinload(Movie.type),
    selectinload(Movie.genres),
    selectinload(Movie.countries),
)


def clamp(value: Optional[int], default: int, maximum: int) -> int:
    """Coerce a page size into 1..maximum, falling back to default."""
    if value is None or value < 1:
        return default
    return min(value, maximum)


class CRUDMovie(CRUDBase[Movie, MovieCreate, MovieUpdate]):

    def get_with_relations(self, db: Session, id: str) -> Optional[Movie]:
        return (
            db.query(Movie)
            .options(
                *SUMMARY_OPTIONS,
                selectinload(Movie.episodes).selectinload(Episode.servers),
            )
            .filter(Movie.id == id)
            .first()
        )

    def get_by_id_or_slug(self, db: Session, key: str) -> Optional[Movie]:
        return (
            db.query(Movie)
            .options(
                *SUMMARY_OPTIONS,
                selectinload(Movie.episodes).selectinload(Episode.servers),
            )
            .filter(or_(Movie.id == key, Movie.slug == key))
            .first()
        )

    def get_by_slug(self, db: Session, *, slug: str) -> Optional[Movie]:
        return db.query(Movie).filter(Movie.slug == slug).first()

    def slug_taken(self, db: Session, *, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = db.query(Movie.id).filter(Movie.slug == slug)
        if exclude_id is not None:
            query = query.filter(Movie.id != exclude_id)
        return query.first() is not None

    def get_many(self, db: Session, ids: Sequence[str]) -> List[Movie]:
        """Fetch movies by id preserving the order of ``ids``."""
        if not ids:
            return []
        rows = db.query(Movie).options(*SUMMARY_OPTIONS).filter(Movie.id.in_(list(ids))).all()
        by_id = {movie.id: movie for movie in rows}
        return [by_id[movie_id] for movie_id in ids if movie_id in by_id]

    def get_page(self, db: Session, *, page: int, limit: int) -> Tuple[List[Movie], int]:
        query = db.query(Movie)
        total = query.count()
        movies = (
            query.options(*SUMMARY_OPTIONS)
            .order_by(Movie.updated_at.desc(), Movie.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return movies, total

    def resolve_relations(
        self,
        db: Session,
        *,
        genre_ids: Iterable[str],
        country_ids: Iterable[str],
    ) -> Tuple[List[Genre], List[Country]]:
        genre_ids = list(dict.fromkeys(genre_ids))
        country_ids = list(dict.fromkeys(country_ids))
        genres = db.query(Genre).filter(Genre.id.in_(genre_ids)).all() if genre_ids else []
        countries = db.query(Country).filter(Country.id.in_(country_ids)).all() if country_ids else []
        if len(genres) != len(genre_ids):
            raise ValueError("One or more genres not found")
        if len(countries) != len(country_ids):
            raise ValueError("One or more countries not found")
        return genres, countries

    def create_with_relations(self, db: Session, *, obj_in: MovieCreate) -> Movie:
        data = obj_in.model_dump(exclude={"genre_ids", "country_ids"})
        genres, countries = self.resolve_relations(
            db, genre_ids=obj_in.genre_ids, country_ids=obj_in.country_ids
        )
        movie = Movie(**data, is_imported=False)
        movie.genres = genres
        movie.countries = countries
        db.add(movie)
        db.commit()
        return self.get_with_relations(db, movie.id)

    def update_with_relations(self, db: Session, *, db_obj: Movie, obj_in: MovieUpdate) -> Movie:
        data = obj_in.model_dump(exclude_unset=True, exclude={"genre_ids", "country_ids"})
        for field, value in data.items():
            setattr(db_obj, field, value)
        if obj_in.genre_ids is not None or obj_in.country_ids is not None:
            genres, countries = self.resolve_relations(
                db,
                genre_ids=obj_in.genre_ids or [],
                country_ids=obj_in.country_ids or [],
            )
            if obj_in.genre_ids is not None:
                db_obj.genres = genres
            if obj_in.country_ids is not None:
                db_obj.countries = countries
        db.add(db_obj)
        db.commit()
        return self.get_with_relations(db, db_obj.id)

    def existing_slugs(self, db: Session, slugs: Sequence[str]) -> List[str]:
        if not slugs:
            return []
        return [row[0] for row in db.query(Movie.slug).filter(Movie.slug.in_(list(slugs))).all()]

    def bulk_remove(self, db: Session, ids: Sequence[str]) -> Tuple[List[str], List[str]]:
        """Delete the movies that exist; return (deleted_ids, not_found_ids)."""
        movies = db.query(Movie).filter(Movie.id.in_(list(ids))).all()
        found = {movie.id for movie in movies}
        for movie in movies:
            db.delete(movie)
        if movies:
            db.commit()
        deleted = [movie_id for movie_id in ids if movie_id in found]
        not_found = [movie_id for movie_id in ids if movie_id not in found]
        return deleted, not_found

    # ==================== FILTERS ====================

    @staticmethod
    def _base_conditions(criteria) -> list:
        conditions = []
        if criteria.type_id:
            conditions.append(Movie.type_id == criteria.type_id)
        if criteria.country_id:
            conditions.append(Movie.countries.any(Country.id == criteria.country_id))
        if criteria.start_year is not None:
            conditions.append(Movie.year >= criteria.start_year)
        if criteria.end_year is not None:
            conditions.append(Movie.year <= criteria.end_year)
        if criteria.name:
            conditions.append(Movie.name.ilike(f"%{criteria.name.strip()}%"))
        return conditions

    def admin_filter(self, db: Session, criteria: MovieFilter) -> Tuple[List[Movie], int, Optional[dict]]:
        conditions = self._base_conditions(criteria)
        if criteria.genre_ids:
            # any of the selected genres
            conditions.append(Movie.genres.any(Genre.id.in_(criteria.genre_ids)))

        sort_by = criteria.sort_by if criteria.sort_by in SORTABLE_FIELDS else "updated_at"
        column = getattr(Movie, sort_by)
        order = column.asc() if criteria.sort_direction == "asc" else column.desc()

        query = db.query(Movie).filter(*conditions)
        total = query.count()
        movies = (
            query.options(*SUMMARY_OPTIONS)
            .order_by(order, Movie.id)
            .offset((criteria.page - 1) * criteria.limit)
            .limit(criteria.limit)
            .all()
        )

        statistics = None
        if criteria.include_statistics:
            rows = (
                db.query(MovieType.id, MovieType.name, func.count(Movie.id))
                .join(Movie, Movie.type_id == MovieType.id)
                .filter(*conditions)
                .group_by(MovieType.id, MovieType.name)
                .order_by(MovieType.name)
                .all()
            )
            statistics = {
                "total": total,
                "by_type": [
                    {"type_id": type_id, "type_name": name, "count": count}
                    for type_id, name, count in rows
                ],
            }
        return movies, total, statistics

    def public_filter(
        self,
        db: Session,
        criteria: PublicMovieFilter,
        restrict_ids: Optional[Sequence[str]] = None,
    ) -> Tuple[List[Movie], int]:
        conditions = self._base_conditions(criteria)
        # every selected genre
        for genre_id in criteria.genre_ids:
            conditions.append(Movie.genres.any(Genre.id == genre_id))
        if restrict_ids is not None:
            conditions.append(Movie.id.in_(list(restrict_ids)))

        query = db.query(Movie).filter(*conditions)
        total = query.count()
        movies = (
            query.options(selectinload(Movie.genres))
            .order_by(Movie.updated_at.desc(), Movie.id)
            .offset((criteria.page - 1) * criteria.limit)
            .limit(criteria.limit)
            .all()
        )
        return movies, total


movie = CRUDMovie(Movie)
