"""
Catalog import / update

Turns an import payload (movies, episodes, episode_servers) into rows.
Every item commits on its own so one bad record never blocks the rest;
failures are collected into the report instead.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..crud import taxonomy
from ..crud.movie import movie as movie_crud
from ..models import Episode, EpisodeServer, Movie

logger = logging.getLogger(__name__)

SECTIONS = ("movies", "episodes", "episode_servers")


class ImportReport:
    def __init__(self, track_skipped: bool = False):
        self.results = {
            section: {"processed": 0, "succeeded": 0, "failed": 0} for section in SECTIONS
        }
        if track_skipped:
            for counters in self.results.values():
                counters["skipped"] = 0
        self.errors: List[dict] = []

    def processed(self, section: str):
        self.results[section]["processed"] += 1

    def succeeded(self, section: str):
        self.results[section]["succeeded"] += 1

    def skipped(self, section: str):
        self.results[section]["skipped"] += 1

    def failed(self, section: str, kind: str, message: str, item: Any):
        self.results[section]["failed"] += 1
        self.errors.append({"type": kind, "message": message, "item": item})

    def as_dict(self) -> dict:
        return {"success": not self.errors, "results": self.results, "errors": self.errors}


def _to_int(value) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _to_float(value) -> Optional[float]:
    try:
        return float(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _as_list(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value if v]


def movie_fields(item: Dict[str, Any]) -> dict:
    """Map a KKPhim movie object onto Movie columns."""
    if not item.get("name") or not item.get("slug"):
        raise ValueError("Movie name and slug are required")

    tmdb = item.get("tmdb") or {}
    imdb = item.get("imdb") or {}
    return {
        "name": item["name"],
        "slug": item["slug"],
        "origin_name": item.get("origin_name"),
        "content": item.get("content"),
        "year": _to_int(item.get("year")),
        "time": item.get("time"),
        "poster_url": item.get("poster_url"),
        "thumb_url": item.get("thumb_url"),
        "trailer_url": item.get("trailer_url"),
        "quality": item.get("quality"),
        "lang": item.get("lang"),
        "status": item.get("status"),
        "episode_current": item.get("episode_current"),
        "episode_total": item.get("episode_total"),
        "notify": item.get("notify"),
        "showtimes": item.get("showtimes"),
        "sub_docquyen": bool(item.get("sub_docquyen")),
        "is_copyright": bool(item.get("is_copyright")),
        "chieurap": bool(item.get("chieurap")),
        "actor": _as_list(item.get("actor")),
        "director": _as_list(item.get("director")),
        "tmdb_id": str(tmdb["id"]) if tmdb.get("id") not in (None, "") else None,
        "tmdb_type": tmdb.get("type"),
        "tmdb_season": _to_int(tmdb.get("season")),
        "vote_average": _to_float(tmdb.get("vote_average")),
        "vote_count": _to_int(tmdb.get("vote_count")),
        "imdb_id": imdb.get("id") or None,
    }


def _apply_relations(db: Session, movie: Movie, item: Dict[str, Any]) -> None:
    """Upsert genres (category), countries and type by slug and attach them."""
    genres = []
    for entry in item.get("category") or []:
        if entry.get("slug"):
            genres.append(taxonomy.genre.upsert_by_slug(db, name=entry.get("name"), slug=entry["slug"]))
    countries = []
    for entry in item.get("country") or []:
        if entry.get("slug"):
            countries.append(taxonomy.country.upsert_by_slug(db, name=entry.get("name"), slug=entry["slug"]))

    movie.genres = genres
    movie.countries = countries
    if item.get("type"):
        movie.type = taxonomy.movie_type.upsert_by_slug(db, name=item["type"], slug=item["type"])


def _remember(movie_ids: Dict[str, str], item: Dict[str, Any], db_id: str) -> None:
    for ref in (item.get("_id"), item.get("slug"), item.get("id")):
        if ref:
            movie_ids[str(ref)] = db_id


def _episode_key(movie_id: str, slug: str) -> str:
    return f"{movie_id}:{slug}"


# ============================================================
# Import
# ============================================================

def import_movies(db: Session, payload: Dict[str, List[dict]]) -> dict:
    report = ImportReport()
    movie_ids: Dict[str, str] = {}
    episode_ids: Dict[str, str] = {}

    for item in payload["movies"]:
        report.processed("movies")
        try:
            fields = movie_fields(item)
            if movie_crud.slug_taken(db, slug=fields["slug"]):
                raise ValueError(f"Movie with slug '{fields['slug']}' already exists")
            movie = Movie(**fields, view=_to_int(item.get("view")) or 0, is_imported=True)
            _apply_relations(db, movie, item)
            db.add(movie)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.warning(f"Movie import failed ({item.get('slug')}): {e}")
            report.failed("movies", "movie", str(e), item)
            continue
        _remember(movie_ids, item, movie.id)
        report.succeeded("movies")

    for item in payload["episodes"]:
        report.processed("episodes")
        movie_id = movie_ids.get(str(item.get("movie_id")))
        if not movie_id:
            report.failed("episodes", "episode", "Movie not found for episode", item)
            continue
        if not item.get("slug"):
            report.failed("episodes", "episode", "Episode slug is required", item)
            continue
        try:
            episode = Episode(name=item.get("name") or item["slug"], slug=item["slug"], movie_id=movie_id)
            db.add(episode)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.warning(f"Episode import failed ({item.get('slug')}): {e}")
            report.failed("episodes", "episode", str(e), item)
            continue
        episode_ids[_episode_key(movie_id, episode.slug)] = episode.id
        report.succeeded("episodes")

    for item in payload["episode_servers"]:
        report.processed("episode_servers")
        movie_id = movie_ids.get(str(item.get("movie_id")))
        episode_id = episode_ids.get(_episode_key(movie_id, item.get("slug"))) if movie_id else None
        if not episode_id:
            report.failed("episode_servers", "episode_server", "Episode not found for server", item)
            continue
        if not item.get("server_name"):
            report.failed("episode_servers", "episode_server", "Server name is required", item)
            continue
        try:
            db.add(EpisodeServer(
                server_name=item["server_name"],
                filename=item.get("filename"),
                link_embed=item.get("link_embed"),
                link_m3u8=item.get("link_m3u8"),
                link_mp4=item.get("link_mp4"),
                episode_id=episode_id,
            ))
            db.commit()
        except Exception as e:
            db.rollback()
            logger.warning(f"Episode server import failed ({item.get('server_name')}): {e}")
            report.failed("episode_servers", "episode_server", str(e), item)
            continue
        report.succeeded("episode_servers")

    logger.info(f"📥 Import finished: {report.results}")
    return report.as_dict()


# ============================================================
# Update (existing movies only)
# ============================================================

def update_movies(db: Session, payload: Dict[str, List[dict]]) -> dict:
    """
    Refresh movies that already exist (matched by slug) and add whatever
    episodes/servers they are missing. Unknown movies are skipped.
    """
    report = ImportReport(track_skipped=True)
    movie_ids: Dict[str, str] = {}

    for item in payload["movies"]:
        report.processed("movies")
        existing = movie_crud.get_by_slug(db, slug=item.get("slug")) if item.get("slug") else None
        if existing is None:
            report.skipped("movies")
            continue
        try:
            for field, value in movie_fields(item).items():
                setattr(existing, field, value)
            _apply_relations(db, existing, item)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.warning(f"Movie update failed ({item.get('slug')}): {e}")
            report.failed("movies", "movie", str(e), item)
            continue
        _remember(movie_ids, item, existing.id)
        report.succeeded("movies")

    episode_ids: Dict[str, str] = {}
    for item in payload["episodes"]:
        report.processed("episodes")
        movie_id = movie_ids.get(str(item.get("movie_id")))
        if not movie_id or not item.get("slug"):
            report.skipped("episodes")
            continue
        key = _episode_key(movie_id, item["slug"])
        episode = db.query(Episode).filter(Episode.movie_id == movie_id, Episode.slug == item["slug"]).first()
        if episode is not None:
            episode_ids[key] = episode.id
            report.skipped("episodes")
            continue
        try:
            episode = Episode(name=item.get("name") or item["slug"], slug=item["slug"], movie_id=movie_id)
            db.add(episode)
            db.commit()
        except Exception as e:
            db.rollback()
            report.failed("episodes", "episode", str(e), item)
            continue
        episode_ids[key] = episode.id
        report.succeeded("episodes")

    for item in payload["episode_servers"]:
        report.processed("episode_servers")
        movie_id = movie_ids.get(str(item.get("movie_id")))
        episode_id = episode_ids.get(_episode_key(movie_id, item.get("slug"))) if movie_id else None
        if not episode_id or not item.get("server_name"):
            report.skipped("episode_servers")
            continue
        exists = (
            db.query(EpisodeServer.id)
            .filter(EpisodeServer.episode_id == episode_id, EpisodeServer.server_name == item["server_name"])
            .first()
        )
        if exists:
            report.skipped("episode_servers")
            continue
        try:
            db.add(EpisodeServer(
                server_name=item["server_name"],
                filename=item.get("filename"),
                link_embed=item.get("link_embed"),
                link_m3u8=item.get("link_m3u8"),
                link_mp4=item.get("link_mp4"),
                episode_id=episode_id,
            ))
            db.commit()
        except Exception as e:
            db.rollback()
            report.failed("episode_servers", "episode_server", str(e), item)
            continue
        report.succeeded("episode_servers")

    logger.info(f"🔁 Update finished: {report.results}")
    return report.as_dict()
