"""
Recommendation strategies

Every function returns ``(items, strategy)`` where each item is a dict with
a ``movie`` plus the signal it was ranked on. ``strategy`` is a short label
the clients log and display for debugging.
"""
import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session, selectinload

from ..crud.movie import SUMMARY_OPTIONS, movie as movie_crud
from ..models import Country, Episode, Genre, InteractionType, Movie, UserInteraction
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)

RECENT_WINDOW_DAYS = 7


# ============================================================
# Recently added (episodes in the last 7 days)
# ============================================================

def recently_added(
    db: Session,
    limit: int,
    type_id: Optional[str] = None,
    genre_id: Optional[str] = None,
) -> Tuple[List[dict], str]:
    since = utcnow() - timedelta(days=RECENT_WINDOW_DAYS)
    suffix = "_in_type" if type_id else "_in_genre" if genre_id else ""

    query = db.query(Episode.movie_id, Episode.created_at).filter(Episode.created_at >= since)
    if type_id or genre_id:
        query = query.join(Movie, Movie.id == Episode.movie_id)
        if type_id:
            query = query.filter(Movie.type_id == type_id)
        if genre_id:
            query = query.filter(Movie.genres.any(Genre.id == genre_id))
    rows = query.order_by(Episode.created_at.desc()).all()

    # Rows are newest first, so the first time a movie shows up is its latest episode
    latest: Dict[str, datetime] = {}
    for movie_id, created_at in rows:
        if movie_id not in latest:
            latest[movie_id] = created_at

    if not latest:
        return [], f"no_episodes_last_{RECENT_WINDOW_DAYS}_days{suffix}"

    ranked = sorted(latest.items(), key=lambda pair: pair[1], reverse=True)[:limit]
    movies = movie_crud.get_many(db, [movie_id for movie_id, _ in ranked])
    items = [{"movie": movie, "latest_episode_at": latest[movie.id]} for movie in movies]
    return items, f"recently_updated_last_{RECENT_WINDOW_DAYS}_days{suffix}"


# ============================================================
# Content-based scoring
# ============================================================

def feature_score(movie: Movie, genre_ids: Set[str], country_ids: Set[str]) -> int:
    """Shared genres count double, shared countries once."""
    shared_genres = sum(1 for genre in movie.genres if genre.id in genre_ids)
    shared_countries = sum(1 for country in movie.countries if country.id in country_ids)
    return shared_genres * 2 + shared_countries


def _feature_candidates(
    db: Session,
    genre_ids: Set[str],
    country_ids: Set[str],
    exclude_ids: Iterable[str],
    limit: int,
) -> List[Movie]:
    conditions = []
    if genre_ids:
        conditions.append(Movie.genres.any(Genre.id.in_(list(genre_ids))))
    if country_ids:
        conditions.append(Movie.countries.any(Country.id.in_(list(country_ids))))
    if not conditions:
        return []

    query = db.query(Movie).options(*SUMMARY_OPTIONS).filter(or_(*conditions))
    exclude_ids = list(exclude_ids)
    if exclude_ids:
        query = query.filter(Movie.id.notin_(exclude_ids))
    return query.order_by(Movie.rating.desc(), Movie.view.desc(), Movie.id).limit(limit).all()


def _rank_by_features(candidates: List[Movie], genre_ids: Set[str], country_ids: Set[str], limit: int) -> List[dict]:
    scored = [
        {"movie": candidate, "score": feature_score(candidate, genre_ids, country_ids)}
        for candidate in candidates
    ]
    # stable: ties keep the rating/view order from the query
    scored.sort(key=lambda item: item["score"], reverse=True)
    return scored[:limit]


def similar_movies(db: Session, movie_id: str, limit: int = 10) -> Tuple[List[dict], str]:
    movie = (
        db.query(Movie)
        .options(selectinload(Movie.genres), selectinload(Movie.countries))
        .filter(Movie.id == movie_id)
        .first()
    )
    if movie is None:
        return [], "not_found"

    genre_ids = {genre.id for genre in movie.genres}
    country_ids = {country.id for country in movie.countries}
    candidates = _feature_candidates(db, genre_ids, country_ids, [movie.id], limit * 3)
    if not candidates:
        return [], "none"
    return _rank_by_features(candidates, genre_ids, country_ids, limit), "feature_matching"


# ============================================================
# Trending (recent VIEW interactions, diversified)
# ============================================================

def _genre_keys(movie: Movie) -> List[str]:
    return [genre.slug for genre in movie.genres]


def _country_keys(movie: Movie) -> List[str]:
    return [country.slug for country in movie.countries]


def diversify(
    movies: List[Movie],
    limit: int,
    max_per_group: int,
    group_keys: Callable[[Movie], List[str]],
) -> List[Movie]:
    """
    Pick movies in order while no group exceeds ``max_per_group``,
    then top up from the skipped ones if the result is short.
    """
    counts: Dict[str, int] = defaultdict(int)
    selected: List[Movie] = []
    skipped: List[Movie] = []

    for movie in movies:
        if len(selected) >= limit:
            break
        keys = group_keys(movie)
        if all(counts[key] < max_per_group for key in keys):
            selected.append(movie)
            for key in keys:
                counts[key] += 1
        else:
            skipped.append(movie)

    for movie in skipped:
        if len(selected) >= limit:
            break
        selected.append(movie)
    return selected


def trending(
    db: Session,
    limit: int,
    days: int = 3,
    multiplier: int = 2,
    max_per_group: int = 3,
    group_by: str = "genre",
    type_id: Optional[str] = None,
    genre_id: Optional[str] = None,
    prefix: str = "popularity",
) -> Tuple[List[dict], str]:
    since = utcnow() - timedelta(days=days)
    views = func.count(UserInteraction.id).label("views")

    query = (
        db.query(UserInteraction.movie_id, views)
        .filter(
            UserInteraction.interaction_type == InteractionType.VIEW,
            UserInteraction.timestamp >= since,
        )
    )
    if type_id or genre_id:
        query = query.join(Movie, Movie.id == UserInteraction.movie_id)
        if type_id:
            query = query.filter(Movie.type_id == type_id)
        if genre_id:
            query = query.filter(Movie.genres.any(Genre.id == genre_id))
    rows = (
        query.group_by(UserInteraction.movie_id)
        .order_by(views.desc(), UserInteraction.movie_id)
        .limit(limit * multiplier)
        .all()
    )

    if not rows:
        fallback = db.query(Movie).options(*SUMMARY_OPTIONS)
        if type_id:
            fallback = fallback.filter(Movie.type_id == type_id)
        if genre_id:
            fallback = fallback.filter(Movie.genres.any(Genre.id == genre_id))
        movies = fallback.order_by(Movie.view.desc(), Movie.id).limit(limit).all()
        items = [{"movie": movie, "recent_views": 0} for movie in movies]
        return items, f"{prefix}_fallback_no_interactions"

    recent_views = {movie_id: count for movie_id, count in rows}
    candidates = movie_crud.get_many(db, [movie_id for movie_id, _ in rows])
    keys = _country_keys if group_by == "country" else _genre_keys
    picked = diversify(candidates, limit, max_per_group, keys)
    items = [{"movie": movie, "recent_views": recent_views[movie.id]} for movie in picked]
    return items, f"{prefix}_diversified_{group_by}"


def global_trending(db: Session, limit: int) -> Tuple[List[dict], str]:
    return trending(db, limit, days=3, multiplier=2, max_per_group=3, group_by="genre")


def type_trending(db: Session, type_id: str, limit: int) -> Tuple[List[dict], str]:
    return trending(
        db, limit, days=7, multiplier=3, max_per_group=2,
        group_by="genre", type_id=type_id, prefix="type_popularity",
    )


def genre_trending(db: Session, genre_id: str, limit: int) -> Tuple[List[dict], str]:
    return trending(
        db, limit, days=7, multiplier=3, max_per_group=3,
        group_by="country", genre_id=genre_id, prefix="genre_popularity",
    )


# ============================================================
# Personalized (recent views / likes)
# ============================================================

HISTORY_SIZES = {
    InteractionType.VIEW: 25,
    InteractionType.LIKE: 15,
}

STRATEGY_LABELS = {
    InteractionType.VIEW: "views",
    InteractionType.LIKE: "likes",
}


def personalized(
    db: Session,
    user_id: str,
    interaction_type: InteractionType,
    limit: int = 10,
) -> Tuple[List[dict], str]:
    label = STRATEGY_LABELS[interaction_type]
    recent = (
        db.query(UserInteraction.movie_id)
        .filter(
            UserInteraction.user_id == user_id,
            UserInteraction.interaction_type == interaction_type,
        )
        .order_by(UserInteraction.timestamp.desc())
        .limit(HISTORY_SIZES[interaction_type])
        .all()
    )
    if not recent:
        return [], f"no_recent_{label}"

    seed_movies = movie_crud.get_many(db, [movie_id for (movie_id,) in recent])
    genre_ids = {genre.id for movie in seed_movies for genre in movie.genres}
    country_ids = {country.id for movie in seed_movies for country in movie.countries}

    interacted = {
        movie_id for (movie_id,) in
        db.query(UserInteraction.movie_id).filter(UserInteraction.user_id == user_id).distinct()
    }
    candidates = _feature_candidates(db, genre_ids, country_ids, interacted, limit * 5)
    if not candidates:
        return [], "no_similar_found"

    logger.debug(f"personalized[{label}] user={user_id} candidates={len(candidates)}")
    return _rank_by_features(candidates, genre_ids, country_ids, limit), f"content_based_recent_{label}"


# ============================================================
# Hybrid "for you" (collaborative, then content, then popularity)
# ============================================================

MIN_POSITIVE_FOR_COLLAB = 5
SIMILAR_USER_OVERLAP = 3
POSITIVE_RATING_THRESHOLD = 4
POSITIVE_HISTORY_SIZE = 100
NEIGHBOUR_SCAN_SIZE = 1000
MAX_SIMILAR_USERS = 50

POSITIVE = or_(
    UserInteraction.interaction_type == InteractionType.LIKE,
    and_(
        UserInteraction.interaction_type == InteractionType.RATE,
        UserInteraction.rating >= POSITIVE_RATING_THRESHOLD,
    ),
)


def _positive_movie_ids(db: Session, user_id: str) -> List[str]:
    rows = (
        db.query(UserInteraction.movie_id)
        .filter(UserInteraction.user_id == user_id, POSITIVE)
        .order_by(UserInteraction.timestamp.desc())
        .limit(POSITIVE_HISTORY_SIZE)
        .all()
    )
    return list(dict.fromkeys(movie_id for (movie_id,) in rows))


def _preferred_features(db: Session, movie_ids: List[str]) -> Tuple[Set[str], Set[str]]:
    movies = movie_crud.get_many(db, movie_ids)
    genre_ids = {genre.id for movie in movies for genre in movie.genres}
    country_ids = {country.id for movie in movies for country in movie.countries}
    return genre_ids, country_ids


def _content_matches(db: Session, seed_ids: List[str], exclude_ids: Set[str], limit: int) -> List[dict]:
    if not seed_ids or limit <= 0:
        return []
    genre_ids, country_ids = _preferred_features(db, seed_ids)
    candidates = _feature_candidates(db, genre_ids, country_ids, exclude_ids, limit)
    return [{"movie": movie, "score": 0} for movie in candidates]


def _most_viewed(db: Session, exclude_ids: Set[str], limit: int) -> List[dict]:
    if limit <= 0:
        return []
    query = db.query(Movie).options(*SUMMARY_OPTIONS)
    if exclude_ids:
        query = query.filter(Movie.id.notin_(list(exclude_ids)))
    movies = query.order_by(Movie.view.desc(), Movie.id).limit(limit).all()
    return [{"movie": movie, "score": 0} for movie in movies]


def _similar_users(db: Session, user_id: str, positive_ids: List[str]) -> List[str]:
    """Users sharing at least SIMILAR_USER_OVERLAP positive movies, most overlap first."""
    rows = (
        db.query(UserInteraction.user_id, UserInteraction.movie_id)
        .filter(
            UserInteraction.movie_id.in_(positive_ids),
            UserInteraction.user_id != user_id,
            POSITIVE,
        )
        .limit(NEIGHBOUR_SCAN_SIZE)
        .all()
    )
    shared: Dict[str, Set[str]] = defaultdict(set)
    for other_id, movie_id in rows:
        shared[other_id].add(movie_id)

    overlaps = [(other_id, len(movies)) for other_id, movies in shared.items()]
    overlaps = [pair for pair in overlaps if pair[1] >= SIMILAR_USER_OVERLAP]
    overlaps.sort(key=lambda pair: pair[1], reverse=True)
    return [other_id for other_id, _ in overlaps[:MAX_SIMILAR_USERS]]


def _collaborative(db: Session, similar_ids: List[str], exclude_ids: Set[str], limit: int) -> List[dict]:
    query = db.query(UserInteraction.movie_id).filter(UserInteraction.user_id.in_(similar_ids), POSITIVE)
    if exclude_ids:
        query = query.filter(UserInteraction.movie_id.notin_(list(exclude_ids)))
    counts = Counter(movie_id for (movie_id,) in query.limit(limit * 5).all())

    top = [movie_id for movie_id, _ in counts.most_common(limit * 2)]
    items = [{"movie": movie, "score": counts[movie.id]} for movie in movie_crud.get_many(db, top)]
    items.sort(key=lambda item: item["score"], reverse=True)
    return items[:limit]


def hybrid_for_you(db: Session, user_id: str, limit: int = 10) -> Tuple[List[dict], str]:
    """
    Likes and ratings of 4+ are the positive signal.

    Users with fewer than MIN_POSITIVE_FOR_COLLAB of them get content
    matches on their few favourites, else the most viewed movies. Everyone
    else gets movies liked by similar users, topped up with content matches
    and then the most viewed movies. Movies the user already interacted
    with are never returned.
    """
    positive_ids = _positive_movie_ids(db, user_id)
    interacted = {
        movie_id for (movie_id,) in
        db.query(UserInteraction.movie_id).filter(UserInteraction.user_id == user_id).distinct()
    }

    if len(positive_ids) < MIN_POSITIVE_FOR_COLLAB:
        items = _content_matches(db, positive_ids, interacted, limit)
        if items:
            return items, "cold_start_content_based"
        return _most_viewed(db, interacted, limit), "cold_start_popular"

    items: List[dict] = []
    strategy = "popularity_fallback"

    similar_ids = _similar_users(db, user_id, positive_ids)
    if similar_ids:
        items = _collaborative(db, similar_ids, interacted, limit)
        if items:
            strategy = "collaborative_user_based"
    logger.debug(f"hybrid user={user_id} similar_users={len(similar_ids)} collaborative={len(items)}")

    if len(items) < limit:
        exclude = interacted | {item["movie"].id for item in items}
        content = _content_matches(db, positive_ids, exclude, limit - len(items))
        items.extend(content)
        if strategy == "collaborative_user_based" and content:
            strategy = "collaborative_with_content_fallback"
        elif not strategy.startswith("collaborative"):
            strategy = "content_based_fallback" if items else "popularity_fallback"

    if len(items) < limit:
        exclude = interacted | {item["movie"].id for item in items}
        items.extend(_most_viewed(db, exclude, limit - len(items)))
        if strategy in ("popularity_fallback", "content_based_fallback"):
            strategy = "popularity_fallback" if items else "none"

    return items[:limit], strategy
