"""
conftest.py: shared fixtures

In-memory SQLite database, FastAPI TestClient with auth overrides,
a fake Firebase Admin and factory fixtures for the core models.

- Every test gets fresh tables
- Firebase is replaced: ID token "token-<uid>" and session cookie
  "session-<uid>" are valid, everything else is rejected
- `client` is a dashboard session for ADMIN_UID; `anon_client` has no session
"""

import os
os.environ["DATABASE_URL"] = "sqlite://"  # must be set before importing movieboard
os.environ["ENVIRONMENT"] = "test"
os.environ["SECURE_COOKIES"] = "false"
os.environ["HTTPS_ONLY"] = "false"
os.environ["FIREBASE_CREDENTIALS_PATH"] = ""
os.environ["FIREBASE_SERVICE_ACCOUNT_BASE64"] = ""
os.environ["MONGODB_URL"] = ""

import time
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from movieboard.models import (
    Base, Country, Episode, EpisodeServer, Genre, InteractionType, Movie,
    MovieType, User, UserInteraction, UserRole,
)
from movieboard.utils import firebase_auth

ADMIN_UID = "admin-uid"
CUSTOMER_UID = "customer-uid"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default; turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


def utc(days_ago: float = 0) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days_ago)


# ── Database ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# ── Firebase ─────────────────────────────────────────────────────────


def _uid_from(value: str, prefix: str) -> str:
    if not value or not value.startswith(prefix):
        raise ValueError("invalid credential")
    return value[len(prefix):]


@pytest.fixture(autouse=True)
def fake_firebase(monkeypatch):
    """Deterministic stand-in for the Firebase Admin calls."""

    def verify_id_token(id_token):
        uid = _uid_from(id_token, "token-")
        return {"uid": uid, "name": f"User {uid}", "email": f"{uid}@example.com"}

    def create_session_cookie(id_token, expires_in):
        return f"session-{_uid_from(id_token, 'token-')}"

    def verify_session_cookie(session_cookie, check_revoked=True):
        uid = _uid_from(session_cookie, "session-")
        return {"uid": uid, "exp": int(time.time()) + 3600}

    def create_custom_token(uid):
        return f"custom-{uid}"

    monkeypatch.setattr(firebase_auth, "init_firebase", lambda: False)
    monkeypatch.setattr(firebase_auth, "verify_id_token", verify_id_token)
    monkeypatch.setattr(firebase_auth, "create_session_cookie", create_session_cookie)
    monkeypatch.setattr(firebase_auth, "verify_session_cookie", verify_session_cookie)
    monkeypatch.setattr(firebase_auth, "create_custom_token", create_custom_token)


# ── Users ────────────────────────────────────────────────────────────


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    user = User(id=ADMIN_UID, name="Admin", email_or_phone="admin@example.com", role=UserRole.ADMIN)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def customer(db_session: Session) -> User:
    user = User(id=CUSTOMER_UID, name="Viewer", email_or_phone="viewer@example.com", role=UserRole.CUSTOMER)
    db_session.add(user)
    db_session.commit()
    return user


# ── Clients ──────────────────────────────────────────────────────────


@pytest.fixture()
def anon_client(db_session: Session) -> TestClient:
    """TestClient with the test DB and no session cookie."""
    from movieboard.database import get_db
    from movieboard.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def client(anon_client: TestClient, admin_user: User) -> TestClient:
    """Dashboard client signed in as the admin."""
    anon_client.cookies.set("auth_session", f"session-{ADMIN_UID}")
    return anon_client


# ── Factories ────────────────────────────────────────────────────────


@pytest.fixture()
def make_genre(db_session: Session):
    def _make(slug="hanh-dong", name=None, **extra) -> Genre:
        genre = Genre(name=name or slug.replace("-", " ").title(), slug=slug, **extra)
        db_session.add(genre)
        db_session.commit()
        return genre
    return _make


@pytest.fixture()
def make_country(db_session: Session):
    def _make(slug="han-quoc", name=None, **extra) -> Country:
        country = Country(name=name or slug.replace("-", " ").title(), slug=slug, **extra)
        db_session.add(country)
        db_session.commit()
        return country
    return _make


@pytest.fixture()
def make_type(db_session: Session):
    def _make(slug="series", name=None, **extra) -> MovieType:
        movie_type = MovieType(name=name or slug, slug=slug, **extra)
        db_session.add(movie_type)
        db_session.commit()
        return movie_type
    return _make


@pytest.fixture()
def make_movie(db_session: Session):
    counter = {"n": 0}

    def _make(slug=None, genres=(), countries=(), movie_type=None, **fields) -> Movie:
        counter["n"] += 1
        slug = slug or f"movie-{counter['n']}"
        movie = Movie(name=fields.pop("name", slug.replace("-", " ").title()), slug=slug, **fields)
        movie.genres = list(genres)
        movie.countries = list(countries)
        movie.type = movie_type
        db_session.add(movie)
        db_session.commit()
        return movie
    return _make


@pytest.fixture()
def make_episode(db_session: Session):
    def _make(movie: Movie, slug="tap-01", created_at=None, servers=()) -> Episode:
        episode = Episode(name=slug.replace("-", " ").title(), slug=slug, movie_id=movie.id)
        if created_at is not None:
            episode.created_at = created_at
        db_session.add(episode)
        db_session.flush()
        for server_name in servers:
            db_session.add(EpisodeServer(
                episode_id=episode.id,
                server_name=server_name,
                link_m3u8=f"https://cdn.example.com/{movie.slug}/{slug}.m3u8",
            ))
        db_session.commit()
        return episode
    return _make


@pytest.fixture()
def make_interaction(db_session: Session):
    def _make(user: User, movie: Movie, interaction_type=InteractionType.VIEW, days_ago=0.0, rating=None):
        interaction = UserInteraction(
            user_id=user.id,
            movie_id=movie.id,
            interaction_type=interaction_type,
            rating=rating,
            timestamp=utc(days_ago),
        )
        db_session.add(interaction)
        db_session.commit()
        return interaction
    return _make
