import logging
import uuid
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import settings

logger = logging.getLogger(__name__)

# ============================================================
# Database Engine
# ============================================================


def _engine_options(url: str) -> dict:
    """Pool settings for PostgreSQL; SQLite gets a single shared connection."""
    if url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "pool_recycle": 3600,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    future=True,
    **_engine_options(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)


@event.listens_for(engine, "connect")
def receive_connect(dbapi_conn, connection_record):
    """SQLite ignores foreign keys unless asked"""
    if settings.DATABASE_URL.startswith("sqlite"):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")
    logger.debug("Database connection established")


# ============================================================
# Base Model
# ============================================================

Base = declarative_base()


def generate_id() -> str:
    """Primary keys are UUID4 strings"""
    return str(uuid.uuid4())


# ============================================================
# Session Dependency
# ============================================================

def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Usage:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            return db.query(Item).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ============================================================
# Health / Startup / Shutdown
# ============================================================

def check_db_health() -> bool:
    """Return True when the database answers SELECT 1."""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
    finally:
        db.close()


def init_db() -> None:
    logger.info("🔄 Checking database connection...")
    if check_db_health():
        logger.info("✅ Database health check passed")
    else:
        logger.error("❌ Database health check failed")


def close_db() -> None:
    """Dispose pooled connections on shutdown."""
    try:
        logger.info("🔄 Closing database connections...")
        engine.dispose()
        logger.info("✅ Database connections closed")
    except Exception as e:
        logger.error(f"❌ Error closing database: {e}")


__all__ = [
    'Base',
    'engine',
    'SessionLocal',
    'generate_id',
    'get_db',
    'check_db_health',
    'init_db',
    'close_db',
]
