import logging
from sqlalchemy.orm import Session
from .database import SessionLocal, engine
from .models import Base, User, UserRole
from .config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_tables() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


def init_db(db: Session) -> None:
    """Promote FIRST_ADMIN_UID to ADMIN, creating the user row if needed"""
    uid = settings.FIRST_ADMIN_UID
    if not uid:
        logger.info("FIRST_ADMIN_UID not set, skipping admin setup")
        return

    user = db.query(User).filter(User.id == uid).first()
    if not user:
        user = User(id=uid, name="Admin", role=UserRole.ADMIN)
        db.add(user)
        logger.info(f"Admin created: {uid}")
    elif user.role != UserRole.ADMIN:
        user.role = UserRole.ADMIN
        logger.info(f"User promoted to admin: {uid}")
    else:
        logger.info("Admin already exists")
    db.commit()


def main() -> None:
    logger.info("Creating initial data")
    create_tables()
    db = SessionLocal()
    try:
        init_db(db)
    finally:
        db.close()
    logger.info("Initial data created")


if __name__ == "__main__":
    main()
