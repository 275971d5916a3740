from sqlalchemy import Column, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base, generate_id


class WatchHistory(Base):
    """Watch History - resume playback per (user, movie, server)"""
    __tablename__ = "watch_history"
    __table_args__ = (
        UniqueConstraint("user_id", "movie_id", "episode_server_id", name="uq_watch_history_user_movie_server"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    movie_id = Column(String(36), ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True)
    episode_server_id = Column(String(36), ForeignKey("episode_servers.id", ondelete="CASCADE"), nullable=False)

    progress = Column(Float, default=0.0, nullable=False)  # seconds
    duration_watched = Column(Float, default=0.0, nullable=False)  # accumulated seconds

    watched_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="watch_history", foreign_keys=[user_id])
    movie = relationship("Movie", back_populates="watch_history", foreign_keys=[movie_id])
    episode_server = relationship("EpisodeServer", back_populates="watch_history", foreign_keys=[episode_server_id])
