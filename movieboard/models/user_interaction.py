import enum

from sqlalchemy import Column, String, DateTime, Float, ForeignKey, Enum, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base, generate_id


class InteractionType(str, enum.Enum):
    VIEW = "VIEW"
    LIKE = "LIKE"
    DISLIKE = "DISLIKE"
    RATE = "RATE"


class UserInteraction(Base):
    """A user's VIEW / LIKE / DISLIKE / RATE signal on a movie"""
    __tablename__ = "user_interactions"
    __table_args__ = (
        Index("ix_interaction_user_movie_type", "user_id", "movie_id", "interaction_type"),
        Index("ix_interaction_type_timestamp", "interaction_type", "timestamp"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    movie_id = Column(String(36), ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True)
    interaction_type = Column(Enum(InteractionType, name="interaction_type"), nullable=False)
    rating = Column(Float, nullable=True)  # 0-5, RATE only
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="interactions")
    movie = relationship("Movie", back_populates="interactions")
