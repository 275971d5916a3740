# movieboard/models/movie_type.py
"""Movie type (single, series, hoathinh, tvshows...)"""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base, generate_id


class MovieType(Base):
    __tablename__ = "movie_types"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    movies = relationship("Movie", back_populates="type")

    def __repr__(self):
        return f"<MovieType(id={self.id}, slug={self.slug})>"
