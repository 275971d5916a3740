# movieboard/models/country.py
"""Country of production"""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base, generate_id
from .movie import movie_countries


class Country(Base):
    __tablename__ = "countries"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), unique=True, index=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    movies = relationship("Movie", secondary=movie_countries, back_populates="countries")

    def __repr__(self):
        return f"<Country(id={self.id}, slug={self.slug})>"
