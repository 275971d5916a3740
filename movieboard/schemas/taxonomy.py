from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class TaxonomyIn(BaseModel):
    """Body for creating or updating a genre, country or movie type"""
    name: Optional[str] = None
    slug: Optional[str] = None


class TaxonomyRef(BaseModel):
    id: str
    name: str
    slug: str

    class Config:
        from_attributes = True


class TaxonomyOut(TaxonomyRef):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
