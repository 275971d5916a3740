from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from ..models.user import UserRole


class UserUpsert(BaseModel):
    id_token: Optional[str] = None
    name: Optional[str] = None
    email_or_phone: Optional[str] = None


class AppUserCreate(BaseModel):
    uid: Optional[str] = None
    name: Optional[str] = None
    email_or_phone: Optional[str] = None


class UserLookup(BaseModel):
    uid: Optional[str] = None


class UserOut(BaseModel):
    id: str
    name: str
    email_or_phone: Optional[str] = None
    avatar_url: Optional[str] = None
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
