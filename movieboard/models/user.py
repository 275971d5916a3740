# movieboard/models/user.py
"""
Platform users

The primary key is the Firebase Authentication UID, so no local
password or token storage is needed.
"""
import enum

from sqlalchemy import Column, String, DateTime, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"


class User(Base):
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)  # Firebase UID
    name = Column(String(255), nullable=False)
    email_or_phone = Column(String(255), nullable=True, index=True)
    avatar_url = Column(String(1000), nullable=True)
    role = Column(Enum(UserRole, name="user_role"), default=UserRole.CUSTOMER, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    interactions = relationship(
        "UserInteraction",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    watch_history = relationship(
        "WatchHistory",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User(id={self.id}, role={self.role})>"
