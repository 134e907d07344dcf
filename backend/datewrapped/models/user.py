"""User model"""
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship
import uuid

from datewrapped.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """users table"""
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(320), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    last_sign_in_at = Column(DateTime, nullable=True)

    entries = relationship("DatingEntry", back_populates="user", cascade="all, delete-orphan")
    wrapped_shares = relationship("WrappedShare", back_populates="user", cascade="all, delete-orphan")
