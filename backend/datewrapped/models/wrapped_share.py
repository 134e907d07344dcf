"""Wrapped share model"""
from sqlalchemy import Column, DateTime, Boolean, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
import uuid

from datewrapped.core.database import Base
from datewrapped.models.user import utcnow


class WrappedShare(Base):
    """Snapshot of a generated slide set"""
    __tablename__ = "wrapped_shares"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="wrapped_shares")
