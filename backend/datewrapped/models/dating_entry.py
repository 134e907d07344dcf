"""Dating entry model"""
from sqlalchemy import Column, String, DateTime, Integer, Numeric, Text, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
import uuid

from datewrapped.core.database import Base
from datewrapped.models.user import utcnow


class DatingEntry(Base):
    """dating_entries table, one row per person"""
    __tablename__ = "dating_entries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    person_name = Column(String(200), nullable=False, default="")
    platform = Column(String(50), nullable=False, default="Tinder")
    num_dates = Column(Integer, nullable=False, default=0)
    total_cost = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    avg_duration = Column(Numeric(6, 2, asdecimal=False), nullable=False, default=0)  # hours
    rating = Column(Integer, nullable=False, default=0)  # 0-5
    hotness = Column(Integer, nullable=True)
    hotness_scale = Column(Integer, nullable=False, default=10)  # 5 = legacy rows, 10 = current
    outcome = Column(String(50), nullable=False, default="Ongoing")
    occupation = Column(String(200), nullable=True)
    age = Column(Integer, nullable=True)
    relationship_status = Column(String(50), nullable=True)
    status = Column(String(50), nullable=True)
    red_flags = Column(JSON, nullable=False, default=list)
    green_flags = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="entries")
