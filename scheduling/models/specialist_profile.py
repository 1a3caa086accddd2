"""Specialist profile model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String

from scheduling.core import config
from scheduling.database import Base, UTCDateTime, utcnow


class SpecialistProfile(Base):
    """Per-specialist scheduling policy: enforcement flag and home timezone."""
    __tablename__ = "specialist_profiles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    schedule_enforced = Column(Boolean, nullable=False, default=False)
    timezone = Column(String, nullable=False, default=config.DEFAULT_SPECIALIST_TIMEZONE)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
