"""Consultation session model definitions."""

import enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text

from scheduling.database import Base, UTCDateTime, utcnow


class SessionStatus(str, enum.Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELED = 'canceled'


class ConsultationSession(Base):
    """A booked or requested consultation between a specialist and a client."""
    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint('start_time < end_time', name='ck_sessions_range'),
        Index('idx_sessions_specialist_start', 'specialist_id', 'start_time'),
        Index('idx_sessions_client_start', 'client_id', 'start_time'),
    )

    id = Column(Integer, primary_key=True)
    specialist_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    availability_id = Column(Integer, ForeignKey("availability.id"), nullable=True, unique=True)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    status = Column(String, nullable=False, default=SessionStatus.PENDING.value)
    client_notes = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
