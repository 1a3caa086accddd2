"""Availability model definitions."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, UniqueConstraint

from scheduling.database import Base, UTCDateTime, utcnow


SLOT_AVAILABLE = 'available'
SLOT_BOOKED = 'booked'


class AvailabilitySlot(Base):
    """A concrete, dated, bookable interval."""
    __tablename__ = "availability"
    __table_args__ = (
        UniqueConstraint('specialist_id', 'start_time', name='uq_availability_specialist_start'),
        CheckConstraint('start_time < end_time', name='ck_availability_range'),
        CheckConstraint("status IN ('available', 'booked')", name='ck_availability_status'),
        Index('idx_availability_specialist_range', 'specialist_id', 'start_time', 'end_time'),
        Index('idx_availability_status_start', 'status', 'start_time'),
    )

    id = Column(Integer, primary_key=True)
    specialist_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    status = Column(String, nullable=False, default=SLOT_AVAILABLE)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    @property
    def is_booked(self) -> bool:
        return self.status == SLOT_BOOKED
