"""Schedule template model definitions."""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, SmallInteger, Time

from scheduling.database import Base, UTCDateTime, utcnow


class ScheduleTemplate(Base):
    """A recurring weekly availability window for one specialist."""
    __tablename__ = "schedule_templates"
    __table_args__ = (
        CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_schedule_templates_day_of_week'),
        CheckConstraint('start_time < end_time', name='ck_schedule_templates_window'),
        CheckConstraint('slot_duration_minutes > 0', name='ck_schedule_templates_duration'),
    )

    id = Column(Integer, primary_key=True)
    specialist_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(SmallInteger, nullable=False)  # 0=Monday..6=Sunday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    slot_duration_minutes = Column(Integer, nullable=False, default=60)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
