import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scheduling.core.errors import InvalidTimeRange, NotFound, SlotOverlap, SlotUnavailable, ValidationError
from scheduling.database import utcnow
from scheduling.models.availability import SLOT_AVAILABLE, SLOT_BOOKED, AvailabilitySlot
from scheduling.services.enforcement import is_schedule_enforced

logger = logging.getLogger(__name__)


def require_aware(value: datetime, field_name: str) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(f'{field_name} must include a timezone offset.', field=field_name)
    return value


def validate_time_range(start_time: datetime, end_time: datetime) -> None:
    require_aware(start_time, 'start_time')
    require_aware(end_time, 'end_time')
    if start_time >= end_time:
        raise InvalidTimeRange(
            'End time must be after start time.',
            start_time=start_time.isoformat(),
            end_time=end_time.isoformat(),
        )


def find_overlapping_slot(
    db: Session,
    specialist_id: int,
    start_time: datetime,
    end_time: datetime,
) -> AvailabilitySlot | None:
    return db.scalars(
        select(AvailabilitySlot).where(
            AvailabilitySlot.specialist_id == specialist_id,
            AvailabilitySlot.start_time < end_time,
            AvailabilitySlot.end_time > start_time,
        )
    ).first()


def list_public_availability(db: Session, specialist_id: int, now: datetime | None = None) -> list[AvailabilitySlot]:
    """Future, unbooked slots a client may pick; empty unless the specialist enforces slots."""
    if not is_schedule_enforced(db, specialist_id):
        return []

    now = now or utcnow()
    return list(
        db.scalars(
            select(AvailabilitySlot)
            .where(
                AvailabilitySlot.specialist_id == specialist_id,
                AvailabilitySlot.status == SLOT_AVAILABLE,
                AvailabilitySlot.start_time > now,
            )
            .order_by(AvailabilitySlot.start_time.asc())
        )
    )


def list_specialist_slots(
    db: Session,
    specialist_id: int,
    range_start: datetime | None = None,
    range_end: datetime | None = None,
) -> list[AvailabilitySlot]:
    query = select(AvailabilitySlot).where(AvailabilitySlot.specialist_id == specialist_id)
    if range_start is not None:
        query = query.where(AvailabilitySlot.end_time > require_aware(range_start, 'from'))
    if range_end is not None:
        query = query.where(AvailabilitySlot.start_time < require_aware(range_end, 'to'))
    return list(db.scalars(query.order_by(AvailabilitySlot.start_time.asc())))


def create_manual_slot(db: Session, specialist_id: int, start_time: datetime, end_time: datetime) -> AvailabilitySlot:
    validate_time_range(start_time, end_time)

    if find_overlapping_slot(db, specialist_id, start_time, end_time):
        raise SlotOverlap('This time overlaps an existing slot.')

    slot = AvailabilitySlot(
        specialist_id=specialist_id,
        start_time=start_time,
        end_time=end_time,
        status=SLOT_AVAILABLE,
    )
    db.add(slot)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise SlotOverlap('This time overlaps an existing slot.') from exc
    db.refresh(slot)
    return slot


def delete_slot(db: Session, slot_id: int, specialist_id: int) -> None:
    slot = db.scalars(
        select(AvailabilitySlot).where(
            AvailabilitySlot.id == slot_id,
            AvailabilitySlot.specialist_id == specialist_id,
        )
    ).first()
    if slot is None:
        raise NotFound("Availability slot not found or you don't have permission.")

    # Same compare-and-swap discipline as booking: only an available slot may go.
    result = db.execute(
        AvailabilitySlot.__table__.delete().where(
            AvailabilitySlot.id == slot_id,
            AvailabilitySlot.status == SLOT_AVAILABLE,
        )
    )
    if result.rowcount == 0:
        db.rollback()
        raise SlotUnavailable('Cannot delete a booked slot. Cancel the session instead.')
    db.commit()


def claim_slot(db: Session, slot_id: int) -> bool:
    """Flip one slot from available to booked in a single conditional UPDATE.

    Returns False when no row matched: the slot was booked first by someone
    else or it no longer exists. Does not commit.
    """
    result = db.execute(
        update(AvailabilitySlot)
        .where(
            AvailabilitySlot.id == slot_id,
            AvailabilitySlot.status == SLOT_AVAILABLE,
        )
        .values(status=SLOT_BOOKED)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
