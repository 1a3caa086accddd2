"""Booking engine.

Two entry points, routed by the specialist's enforcement flag:

* ``book_slot``: enforced mode. The slot flip is one conditional UPDATE and
  the session insert happens in the same transaction, so a lost race leaves
  nothing behind.
* ``request_free_time``: free mode. No slot is involved; the session starts
  pending until the specialist confirms it.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduling.core import config
from scheduling.core.errors import BookingModeMismatch, SlotNotFound, SlotUnavailable, Unauthorized, ValidationError
from scheduling.database import utcnow
from scheduling.models.availability import AvailabilitySlot
from scheduling.models.session import ConsultationSession
from scheduling.models.user import User
from scheduling.services.availability import claim_slot, validate_time_range
from scheduling.services.enforcement import get_specialist, is_schedule_enforced
from scheduling.services.session_state import initial_status

logger = logging.getLogger(__name__)


def require_client(user: User, action: str) -> None:
    if not user.is_client:
        raise Unauthorized(f'Only clients can {action}.')


def normalize_notes(notes: str | None) -> str | None:
    if notes is None:
        return None

    normalized = notes.strip()
    if not normalized:
        return None

    if len(normalized) > config.MAX_CLIENT_NOTES_LENGTH:
        raise ValidationError(f'Notes must be {config.MAX_CLIENT_NOTES_LENGTH} characters or fewer.')

    return normalized


def book_slot(db: Session, slot_id: int, client: User) -> ConsultationSession:
    require_client(client, 'book sessions')

    slot = db.get(AvailabilitySlot, slot_id)
    if slot is None:
        raise SlotNotFound('This time slot does not exist.', slot_id=slot_id)

    specialist_id = slot.specialist_id
    start_time, end_time = slot.start_time, slot.end_time

    if not is_schedule_enforced(db, specialist_id):
        raise BookingModeMismatch(
            'This specialist accepts free-time requests instead of slot bookings.',
            specialist_id=specialist_id,
        )

    try:
        if not claim_slot(db, slot_id):
            db.rollback()
            logger.warning('Client %s lost the race for slot %s', client.id, slot_id)
            raise SlotUnavailable('This time slot is no longer available.', slot_id=slot_id)

        session = ConsultationSession(
            specialist_id=specialist_id,
            client_id=client.id,
            availability_id=slot_id,
            start_time=start_time,
            end_time=end_time,
            status=initial_status(slot_based=True).value,
        )
        db.add(session)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(session)
    logger.info('Client %s booked slot %s as session %s', client.id, slot_id, session.id)
    return session


def request_free_time(
    db: Session,
    specialist_id: int,
    client: User,
    start_time: datetime,
    end_time: datetime,
    notes: str | None = None,
    now: datetime | None = None,
) -> ConsultationSession:
    require_client(client, 'request sessions')
    validate_time_range(start_time, end_time)

    now = now or utcnow()
    if start_time <= now:
        raise ValidationError('Sessions must be requested for a future time.', start_time=start_time.isoformat())

    client_notes = normalize_notes(notes)

    get_specialist(db, specialist_id)
    if is_schedule_enforced(db, specialist_id):
        raise BookingModeMismatch(
            'This specialist requires booking through available slots only.',
            specialist_id=specialist_id,
        )

    session = ConsultationSession(
        specialist_id=specialist_id,
        client_id=client.id,
        start_time=start_time,
        end_time=end_time,
        status=initial_status(slot_based=False).value,
        client_notes=client_notes,
    )
    db.add(session)
    db.commit()
    db.refresh(session)

    logger.info('Client %s requested free-time session %s with specialist %s', client.id, session.id, specialist_id)
    return session
