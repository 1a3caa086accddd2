"""Per-specialist enforcement flag.

When ``schedule_enforced`` is true, clients may only book generated slots.
When false, clients send free-time requests that the specialist confirms.
The flag is always read from the database, never cached between requests.
"""

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from scheduling.core import config
from scheduling.core.errors import NotFound, Unauthorized, ValidationError
from scheduling.models.specialist_profile import SpecialistProfile
from scheduling.models.user import User

logger = logging.getLogger(__name__)


def get_specialist(db: Session, specialist_id: int) -> User:
    specialist = db.get(User, specialist_id)
    if specialist is None or not specialist.is_specialist:
        raise NotFound('Specialist not found.')
    return specialist


def get_or_create_profile(db: Session, specialist_id: int) -> SpecialistProfile:
    profile = db.get(SpecialistProfile, specialist_id)
    if profile is not None:
        return profile

    profile = SpecialistProfile(
        user_id=specialist_id,
        schedule_enforced=False,
        timezone=config.DEFAULT_SPECIALIST_TIMEZONE,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def is_schedule_enforced(db: Session, specialist_id: int) -> bool:
    profile = db.get(SpecialistProfile, specialist_id, populate_existing=True)
    return bool(profile and profile.schedule_enforced)


def require_specialist(user: User) -> None:
    if not user.is_specialist:
        raise Unauthorized('Only specialists can manage schedules.')


def set_schedule_enforced(db: Session, specialist: User, enforced: bool) -> SpecialistProfile:
    require_specialist(specialist)

    profile = get_or_create_profile(db, specialist.id)
    profile.schedule_enforced = enforced
    db.commit()
    db.refresh(profile)

    logger.info('Specialist %s set schedule_enforced=%s', specialist.id, enforced)
    return profile


def set_timezone(db: Session, specialist: User, timezone_name: str) -> SpecialistProfile:
    require_specialist(specialist)

    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f'Unknown timezone: {timezone_name}.') from exc

    profile = get_or_create_profile(db, specialist.id)
    profile.timezone = timezone_name
    db.commit()
    db.refresh(profile)
    return profile
