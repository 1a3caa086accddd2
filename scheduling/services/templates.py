import logging
from datetime import time

from sqlalchemy import select
from sqlalchemy.orm import Session

from scheduling.core import config
from scheduling.core.errors import InvalidTimeRange, NotFound, ValidationError
from scheduling.models.schedule_template import ScheduleTemplate

logger = logging.getLogger(__name__)


def validate_template_fields(day_of_week: int, start_time: time, end_time: time, slot_duration_minutes: int) -> None:
    if not 0 <= day_of_week <= 6:
        raise ValidationError('day_of_week must be 0 (Mon) to 6 (Sun).', day_of_week=day_of_week)

    if start_time >= end_time:
        raise InvalidTimeRange(
            'Template start time must be before its end time.',
            start_time=start_time.isoformat(),
            end_time=end_time.isoformat(),
        )

    if slot_duration_minutes not in config.ALLOWED_SLOT_DURATIONS:
        raise ValidationError(
            'Unsupported slot duration.',
            slot_duration_minutes=slot_duration_minutes,
            allowed=list(config.ALLOWED_SLOT_DURATIONS),
        )


def list_templates(db: Session, specialist_id: int) -> list[ScheduleTemplate]:
    return list(
        db.scalars(
            select(ScheduleTemplate)
            .where(ScheduleTemplate.specialist_id == specialist_id)
            .order_by(ScheduleTemplate.day_of_week, ScheduleTemplate.start_time)
        )
    )


def get_template(db: Session, template_id: int, specialist_id: int) -> ScheduleTemplate:
    template = db.scalars(
        select(ScheduleTemplate).where(
            ScheduleTemplate.id == template_id,
            ScheduleTemplate.specialist_id == specialist_id,
        )
    ).first()
    if template is None:
        raise NotFound('Template not found.')
    return template


def create_template(
    db: Session,
    specialist_id: int,
    day_of_week: int,
    start_time: time,
    end_time: time,
    slot_duration_minutes: int | None = None,
    is_active: bool = True,
) -> ScheduleTemplate:
    if slot_duration_minutes is None:
        slot_duration_minutes = config.DEFAULT_SLOT_DURATION_MINUTES

    validate_template_fields(day_of_week, start_time, end_time, slot_duration_minutes)

    template = ScheduleTemplate(
        specialist_id=specialist_id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        slot_duration_minutes=slot_duration_minutes,
        is_active=is_active,
    )
    db.add(template)
    db.commit()
    db.refresh(template)

    logger.info('Specialist %s created template %s', specialist_id, template.id)
    return template


def update_template(
    db: Session,
    template_id: int,
    specialist_id: int,
    start_time: time | None = None,
    end_time: time | None = None,
    slot_duration_minutes: int | None = None,
    is_active: bool | None = None,
) -> ScheduleTemplate:
    template = get_template(db, template_id, specialist_id)

    new_start = start_time if start_time is not None else template.start_time
    new_end = end_time if end_time is not None else template.end_time
    new_duration = slot_duration_minutes if slot_duration_minutes is not None else template.slot_duration_minutes
    validate_template_fields(template.day_of_week, new_start, new_end, new_duration)

    template.start_time = new_start
    template.end_time = new_end
    template.slot_duration_minutes = new_duration
    if is_active is not None:
        template.is_active = is_active

    db.commit()
    db.refresh(template)
    return template


def set_template_active(db: Session, template_id: int, specialist_id: int, is_active: bool) -> ScheduleTemplate:
    template = get_template(db, template_id, specialist_id)
    template.is_active = is_active
    db.commit()
    db.refresh(template)
    return template


def delete_template(db: Session, template_id: int, specialist_id: int) -> None:
    # Slots generated from this template are kept.
    template = get_template(db, template_id, specialist_id)
    db.delete(template)
    db.commit()
    logger.info('Specialist %s deleted template %s', specialist_id, template_id)
