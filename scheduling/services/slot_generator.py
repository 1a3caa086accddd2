"""Recurring template expansion.

``expand_templates`` is a pure function: weekly windows, the ranges that
already exist, and a date range go in; the list of new, non-overlapping slot
ranges comes out. ``generate_slots`` is the thin persistence wrapper around
it.
"""

import logging
from bisect import bisect_right, insort
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, NamedTuple
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scheduling.core import config
from scheduling.core.errors import GenerationConflict, ValidationError
from scheduling.models.availability import SLOT_AVAILABLE, AvailabilitySlot
from scheduling.models.schedule_template import ScheduleTemplate
from scheduling.services.enforcement import get_or_create_profile

logger = logging.getLogger(__name__)

TimeRange = tuple[datetime, datetime]


class TemplateWindow(NamedTuple):
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int
    is_active: bool = True

    @classmethod
    def from_template(cls, template: ScheduleTemplate) -> 'TemplateWindow':
        return cls(
            day_of_week=template.day_of_week,
            start_time=template.start_time,
            end_time=template.end_time,
            slot_duration_minutes=template.slot_duration_minutes,
            is_active=bool(template.is_active),
        )


class _RangeIndex:
    """Sorted, non-overlapping ranges with an intersection probe."""

    def __init__(self, ranges: Iterable[TimeRange]) -> None:
        self._ranges: list[TimeRange] = sorted(ranges)
        self._starts = [start for start, _ in self._ranges]

    def overlaps(self, start: datetime, end: datetime) -> bool:
        position = bisect_right(self._starts, start)
        if position > 0 and self._ranges[position - 1][1] > start:
            return True
        if position < len(self._ranges) and self._ranges[position][0] < end:
            return True
        return False

    def add(self, start: datetime, end: datetime) -> None:
        position = bisect_right(self._starts, start)
        self._starts.insert(position, start)
        self._ranges.insert(position, (start, end))


def iterate_dates(from_date: date, to_date: date):
    current = from_date
    while current < to_date:
        yield current
        current += timedelta(days=1)


def iterate_window(day: date, window: TemplateWindow, tz: tzinfo):
    """Full-length steps of one template window on one day, in UTC.

    Stepping happens on UTC instants, so a window that spans a DST change
    yields slots of real elapsed duration. A wall-clock bound that falls in a
    spring-forward gap resolves with the offset in effect before the change.
    """
    step = timedelta(minutes=window.slot_duration_minutes)
    current = datetime.combine(day, window.start_time, tzinfo=tz).astimezone(timezone.utc)
    window_end = datetime.combine(day, window.end_time, tzinfo=tz).astimezone(timezone.utc)

    while current + step <= window_end:
        yield current, current + step
        current += step


def expand_templates(
    templates: Iterable[TemplateWindow],
    existing_ranges: Iterable[TimeRange],
    from_date: date,
    to_date: date,
    tz: tzinfo = timezone.utc,
) -> list[TimeRange]:
    """Expand active weekly windows over [from_date, to_date).

    Candidates that intersect an existing range, or a candidate accepted
    earlier in the same run, are skipped. A trailing remainder shorter than
    one slot is dropped.
    """
    by_weekday: dict[int, list[TemplateWindow]] = {}
    for window in templates:
        if not window.is_active or window.slot_duration_minutes <= 0:
            continue
        by_weekday.setdefault(window.day_of_week, []).append(window)

    for windows in by_weekday.values():
        windows.sort(key=lambda item: (item.start_time, item.end_time))

    taken = _RangeIndex(existing_ranges)
    accepted: list[TimeRange] = []

    for day in iterate_dates(from_date, to_date):
        for window in by_weekday.get(day.weekday(), []):
            for start, end in iterate_window(day, window, tz):
                if taken.overlaps(start, end):
                    continue
                taken.add(start, end)
                insort(accepted, (start, end))

    return accepted


def resolve_timezone(name: str | None) -> tzinfo:
    return ZoneInfo(name or config.DEFAULT_SPECIALIST_TIMEZONE)


def validate_generation_range(from_date: date, to_date: date) -> None:
    if (to_date - from_date).days > config.MAX_GENERATION_RANGE_DAYS:
        raise ValidationError(
            f'Date range cannot exceed {config.MAX_GENERATION_RANGE_DAYS} days.',
            from_date=from_date.isoformat(),
            to_date=to_date.isoformat(),
        )


def load_existing_ranges(db: Session, specialist_id: int, range_start: datetime, range_end: datetime) -> list[TimeRange]:
    rows = db.execute(
        select(AvailabilitySlot.start_time, AvailabilitySlot.end_time).where(
            AvailabilitySlot.specialist_id == specialist_id,
            AvailabilitySlot.start_time < range_end,
            AvailabilitySlot.end_time > range_start,
        )
    ).all()
    return [(start, end) for start, end in rows]


def generate_slots(db: Session, specialist_id: int, from_date: date, to_date: date) -> int:
    """Persist slots for the specialist's active templates; returns the count inserted."""
    if to_date <= from_date:
        return 0

    validate_generation_range(from_date, to_date)

    profile = get_or_create_profile(db, specialist_id)
    tz = resolve_timezone(profile.timezone)

    templates = [
        TemplateWindow.from_template(template)
        for template in db.scalars(
            select(ScheduleTemplate).where(
                ScheduleTemplate.specialist_id == specialist_id,
                ScheduleTemplate.is_active.is_(True),
            )
        )
    ]
    if not templates:
        logger.info('No active templates for specialist %s; nothing to generate', specialist_id)
        return 0

    # Pad by a day so slots crossing the range edge in UTC are seen.
    range_start = datetime.combine(from_date, time.min, tzinfo=tz) - timedelta(days=1)
    range_end = datetime.combine(to_date, time.min, tzinfo=tz) + timedelta(days=1)

    for attempt in range(1, config.GENERATION_MAX_ATTEMPTS + 1):
        existing = load_existing_ranges(db, specialist_id, range_start, range_end)
        candidates = expand_templates(templates, existing, from_date, to_date, tz)
        if not candidates:
            db.rollback()
            return 0

        db.add_all(
            AvailabilitySlot(
                specialist_id=specialist_id,
                start_time=start,
                end_time=end,
                status=SLOT_AVAILABLE,
            )
            for start, end in candidates
        )
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                'Concurrent slot generation for specialist %s (attempt %s/%s); recomputing',
                specialist_id,
                attempt,
                config.GENERATION_MAX_ATTEMPTS,
            )
            continue

        logger.info(
            'Generated %s slots for specialist %s over %s..%s',
            len(candidates),
            specialist_id,
            from_date,
            to_date,
        )
        return len(candidates)

    raise GenerationConflict('Slot generation kept colliding with a concurrent run; retry later.')
