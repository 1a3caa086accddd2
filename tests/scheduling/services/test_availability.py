from datetime import datetime, timedelta, timezone

import pytest

from scheduling.core.errors import InvalidTimeRange, NotFound, SlotOverlap, SlotUnavailable, ValidationError
from scheduling.models.availability import SLOT_BOOKED
from scheduling.models.user import ROLE_SPECIALIST
from scheduling.services import availability

NOW = datetime(2026, 1, 5, 10, 30, tzinfo=timezone.utc)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_public_availability_lists_only_future_available_slots(db, seed, specialist) -> None:
    seed.profile(specialist.id, enforced=True)
    seed.slot(specialist.id, utc(2026, 1, 5, 9, 0), utc(2026, 1, 5, 10, 0))
    seed.slot(specialist.id, utc(2026, 1, 5, 11, 0), utc(2026, 1, 5, 12, 0), status=SLOT_BOOKED)
    later = seed.slot(specialist.id, utc(2026, 1, 5, 13, 0), utc(2026, 1, 5, 14, 0))
    soon = seed.slot(specialist.id, utc(2026, 1, 5, 12, 0), utc(2026, 1, 5, 13, 0))

    slots = availability.list_public_availability(db, specialist.id, now=NOW)

    assert [slot.id for slot in slots] == [soon.id, later.id]


def test_public_availability_is_empty_when_not_enforced(db, seed, specialist) -> None:
    seed.profile(specialist.id, enforced=False)
    seed.slot(specialist.id, utc(2026, 1, 5, 12, 0), utc(2026, 1, 5, 13, 0))

    assert availability.list_public_availability(db, specialist.id, now=NOW) == []


def test_create_manual_slot_rejects_overlap(db, specialist) -> None:
    availability.create_manual_slot(db, specialist.id, utc(2026, 1, 5, 9, 0), utc(2026, 1, 5, 10, 0))

    with pytest.raises(SlotOverlap) as exception_info:
        availability.create_manual_slot(db, specialist.id, utc(2026, 1, 5, 9, 30), utc(2026, 1, 5, 10, 30))

    assert exception_info.value.status_code == 409


def test_create_manual_slot_allows_adjacent_and_other_specialists(db, seed, specialist) -> None:
    other = seed.user('other-specialist@example.com', ROLE_SPECIALIST)
    availability.create_manual_slot(db, specialist.id, utc(2026, 1, 5, 9, 0), utc(2026, 1, 5, 10, 0))

    adjacent = availability.create_manual_slot(db, specialist.id, utc(2026, 1, 5, 10, 0), utc(2026, 1, 5, 10, 45))
    same_time = availability.create_manual_slot(db, other.id, utc(2026, 1, 5, 9, 0), utc(2026, 1, 5, 10, 0))

    assert adjacent.end_time - adjacent.start_time == utc(2026, 1, 5, 10, 45) - utc(2026, 1, 5, 10, 0)
    assert same_time.specialist_id == other.id


def test_create_manual_slot_validates_range_and_timezone(db, specialist) -> None:
    with pytest.raises(InvalidTimeRange):
        availability.create_manual_slot(db, specialist.id, utc(2026, 1, 5, 10, 0), utc(2026, 1, 5, 9, 0))
    with pytest.raises(ValidationError):
        availability.create_manual_slot(db, specialist.id, datetime(2026, 1, 5, 9, 0), datetime(2026, 1, 5, 10, 0))


def test_slot_times_round_trip_as_utc_instants(db, specialist) -> None:
    plus_two = timezone(timedelta(hours=2))
    slot = availability.create_manual_slot(
        db, specialist.id, datetime(2026, 1, 5, 11, 0, tzinfo=plus_two), datetime(2026, 1, 5, 12, 0, tzinfo=plus_two)
    )
    db.expire_all()

    stored = availability.list_specialist_slots(db, specialist.id)[0]
    assert stored.id == slot.id
    assert stored.start_time == utc(2026, 1, 5, 9, 0)
    assert stored.start_time.tzinfo is not None


def test_list_specialist_slots_filters_by_range(db, seed, specialist) -> None:
    seed.slot(specialist.id, utc(2026, 1, 5, 9, 0), utc(2026, 1, 5, 10, 0))
    inside = seed.slot(specialist.id, utc(2026, 1, 6, 9, 0), utc(2026, 1, 6, 10, 0), status=SLOT_BOOKED)

    slots = availability.list_specialist_slots(db, specialist.id, utc(2026, 1, 6), utc(2026, 1, 7))

    assert [slot.id for slot in slots] == [inside.id]


def test_delete_slot_refuses_booked_slot(db, seed, specialist) -> None:
    booked = seed.slot(specialist.id, utc(2026, 1, 5, 9, 0), utc(2026, 1, 5, 10, 0), status=SLOT_BOOKED)

    with pytest.raises(SlotUnavailable):
        availability.delete_slot(db, booked.id, specialist.id)

    assert len(availability.list_specialist_slots(db, specialist.id)) == 1


def test_delete_slot_is_scoped_to_owner(db, seed, specialist) -> None:
    other = seed.user('other-specialist@example.com', ROLE_SPECIALIST)
    slot = seed.slot(other.id, utc(2026, 1, 5, 9, 0), utc(2026, 1, 5, 10, 0))

    with pytest.raises(NotFound):
        availability.delete_slot(db, slot.id, specialist.id)

    availability.delete_slot(db, slot.id, other.id)
    assert availability.list_specialist_slots(db, other.id) == []


def test_claim_slot_succeeds_once(db, seed, specialist) -> None:
    slot = seed.slot(specialist.id, utc(2026, 1, 5, 9, 0), utc(2026, 1, 5, 10, 0))

    assert availability.claim_slot(db, slot.id) is True
    db.commit()
    assert availability.claim_slot(db, slot.id) is False
    assert availability.claim_slot(db, 999) is False
