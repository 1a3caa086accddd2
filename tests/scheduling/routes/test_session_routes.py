from datetime import datetime, timezone

import pytest
from fastapi import HTTPException

from scheduling.auth.dependencies import get_current_client
from scheduling.models.session import SessionStatus
from scheduling.routes.session_routes import (
    RequestFreeTimeRequest,
    SessionResponse,
    book_slot,
    cancel_session,
    complete_session,
    confirm_session,
    list_my_sessions,
    request_free_time,
)

START = datetime(2030, 1, 7, 9, 0, tzinfo=timezone.utc)
END = datetime(2030, 1, 7, 10, 0, tzinfo=timezone.utc)


def test_book_slot_route_returns_confirmed_session(db, seed, specialist, client_user) -> None:
    seed.profile(specialist.id, enforced=True)
    slot = seed.slot(specialist.id, START, END)

    session = SessionResponse.model_validate(book_slot(slot.id, current_user=client_user, db=db))

    assert session.status == 'confirmed'
    assert session.availability_id == slot.id


def test_second_booking_through_route_is_conflict(db, seed, specialist, client_user, other_client) -> None:
    seed.profile(specialist.id, enforced=True)
    slot = seed.slot(specialist.id, START, END)
    book_slot(slot.id, current_user=client_user, db=db)

    with pytest.raises(HTTPException) as exception_info:
        book_slot(slot.id, current_user=other_client, db=db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail['code'] == 'SLOT_UNAVAILABLE'


def test_request_free_time_route_creates_pending_session(db, specialist, client_user) -> None:
    request = RequestFreeTimeRequest(
        specialist_id=specialist.id,
        start_time=START,
        end_time=END,
        client_notes='Follow-up',
    )

    session = request_free_time(request, current_user=client_user, db=db)

    assert session.status == SessionStatus.PENDING.value
    assert session.client_notes == 'Follow-up'


def test_request_free_time_route_refused_for_enforced_schedule(db, seed, specialist, client_user) -> None:
    seed.profile(specialist.id, enforced=True)
    request = RequestFreeTimeRequest(specialist_id=specialist.id, start_time=START, end_time=END)

    with pytest.raises(HTTPException) as exception_info:
        request_free_time(request, current_user=client_user, db=db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail['code'] == 'BOOKING_MODE_MISMATCH'


def test_session_lifecycle_through_routes(db, seed, specialist, client_user) -> None:
    session = seed.session(specialist.id, client_user.id, START, END, SessionStatus.PENDING.value)

    assert confirm_session(session.id, current_user=specialist, db=db).status == 'confirmed'
    assert cancel_session(session.id, current_user=client_user, db=db).status == 'canceled'

    with pytest.raises(HTTPException) as exception_info:
        complete_session(session.id, current_user=specialist, db=db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail['current'] == 'canceled'


def test_list_my_sessions_route_is_scoped_to_caller(db, seed, specialist, client_user, other_client) -> None:
    mine = seed.session(specialist.id, client_user.id, START, END, SessionStatus.PENDING.value)
    seed.session(specialist.id, other_client.id, START, END, SessionStatus.PENDING.value)

    assert [s.id for s in list_my_sessions(current_user=client_user, db=db)] == [mine.id]
    assert len(list_my_sessions(current_user=specialist, db=db)) == 2


def test_get_current_client_rejects_specialist(specialist) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_client(current_user=specialist)

    assert exception_info.value.status_code == 403
