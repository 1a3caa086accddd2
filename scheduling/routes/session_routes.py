from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduling.auth.dependencies import get_current_client, get_current_user
from scheduling.database import get_db
from scheduling.models.user import User
from scheduling.routes.common import database_unavailable
from scheduling.services import booking, session_state

router = APIRouter(tags=['sessions'])


class SessionResponse(BaseModel):
    id: int
    specialist_id: int
    client_id: int | None = None
    availability_id: int | None = None
    start_time: datetime
    end_time: datetime
    status: str
    client_notes: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class RequestFreeTimeRequest(BaseModel):
    specialist_id: int
    start_time: datetime
    end_time: datetime
    client_notes: str | None = None


@router.post('/book/{slot_id}', response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def book_slot(
    slot_id: int,
    current_user: User = Depends(get_current_client),
    db: Session = Depends(get_db),
):
    try:
        return booking.book_slot(db, slot_id, current_user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post('/request', response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def request_free_time(
    data: RequestFreeTimeRequest,
    current_user: User = Depends(get_current_client),
    db: Session = Depends(get_db),
):
    try:
        return booking.request_free_time(
            db,
            specialist_id=data.specialist_id,
            client=current_user,
            start_time=data.start_time,
            end_time=data.end_time,
            notes=data.client_notes,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/my', response_model=list[SessionResponse])
def list_my_sessions(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return session_state.list_my_sessions(db, current_user)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{session_id}/confirm', response_model=SessionResponse)
def confirm_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return session_state.confirm_session(db, session_id, current_user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{session_id}/complete', response_model=SessionResponse)
def complete_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return session_state.complete_session(db, session_id, current_user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{session_id}/cancel', response_model=SessionResponse)
def cancel_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return session_state.cancel_session(db, session_id, current_user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
