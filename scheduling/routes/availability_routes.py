from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduling.auth.dependencies import get_current_specialist
from scheduling.database import get_db
from scheduling.models.user import User
from scheduling.routes.common import database_unavailable, ensure_database_ready
from scheduling.services import availability

router = APIRouter(tags=['availability'])


class AvailabilitySlotResponse(BaseModel):
    id: int
    specialist_id: int
    start_time: datetime
    end_time: datetime
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class CreateSlotRequest(BaseModel):
    start_time: datetime
    end_time: datetime


@router.post('/slots', response_model=AvailabilitySlotResponse, status_code=status.HTTP_201_CREATED)
def create_slot(
    data: CreateSlotRequest,
    current_user: User = Depends(get_current_specialist),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return availability.create_manual_slot(db, current_user.id, data.start_time, data.end_time)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/slots', response_model=list[AvailabilitySlotResponse])
def list_my_slots(
    range_start: datetime | None = Query(default=None, alias='from'),
    range_end: datetime | None = Query(default=None, alias='to'),
    current_user: User = Depends(get_current_specialist),
    db: Session = Depends(get_db),
):
    try:
        return availability.list_specialist_slots(db, current_user.id, range_start, range_end)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.delete('/slots/{slot_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(
    slot_id: int,
    current_user: User = Depends(get_current_specialist),
    db: Session = Depends(get_db),
):
    try:
        availability.delete_slot(db, slot_id, current_user.id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
