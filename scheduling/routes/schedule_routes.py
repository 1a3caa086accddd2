from datetime import date, datetime, time

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduling.auth.dependencies import get_current_specialist, get_current_user
from scheduling.database import get_db
from scheduling.models.user import User
from scheduling.routes.availability_routes import AvailabilitySlotResponse
from scheduling.routes.common import database_unavailable, ensure_database_ready
from scheduling.services import enforcement, slot_generator, templates
from scheduling.services.availability import list_public_availability

router = APIRouter(tags=['schedule'])


class ScheduleTemplateResponse(BaseModel):
    id: int
    specialist_id: int
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CreateTemplateRequest(BaseModel):
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int | None = None
    is_active: bool = True


class UpdateTemplateRequest(BaseModel):
    start_time: time | None = None
    end_time: time | None = None
    slot_duration_minutes: int | None = None
    is_active: bool | None = None


class SetTemplateActiveRequest(BaseModel):
    is_active: bool


class GenerateSlotsRequest(BaseModel):
    from_date: date
    to_date: date


class GenerateSlotsResponse(BaseModel):
    generated_count: int


class SetScheduleEnforcedRequest(BaseModel):
    schedule_enforced: bool


class SetTimezoneRequest(BaseModel):
    timezone: str

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Timezone is required.')
        return normalized


class ScheduleSettingsResponse(BaseModel):
    specialist_id: int
    schedule_enforced: bool
    timezone: str


class ScheduleInfoResponse(BaseModel):
    specialist_id: int
    schedule_enforced: bool
    availability: list[AvailabilitySlotResponse]


def to_settings_response(profile) -> ScheduleSettingsResponse:
    return ScheduleSettingsResponse(
        specialist_id=profile.user_id,
        schedule_enforced=profile.schedule_enforced,
        timezone=profile.timezone,
    )


@router.get('/templates', response_model=list[ScheduleTemplateResponse])
def list_templates(
    current_user: User = Depends(get_current_specialist),
    db: Session = Depends(get_db),
):
    try:
        return templates.list_templates(db, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/templates', response_model=ScheduleTemplateResponse, status_code=status.HTTP_201_CREATED)
def create_template(
    data: CreateTemplateRequest,
    current_user: User = Depends(get_current_specialist),
    db: Session = Depends(get_db),
):
    try:
        return templates.create_template(
            db,
            specialist_id=current_user.id,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
            slot_duration_minutes=data.slot_duration_minutes,
            is_active=data.is_active,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/templates/{template_id}', response_model=ScheduleTemplateResponse)
def update_template(
    template_id: int,
    data: UpdateTemplateRequest,
    current_user: User = Depends(get_current_specialist),
    db: Session = Depends(get_db),
):
    try:
        return templates.update_template(
            db,
            template_id,
            current_user.id,
            start_time=data.start_time,
            end_time=data.end_time,
            slot_duration_minutes=data.slot_duration_minutes,
            is_active=data.is_active,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.patch('/templates/{template_id}/active', response_model=ScheduleTemplateResponse)
def set_template_active(
    template_id: int,
    data: SetTemplateActiveRequest,
    current_user: User = Depends(get_current_specialist),
    db: Session = Depends(get_db),
):
    try:
        return templates.set_template_active(db, template_id, current_user.id, data.is_active)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/templates/{template_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_template(
    template_id: int,
    current_user: User = Depends(get_current_specialist),
    db: Session = Depends(get_db),
):
    try:
        templates.delete_template(db, template_id, current_user.id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post('/generate', response_model=GenerateSlotsResponse, status_code=status.HTTP_201_CREATED)
def generate_slots(
    data: GenerateSlotsRequest,
    current_user: User = Depends(get_current_specialist),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        generated = slot_generator.generate_slots(db, current_user.id, data.from_date, data.to_date)
        return GenerateSlotsResponse(generated_count=generated)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/enforced', response_model=ScheduleSettingsResponse)
def set_schedule_enforced(
    data: SetScheduleEnforcedRequest,
    current_user: User = Depends(get_current_specialist),
    db: Session = Depends(get_db),
):
    try:
        profile = enforcement.set_schedule_enforced(db, current_user, data.schedule_enforced)
        return to_settings_response(profile)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/timezone', response_model=ScheduleSettingsResponse)
def set_timezone(
    data: SetTimezoneRequest,
    current_user: User = Depends(get_current_specialist),
    db: Session = Depends(get_db),
):
    try:
        profile = enforcement.set_timezone(db, current_user, data.timezone)
        return to_settings_response(profile)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/{specialist_id}', response_model=ScheduleInfoResponse)
def get_schedule_info(
    specialist_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user

    try:
        enforcement.get_specialist(db, specialist_id)
        enforced = enforcement.is_schedule_enforced(db, specialist_id)
        slots = list_public_availability(db, specialist_id) if enforced else []
        return ScheduleInfoResponse(
            specialist_id=specialist_id,
            schedule_enforced=enforced,
            availability=[AvailabilitySlotResponse.model_validate(slot) for slot in slots],
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
