import os
from datetime import datetime, time, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from scheduling.core import config  # noqa: E402
from scheduling.database import Base  # noqa: E402
from scheduling.models.availability import SLOT_AVAILABLE, AvailabilitySlot  # noqa: E402
from scheduling.models.schedule_template import ScheduleTemplate  # noqa: E402
from scheduling.models.session import ConsultationSession  # noqa: E402
from scheduling.models.specialist_profile import SpecialistProfile  # noqa: E402
from scheduling.models.user import ROLE_CLIENT, ROLE_SPECIALIST, User  # noqa: E402


@pytest.fixture
def db():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def seed(db):
    """Row builders bound to the test session."""

    def user(email: str, role: str) -> User:
        row = User(email=email, hashed_password='', role=role)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    def profile(specialist_id: int, enforced: bool, tz: str = 'UTC') -> SpecialistProfile:
        row = db.get(SpecialistProfile, specialist_id)
        if row is None:
            row = SpecialistProfile(user_id=specialist_id)
            db.add(row)
        row.schedule_enforced = enforced
        row.timezone = tz
        db.commit()
        db.refresh(row)
        return row

    def template(specialist_id: int, day_of_week: int, start: time, end: time, duration: int, active: bool = True):
        row = ScheduleTemplate(
            specialist_id=specialist_id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            slot_duration_minutes=duration,
            is_active=active,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    def slot(specialist_id: int, start: datetime, end: datetime, status: str = SLOT_AVAILABLE) -> AvailabilitySlot:
        row = AvailabilitySlot(specialist_id=specialist_id, start_time=start, end_time=end, status=status)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    def session(specialist_id: int, client_id: int, start: datetime, end: datetime, status: str) -> ConsultationSession:
        row = ConsultationSession(
            specialist_id=specialist_id,
            client_id=client_id,
            start_time=start,
            end_time=end,
            status=status,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return SimpleNamespace(user=user, profile=profile, template=template, slot=slot, session=session)


@pytest.fixture
def specialist(seed) -> User:
    return seed.user('specialist@example.com', ROLE_SPECIALIST)


@pytest.fixture
def client_user(seed) -> User:
    return seed.user('client@example.com', ROLE_CLIENT)


@pytest.fixture
def other_client(seed) -> User:
    return seed.user('other-client@example.com', ROLE_CLIENT)


@pytest.fixture
def issue_token():
    """Sign a bearer token the way the account service does."""

    def issue(subject: str, minutes: int = 30) -> str:
        now = datetime.now(timezone.utc)
        payload = {'sub': subject, 'iat': now, 'exp': now + timedelta(minutes=minutes)}
        return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)

    return issue
