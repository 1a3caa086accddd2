"""Session lifecycle: the single place where status changes are decided."""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from scheduling.core.errors import InvalidTransition, NotFound, Unauthorized
from scheduling.database import utcnow
from scheduling.models.session import ConsultationSession, SessionStatus
from scheduling.models.user import User

logger = logging.getLogger(__name__)

ACTOR_SPECIALIST = 'specialist'
ACTOR_CLIENT = 'client'

# (from, to) -> actors allowed to perform the move
TRANSITIONS: dict[tuple[SessionStatus, SessionStatus], frozenset[str]] = {
    (SessionStatus.PENDING, SessionStatus.CONFIRMED): frozenset({ACTOR_SPECIALIST}),
    (SessionStatus.PENDING, SessionStatus.CANCELED): frozenset({ACTOR_SPECIALIST, ACTOR_CLIENT}),
    (SessionStatus.CONFIRMED, SessionStatus.CANCELED): frozenset({ACTOR_SPECIALIST, ACTOR_CLIENT}),
    (SessionStatus.CONFIRMED, SessionStatus.COMPLETED): frozenset({ACTOR_SPECIALIST}),
}

TERMINAL_STATES = frozenset({SessionStatus.COMPLETED, SessionStatus.CANCELED})


def initial_status(slot_based: bool) -> SessionStatus:
    return SessionStatus.CONFIRMED if slot_based else SessionStatus.PENDING


def is_terminal(current: SessionStatus | str) -> bool:
    return SessionStatus(current) in TERMINAL_STATES


def check_transition(current: SessionStatus | str, requested: SessionStatus | str, actor: str) -> None:
    current = SessionStatus(current)
    requested = SessionStatus(requested)

    allowed_actors = TRANSITIONS.get((current, requested))
    if allowed_actors is None:
        raise InvalidTransition(current.value, requested.value)
    if actor not in allowed_actors:
        raise Unauthorized(f'A {actor} cannot move a session to {requested.value}.')


def actor_for(session: ConsultationSession, user: User) -> str:
    """Resolve the caller's role on this particular session."""
    if session.specialist_id == user.id:
        return ACTOR_SPECIALIST
    if session.client_id is not None and session.client_id == user.id:
        return ACTOR_CLIENT
    raise Unauthorized("You don't have access to this session.")


def get_session_for_user(db: Session, session_id: int, user: User) -> ConsultationSession:
    session = db.get(ConsultationSession, session_id)
    if session is None:
        raise NotFound('Session not found.')
    actor_for(session, user)
    return session


def list_my_sessions(db: Session, user: User) -> list[ConsultationSession]:
    """All sessions where the caller is the specialist or the client, newest first."""
    if user.is_specialist:
        condition = ConsultationSession.specialist_id == user.id
    elif user.is_client:
        condition = ConsultationSession.client_id == user.id
    else:
        raise Unauthorized('Only specialists and clients have sessions.')

    return list(
        db.scalars(
            select(ConsultationSession)
            .where(condition)
            .order_by(ConsultationSession.start_time.desc())
        )
    )


def transition(
    db: Session,
    session_id: int,
    user: User,
    requested: SessionStatus,
    now: datetime | None = None,
) -> ConsultationSession:
    session = get_session_for_user(db, session_id, user)
    actor = actor_for(session, user)
    check_transition(session.status, requested, actor)

    if requested == SessionStatus.COMPLETED:
        now = now or utcnow()
        if session.start_time > now:
            logger.warning('Session %s completed before its start time %s', session.id, session.start_time)

    previous = session.status
    result = db.execute(
        update(ConsultationSession)
        .where(
            ConsultationSession.id == session_id,
            ConsultationSession.status == previous,
        )
        .values(status=requested.value)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # Another request moved the session after it was read.
        db.rollback()
        db.refresh(session)
        raise InvalidTransition(session.status, requested.value)

    db.commit()
    db.refresh(session)

    logger.info('Session %s moved %s -> %s by %s %s', session.id, previous, requested.value, actor, user.id)
    return session


def confirm_session(db: Session, session_id: int, user: User) -> ConsultationSession:
    return transition(db, session_id, user, SessionStatus.CONFIRMED)


def complete_session(db: Session, session_id: int, user: User, now: datetime | None = None) -> ConsultationSession:
    return transition(db, session_id, user, SessionStatus.COMPLETED, now=now)


def cancel_session(db: Session, session_id: int, user: User) -> ConsultationSession:
    # The source slot stays booked; canceled capacity is not released.
    return transition(db, session_id, user, SessionStatus.CANCELED)
