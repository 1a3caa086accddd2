"""Scheduling error taxonomy.

Every error is an ``HTTPException`` so routers can let it propagate and FastAPI
renders it as ``{"detail": {"code": ..., "message": ...}}``. Callers that need
to react to a specific failure (for example refreshing availability after a
lost booking race) match on the class or on ``code``.
"""

from fastapi import HTTPException, status


class SchedulingError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'SCHEDULING_ERROR'

    def __init__(self, message: str, **context) -> None:
        self.message = message
        self.context = context
        super().__init__(
            status_code=type(self).status_code,
            detail={'code': self.code, 'message': message, **context},
        )

    def __str__(self) -> str:
        return self.message


class ValidationError(SchedulingError):
    """Malformed input: bad time range, unsupported duration, past start."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'VALIDATION_ERROR'


class InvalidTimeRange(ValidationError):
    code = 'INVALID_TIME_RANGE'


class NotFound(SchedulingError):
    """Entity absent, or not owned by the caller."""
    status_code = status.HTTP_404_NOT_FOUND
    code = 'NOT_FOUND'


class SlotNotFound(NotFound):
    code = 'SLOT_NOT_FOUND'


class SlotUnavailable(SchedulingError):
    """The slot was already booked, usually by a concurrent request."""
    status_code = status.HTTP_409_CONFLICT
    code = 'SLOT_UNAVAILABLE'


class SlotOverlap(SlotUnavailable):
    code = 'SLOT_OVERLAP'


class GenerationConflict(SlotUnavailable):
    code = 'GENERATION_CONFLICT'


class InvalidTransition(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    code = 'INVALID_TRANSITION'

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f'Cannot move session from {current} to {requested}.',
            current=current,
            requested=requested,
        )


class BookingModeMismatch(SchedulingError):
    """The specialist's enforcement flag routes bookings elsewhere."""
    status_code = status.HTTP_409_CONFLICT
    code = 'BOOKING_MODE_MISMATCH'


class Unauthorized(SchedulingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = 'UNAUTHORIZED'
