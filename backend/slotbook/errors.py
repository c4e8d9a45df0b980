# backend/slotbook/errors.py
"""
Error taxonomy shared by services and routers.

Admission failures (DateDisabled, SlotDisabled, QuotaExceeded) are expected
outcomes: the admission engine returns them inside an AdmissionResult instead
of raising. Everything else is raised and rendered by the exception handler
registered in main.py as {"code": ..., "detail": ...}.
"""

from enum import Enum

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class ErrorCode(str, Enum):
    DATE_DISABLED = "date_disabled"
    SLOT_DISABLED = "slot_disabled"
    QUOTA_EXCEEDED = "quota_exceeded"
    PERMISSION_DENIED = "permission_denied"
    ALREADY_EXISTS = "already_exists"
    INVALID_ARGUMENT = "invalid_argument"
    INTERNAL = "internal"
    NOT_FOUND = "not_found"


class BookingError(Exception):
    code: ErrorCode = ErrorCode.INTERNAL
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DateDisabled(BookingError):
    code = ErrorCode.DATE_DISABLED
    status_code = status.HTTP_409_CONFLICT
    default_message = "This day is not available for booking."


class SlotDisabled(BookingError):
    code = ErrorCode.SLOT_DISABLED
    status_code = status.HTTP_409_CONFLICT
    default_message = "This time slot is not available for booking."


class QuotaExceeded(BookingError):
    code = ErrorCode.QUOTA_EXCEEDED
    status_code = status.HTTP_409_CONFLICT
    default_message = "You have reached your booking limit for this month."


class PermissionDenied(BookingError):
    code = ErrorCode.PERMISSION_DENIED
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to do this."


class AlreadyExists(BookingError):
    code = ErrorCode.ALREADY_EXISTS
    status_code = status.HTTP_409_CONFLICT
    default_message = "This email is already registered."


class InvalidArgument(BookingError):
    code = ErrorCode.INVALID_ARGUMENT
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class Internal(BookingError):
    code = ErrorCode.INTERNAL
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class NotFound(BookingError):
    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


# Admission check failures, in evaluation order
AdmissionError = DateDisabled | SlotDisabled | QuotaExceeded


def user_message(exc: Exception) -> str:
    """Short human-readable text for any failure; raw text only as a last resort."""
    if isinstance(exc, BookingError):
        return exc.message
    return str(exc) or BookingError.default_message


def error_body(exc: BookingError) -> dict:
    return {"code": exc.code.value, "detail": user_message(exc)}


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
