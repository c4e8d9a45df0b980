# backend/slotbook/routers/bookings.py
# Client-facing bookings: own list, monthly counter, book, cancel.

from datetime import date

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from ..dependencies import require_client_session
from ..errors import InvalidArgument, error_body
from ..schemas.bookings import (
    BookingCreate,
    BookingCreated,
    MonthlyCount,
    MyBookingRead,
)
from ..services.sessions import ClientSession
from .sse import sse_response

router = APIRouter(prefix="/bookings", tags=["bookings"])


def parse_month(month: str | None) -> date:
    """yyyy-MM → first day of that month; None → current month."""
    if not month:
        return date.today().replace(day=1)
    try:
        year, mon = month.split("-")
        return date(int(year), int(mon), 1)
    except ValueError:
        raise InvalidArgument(f"Invalid month: {month} (expected yyyy-MM)")


@router.get("/mine", response_model=list[MyBookingRead])
def list_my_bookings(session: ClientSession = Depends(require_client_session)):
    return session.my_bookings()


@router.get("/mine/stream")
async def stream_my_bookings(
    request: Request,
    session: ClientSession = Depends(require_client_session),
):
    return await sse_response(request, session.watch_my_bookings)


@router.get("/count", response_model=MonthlyCount)
def count_my_bookings(
    month: str | None = Query(None, description="yyyy-MM"),
    session: ClientSession = Depends(require_client_session),
):
    first_day = parse_month(month)
    return MonthlyCount(
        month=first_day.strftime("%Y-%m"),
        count=session.monthly_count(first_day),
        max_bookings_per_month=session.effective_quota(),
    )


@router.post(
    "/",
    response_model=BookingCreated,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Day or slot disabled, or monthly quota reached"}},
)
def create_booking(
    data: BookingCreate,
    session: ClientSession = Depends(require_client_session),
):
    result = session.book(data.date, data.slot_id)
    if not result.ok:
        return JSONResponse(
            status_code=result.error.status_code,
            content=error_body(result.error),
        )
    return BookingCreated(booking_id=result.booking_id)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_booking(
    booking_id: str,
    session: ClientSession = Depends(require_client_session),
):
    session.cancel(booking_id)
