# backend/slotbook/routers/admin.py
"""
Admin booking editor.

Create/move/delete any booking, skipping overrides and quota checks, and
the occupancy calendar with booking holders.
"""

from datetime import date

from fastapi import APIRouter, Depends, Request, status

from ..dependencies import require_admin_session
from ..schemas.bookings import AdminBookingCreate, AdminBookingUpdate, BookingRead
from ..schemas.occupancy import AdminOccupancyResponse
from ..services.sessions import AdminSession
from .occupancy import resolve_range
from .sse import sse_response

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/bookings", response_model=list[BookingRead])
def list_bookings(session: AdminSession = Depends(require_admin_session)):
    return session.list_bookings()


@router.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: AdminBookingCreate,
    session: AdminSession = Depends(require_admin_session),
):
    return session.create_booking(data.user_id, data.date, data.slot_id, data.user_email)


@router.patch("/bookings/{booking_id}", response_model=BookingRead)
def update_booking(
    booking_id: str,
    data: AdminBookingUpdate,
    session: AdminSession = Depends(require_admin_session),
):
    return session.update_booking(booking_id, data.date, data.slot_id)


@router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(booking_id: str, session: AdminSession = Depends(require_admin_session)):
    session.delete_booking(booking_id)


def _response(start_date: date, end_date: date, view: dict) -> dict:
    return {
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "days": view,
    }


@router.get("/occupancy", response_model=AdminOccupancyResponse)
def get_occupancy(
    start_date: date | None = None,
    end_date: date | None = None,
    session: AdminSession = Depends(require_admin_session),
):
    start_date, end_date = resolve_range(start_date, end_date)
    return _response(start_date, end_date, session.occupancy(start_date, end_date))


@router.get("/occupancy/stream")
async def stream_occupancy(
    request: Request,
    start_date: date | None = None,
    end_date: date | None = None,
    session: AdminSession = Depends(require_admin_session),
):
    start_date, end_date = resolve_range(start_date, end_date)

    def subscribe(push):
        return session.watch_occupancy(
            start_date,
            end_date,
            lambda view: push(_response(start_date, end_date, view)),
        )

    return await sse_response(request, subscribe)
