# backend/slotbook/routers/occupancy.py
"""
Anonymous occupancy for the client calendar: per day, whether each slot is
taken. Never carries who holds it; admins use /admin/occupancy.
"""

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Request

from ..dependencies import require_client_session
from ..errors import InvalidArgument
from ..schemas.occupancy import OccupancyResponse
from ..services.booking.occupancy import MAX_RANGE_DAYS, fill_range
from ..services.sessions import ClientSession
from .sse import sse_response

router = APIRouter(prefix="/occupancy", tags=["occupancy"])

DEFAULT_RANGE_DAYS = 31


def resolve_range(start_date: date | None, end_date: date | None) -> tuple[date, date]:
    if start_date is None:
        start_date = date.today()
    if end_date is None:
        end_date = start_date + timedelta(days=DEFAULT_RANGE_DAYS - 1)
    if end_date < start_date:
        start_date, end_date = end_date, start_date
    if (end_date - start_date).days + 1 > MAX_RANGE_DAYS:
        raise InvalidArgument(f"Date range too large (max {MAX_RANGE_DAYS} days).")
    return start_date, end_date


def _response(start_date: date, end_date: date, view: dict) -> dict:
    return {
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "days": fill_range(view, start_date, end_date),
    }


@router.get("/", response_model=OccupancyResponse)
def get_occupancy(
    start_date: date | None = None,
    end_date: date | None = None,
    session: ClientSession = Depends(require_client_session),
):
    start_date, end_date = resolve_range(start_date, end_date)
    return _response(start_date, end_date, session.occupancy(start_date, end_date))


@router.get("/stream")
async def stream_occupancy(
    request: Request,
    start_date: date | None = None,
    end_date: date | None = None,
    session: ClientSession = Depends(require_client_session),
):
    start_date, end_date = resolve_range(start_date, end_date)

    def subscribe(push):
        return session.watch_occupancy(
            start_date,
            end_date,
            lambda view: push(_response(start_date, end_date, view)),
        )

    return await sse_response(request, subscribe)
