# backend/slotbook/routers/calendar_overrides.py
# GET = any signed-in user; writes = admin only

from datetime import date

from fastapi import APIRouter, Depends, Request

from ..dependencies import get_role_session, require_admin_session
from ..schemas.calendar_overrides import CalendarOverridesRead, CalendarOverridesWrite
from ..services.sessions import AdminSession, RoleSession
from .sse import sse_response

router = APIRouter(prefix="/calendar_overrides", tags=["calendar_overrides"])


@router.get("/", response_model=CalendarOverridesRead)
def get_calendar_overrides(session: RoleSession = Depends(get_role_session)):
    return CalendarOverridesRead.from_config(session.overrides())


@router.get("/stream")
async def stream_calendar_overrides(
    request: Request,
    session: RoleSession = Depends(get_role_session),
):
    def subscribe(push):
        return session.watch_overrides(
            lambda config: push(CalendarOverridesRead.from_config(config).model_dump(mode="json"))
        )

    return await sse_response(request, subscribe)


@router.put("/", response_model=CalendarOverridesRead)
def replace_calendar_overrides(
    data: CalendarOverridesWrite,
    session: AdminSession = Depends(require_admin_session),
):
    return CalendarOverridesRead.from_config(session.set_overrides(data.to_config()))


@router.post("/dates/{day}", response_model=CalendarOverridesRead)
def disable_date(day: date, session: AdminSession = Depends(require_admin_session)):
    return CalendarOverridesRead.from_config(session.disable_date(day))


@router.delete("/dates/{day}", response_model=CalendarOverridesRead)
def enable_date(day: date, session: AdminSession = Depends(require_admin_session)):
    return CalendarOverridesRead.from_config(session.enable_date(day))


@router.post("/slots/{day}/{slot_id}", response_model=CalendarOverridesRead)
def disable_slot(
    day: date,
    slot_id: str,
    session: AdminSession = Depends(require_admin_session),
):
    return CalendarOverridesRead.from_config(session.disable_slot(day, slot_id))


@router.delete("/slots/{day}/{slot_id}", response_model=CalendarOverridesRead)
def enable_slot(
    day: date,
    slot_id: str,
    session: AdminSession = Depends(require_admin_session),
):
    return CalendarOverridesRead.from_config(session.enable_slot(day, slot_id))
