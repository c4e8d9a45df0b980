# backend/slotbook/routers/slots.py

from fastapi import APIRouter

from ..schemas.occupancy import SlotRead
from ..services.booking.config import SLOTS

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/", response_model=list[SlotRead])
def list_slots():
    """The fixed daily slots, in display order."""
    return list(SLOTS)
