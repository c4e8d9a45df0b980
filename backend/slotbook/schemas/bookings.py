# backend/slotbook/schemas/bookings.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel

from ..services.booking.config import SlotId


class BookingCreate(BaseModel):
    date: date
    slot_id: SlotId


class AdminBookingCreate(BaseModel):
    user_id: str
    user_email: Optional[str] = None
    date: date
    slot_id: SlotId


class AdminBookingUpdate(BaseModel):
    date: date
    slot_id: SlotId


class MyBookingRead(BaseModel):
    """A caller's own booking: no owner fields needed."""
    id: str
    date: date
    slot_id: SlotId
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingRead(BaseModel):
    id: str
    user_id: str
    user_email: Optional[str] = None

    date: date
    slot_id: SlotId

    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingCreated(BaseModel):
    booking_id: str
    status: str = "booked"


class MonthlyCount(BaseModel):
    month: str  # yyyy-MM
    count: int
    max_bookings_per_month: int
