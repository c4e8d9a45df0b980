# backend/slotbook/schemas/occupancy.py
"""
Occupancy projections.

SlotFlags deliberately has no identity fields: it is what non-admin callers
receive. SlotHolder (with user_id / user_email) is only used by admin routes.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel


class SlotFlags(BaseModel):
    morning: bool = False
    afternoon: bool = False


class OccupancyResponse(BaseModel):
    start_date: date
    end_date: date
    days: dict[str, SlotFlags]


class SlotHolder(BaseModel):
    booking_id: str
    user_id: str
    user_email: Optional[str] = None


class AdminOccupancyResponse(BaseModel):
    start_date: date
    end_date: date
    days: dict[str, dict[str, list[SlotHolder]]]


class SlotRead(BaseModel):
    id: str
    label: str
    start_hour: int
    end_hour: int

    model_config = {"from_attributes": True}
