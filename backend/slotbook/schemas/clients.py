# backend/slotbook/schemas/clients.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ClientCreate(BaseModel):
    email: str = Field(min_length=1)
    display_name: Optional[str] = None
    max_bookings_per_month: Optional[int] = None

    model_config = {"from_attributes": True}


class ClientUpdate(BaseModel):
    display_name: Optional[str] = None
    max_bookings_per_month: Optional[int] = None

    model_config = {"from_attributes": True}


class ClientRead(BaseModel):
    id: str
    email: str
    display_name: str = ""
    max_bookings_per_month: int

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
