# backend/slotbook/schemas/accounts.py

from typing import Optional
from pydantic import BaseModel


class AccountCreate(BaseModel):
    email: str
    password: str
    display_name: Optional[str] = None
    max_bookings_per_month: Optional[int] = None


class AccountCreated(BaseModel):
    uid: str
    email: str
    message: str

    model_config = {"from_attributes": True}
