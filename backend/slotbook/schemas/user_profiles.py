# backend/slotbook/schemas/user_profiles.py

from typing import Optional
from pydantic import BaseModel


class UserProfileRead(BaseModel):
    uid: str
    email: Optional[str] = None
    display_name: str = ""
    max_bookings_per_month: int
    is_admin: bool = False

    model_config = {"from_attributes": True}
