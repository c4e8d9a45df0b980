# backend/slotbook/schemas/calendar_overrides.py

from datetime import date
from pydantic import BaseModel

from ..services.booking.config import SlotId
from ..services.booking.overrides import OverridesConfig


class DisabledSlot(BaseModel):
    date: date
    slot_id: SlotId


class CalendarOverridesWrite(BaseModel):
    disabled_dates: list[date] = []
    disabled_slots: list[DisabledSlot] = []

    def to_config(self) -> OverridesConfig:
        return OverridesConfig(
            disabled_dates=frozenset(d.isoformat() for d in self.disabled_dates),
            disabled_slots=frozenset(
                (s.date.isoformat(), s.slot_id) for s in self.disabled_slots
            ),
        )


class CalendarOverridesRead(BaseModel):
    disabled_dates: list[date]
    disabled_slots: list[DisabledSlot]

    @classmethod
    def from_config(cls, config: OverridesConfig) -> "CalendarOverridesRead":
        return cls(
            disabled_dates=sorted(config.disabled_dates),
            disabled_slots=[
                DisabledSlot(date=d, slot_id=s) for d, s in sorted(config.disabled_slots)
            ],
        )
