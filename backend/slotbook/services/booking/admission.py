# backend/slotbook/services/booking/admission.py
"""
Booking admission.

try_book evaluates, in order (first failure wins):
1. the day is not in the disabled days        → DateDisabled
2. the (day, slot) pair is not disabled       → SlotDisabled
3. bookings held by the user in the calendar
   month of the *target* day < effective quota → QuotaExceeded

Occupancy of the slot is not checked here: two concurrent requests for the
same (day, slot) may both be admitted. The administrator resolves such
collisions through the admin operations below, which skip every check.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from ...errors import AdmissionError, DateDisabled, InvalidArgument, QuotaExceeded, SlotDisabled
from ...models.tables import Bookings as DBBookings
from ..identity import Identity
from .config import is_valid_slot, month_bounds
from .overrides import OverridesStore
from .store import BookingStore

logger = logging.getLogger(__name__)

QuotaLookup = Callable[[str], int]


@dataclass(frozen=True)
class AdmissionResult:
    booking_id: Optional[str] = None
    error: Optional[AdmissionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AdmissionEngine:
    def __init__(
        self,
        bookings: BookingStore,
        overrides: OverridesStore,
        quota_for: QuotaLookup,
    ):
        self.bookings = bookings
        self.overrides = overrides
        self.quota_for = quota_for

    def monthly_count(self, user_id: str, month: date) -> int:
        start, end = month_bounds(month)
        return self.bookings.count_for_user(user_id, start, end)

    def check(self, user_id: str, day: date, slot_id: str) -> Optional[AdmissionError]:
        """Run the admission checks without writing anything."""
        if not is_valid_slot(slot_id):
            raise InvalidArgument(f"Unknown slot: {slot_id}")

        iso_day = day.isoformat()
        config = self.overrides.get()

        if config.is_date_disabled(iso_day):
            return DateDisabled()

        if config.is_slot_disabled(iso_day, slot_id):
            return SlotDisabled()

        quota = self.quota_for(user_id)
        if self.monthly_count(user_id, day) >= quota:
            return QuotaExceeded(
                f"You already have {quota} booking{'s' if quota != 1 else ''} this month."
            )

        return None

    def try_book(self, actor: Identity, day: date, slot_id: str) -> AdmissionResult:
        error = self.check(actor.user_id, day, slot_id)
        if error is not None:
            logger.info(
                f"Booking rejected: user={actor.user_id} {day.isoformat()}/{slot_id} "
                f"→ {error.code.value}"
            )
            return AdmissionResult(error=error)

        booking = self.bookings.create(
            actor,
            user_id=actor.user_id,
            user_email=actor.email,
            date=day.isoformat(),
            slot_id=slot_id,
        )
        logger.info(
            f"Booking admitted: user={actor.user_id} {booking.date}/{booking.slot_id} "
            f"→ {booking.id}"
        )
        return AdmissionResult(booking_id=booking.id)

    def cancel(self, actor: Identity, booking_id: str) -> None:
        # ownership is enforced by the store's access rules
        self.bookings.delete(actor, booking_id)
        logger.info(f"Booking cancelled: {booking_id} by {actor.user_id}")

    # ── Administrative overrides (no overrides/quota checks) ─────────────

    def admin_create_booking(
        self,
        actor: Identity,
        user_id: str,
        day: date,
        slot_id: str,
        user_email: Optional[str] = None,
    ) -> DBBookings:
        booking = self.bookings.create(
            actor,
            user_id=user_id,
            user_email=user_email,
            date=day.isoformat(),
            slot_id=slot_id,
        )
        logger.info(f"Admin booking created: {booking.id} for {user_id} by {actor.user_id}")
        return booking

    def admin_update_booking(
        self,
        actor: Identity,
        booking_id: str,
        new_date: date,
        new_slot_id: str,
    ) -> DBBookings:
        booking = self.bookings.update(
            actor, booking_id, date=new_date.isoformat(), slot_id=new_slot_id
        )
        logger.info(f"Admin booking moved: {booking_id} → {booking.date}/{booking.slot_id}")
        return booking

    def admin_delete_booking(self, actor: Identity, booking_id: str) -> None:
        self.bookings.delete(actor, booking_id)
        logger.info(f"Admin booking deleted: {booking_id} by {actor.user_id}")
