# backend/slotbook/services/booking/store.py
"""
Booking store: the append/remove log of reservations.

No uniqueness is enforced on (date, slot_id); capacity is an admission-time
concern. Every write checks the access rules against the acting identity and,
once committed, publishes a change event on the bookings topic carrying the
owner id and every date the write touched.
"""

import logging
import uuid
from typing import Optional, Protocol

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import Internal, InvalidArgument, NotFound
from ...models.tables import Bookings as DBBookings
from ..access_rules import (
    ensure_can_create_booking,
    ensure_can_delete_booking,
    ensure_can_update_booking,
)
from ..feed import BOOKINGS_TOPIC, ChangeFeed, make_event
from ..identity import Identity
from .config import is_valid_slot

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    def get(self, booking_id: str) -> Optional[DBBookings]: ...

    def create(
        self,
        actor: Identity,
        *,
        user_id: str,
        user_email: Optional[str],
        date: str,
        slot_id: str,
    ) -> DBBookings: ...

    def update(self, actor: Identity, booking_id: str, *, date: str, slot_id: str) -> DBBookings: ...

    def delete(self, actor: Identity, booking_id: str) -> None: ...

    def count_for_user(self, user_id: str, start: str, end: str) -> int: ...

    def list_for_user(self, user_id: str) -> list[DBBookings]: ...


class SqlBookingStore:
    def __init__(self, db: Session, feed: ChangeFeed | None = None):
        self.db = db
        self.feed = feed

    # ── Read ─────────────────────────────────────────────────────────────

    def get(self, booking_id: str) -> Optional[DBBookings]:
        return self.db.get(DBBookings, booking_id)

    def count_for_user(self, user_id: str, start: str, end: str) -> int:
        """Bookings of user_id with start <= date <= end (yyyy-MM-dd, inclusive)."""
        return (
            self.db.query(func.count(DBBookings.id))
            .filter(
                DBBookings.user_id == user_id,
                DBBookings.date >= start,
                DBBookings.date <= end,
            )
            .scalar()
        ) or 0

    def list_for_user(self, user_id: str) -> list[DBBookings]:
        return (
            self.db.query(DBBookings)
            .filter(DBBookings.user_id == user_id)
            .order_by(DBBookings.date, DBBookings.slot_id)
            .all()
        )

    def list_in_range(self, start: str, end: str) -> list[DBBookings]:
        return (
            self.db.query(DBBookings)
            .filter(DBBookings.date >= start, DBBookings.date <= end)
            .order_by(DBBookings.date, DBBookings.created_at)
            .all()
        )

    def list_all(self) -> list[DBBookings]:
        return (
            self.db.query(DBBookings)
            .order_by(DBBookings.date, DBBookings.slot_id, DBBookings.created_at)
            .all()
        )

    # ── Write ────────────────────────────────────────────────────────────

    def create(
        self,
        actor: Identity,
        *,
        user_id: str,
        user_email: Optional[str],
        date: str,
        slot_id: str,
    ) -> DBBookings:
        ensure_can_create_booking(actor, user_id)
        _check_slot(slot_id)

        obj = DBBookings(
            id=uuid.uuid4().hex,
            user_id=user_id,
            user_email=user_email,
            date=date,
            slot_id=slot_id,
        )
        try:
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to create booking {date}/{slot_id} for {user_id}")
            raise Internal("Could not book this slot. Please retry.") from e

        self._emit("booking.created", obj.id, obj.user_id, obj.slot_id, [obj.date])
        return obj

    def update(self, actor: Identity, booking_id: str, *, date: str, slot_id: str) -> DBBookings:
        ensure_can_update_booking(actor)
        _check_slot(slot_id)

        obj = self.get(booking_id)
        if not obj:
            raise NotFound("Booking not found")

        previous_date = obj.date
        try:
            obj.date = date
            obj.slot_id = slot_id
            self.db.commit()
            self.db.refresh(obj)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to update booking {booking_id}")
            raise Internal("Could not update the booking. Please retry.") from e

        self._emit("booking.updated", obj.id, obj.user_id, obj.slot_id, sorted({previous_date, obj.date}))
        return obj

    def delete(self, actor: Identity, booking_id: str) -> None:
        obj = self.get(booking_id)
        if not obj:
            raise NotFound("Booking not found")

        ensure_can_delete_booking(actor, obj.user_id)

        # captured before the instance is expunged
        owner_id, day, slot_id = obj.user_id, obj.date, obj.slot_id
        try:
            self.db.delete(obj)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to delete booking {booking_id}")
            raise Internal("Could not cancel the booking. Please retry.") from e

        self._emit("booking.deleted", booking_id, owner_id, slot_id, [day])

    # ── Events ───────────────────────────────────────────────────────────

    def _emit(
        self,
        event_type: str,
        booking_id: str,
        owner_id: str,
        slot_id: str,
        dates: list[str],
    ) -> None:
        if self.feed is None:
            return
        self.feed.publish(
            BOOKINGS_TOPIC,
            make_event(event_type, {
                "booking_id": booking_id,
                "user_id": owner_id,
                "slot_id": slot_id,
                "dates": dates,
            }),
        )


def _check_slot(slot_id: str) -> None:
    if not is_valid_slot(slot_id):
        raise InvalidArgument(f"Unknown slot: {slot_id}")
