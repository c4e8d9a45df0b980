# backend/slotbook/services/booking/occupancy.py
"""
Live occupancy read-models.

Two projections over the same bookings:
- client view: {date: {slot_id: bool}}: whether anyone holds the slot,
  with no identity field at all
- admin view:  {date: {slot_id: [{booking_id, user_id, user_email}]}}

subscribe() delivers the current projection immediately and again after every
booking change whose dates intersect the subscribed range. Projection
failures are logged and degrade to an empty map: the calendar keeps rendering.

Each rebuild opens its own DB session, since subscriptions outlive the request
that created them and callbacks may arrive on a feed listener thread.
"""

import logging
from datetime import date
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..feed import BOOKINGS_TOPIC, ChangeFeed, Unsubscribe
from .config import SLOT_IDS, empty_day, iter_dates
from .store import SqlBookingStore

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]

ClientOccupancy = dict[str, dict[str, bool]]
AdminOccupancy = dict[str, dict[str, list[dict]]]

MAX_RANGE_DAYS = 120


class OccupancyReadModel:
    def __init__(self, session_factory: SessionFactory, feed: ChangeFeed):
        self.session_factory = session_factory
        self.feed = feed

    # ── Snapshots ────────────────────────────────────────────────────────

    def client_view(self, start: date, end: date) -> ClientOccupancy:
        """Occupied flags per day in [start, end]; days without bookings are omitted."""
        occupied: ClientOccupancy = {}
        try:
            for booking in self._load(start, end):
                day = occupied.setdefault(booking.date, empty_day())
                day[booking.slot_id] = True
        except SQLAlchemyError:
            logger.exception(f"Occupancy projection failed for {start}..{end}")
            return {}
        return occupied

    def admin_view(self, start: date, end: date) -> AdminOccupancy:
        holders: AdminOccupancy = {}
        try:
            for booking in self._load(start, end):
                day = holders.setdefault(booking.date, {slot_id: [] for slot_id in SLOT_IDS})
                day.setdefault(booking.slot_id, []).append({
                    "booking_id": booking.id,
                    "user_id": booking.user_id,
                    "user_email": booking.user_email,
                })
        except SQLAlchemyError:
            logger.exception(f"Admin occupancy projection failed for {start}..{end}")
            return {}
        return holders

    def _load(self, start: date, end: date):
        if start > end:
            start, end = end, start
        db = self.session_factory()
        try:
            return SqlBookingStore(db).list_in_range(start.isoformat(), end.isoformat())
        finally:
            db.close()

    # ── Live ─────────────────────────────────────────────────────────────

    def subscribe(
        self,
        start: date,
        end: date,
        callback: Callable[[dict], None],
        admin: bool = False,
    ) -> Unsubscribe:
        if start > end:
            start, end = end, start
        lo, hi = start.isoformat(), end.isoformat()
        project = self.admin_view if admin else self.client_view

        def on_change(event: dict) -> None:
            dates = event.get("dates")
            if dates and not any(lo <= d <= hi for d in dates):
                return
            callback(project(start, end))

        unsubscribe = self.feed.subscribe(BOOKINGS_TOPIC, on_change)
        callback(project(start, end))
        return unsubscribe


def fill_range(view: ClientOccupancy, start: date, end: date) -> ClientOccupancy:
    """Every day of [start, end] with explicit False flags for free slots."""
    return {
        d.isoformat(): view.get(d.isoformat(), empty_day())
        for d in iter_dates(start, end)
    }


class UserBookingsView:
    """Live list of one user's own bookings."""

    def __init__(self, session_factory: SessionFactory, feed: ChangeFeed):
        self.session_factory = session_factory
        self.feed = feed

    def snapshot(self, user_id: str) -> list[dict]:
        db = self.session_factory()
        try:
            return [
                {
                    "id": b.id,
                    "date": b.date,
                    "slot_id": b.slot_id,
                    "created_at": b.created_at,
                }
                for b in SqlBookingStore(db).list_for_user(user_id)
            ]
        except SQLAlchemyError:
            logger.exception(f"User bookings projection failed for {user_id}")
            return []
        finally:
            db.close()

    def subscribe(self, user_id: str, callback: Callable[[list[dict]], None]) -> Unsubscribe:
        def on_change(event: dict) -> None:
            if event.get("user_id") not in (None, user_id):
                return
            callback(self.snapshot(user_id))

        unsubscribe = self.feed.subscribe(BOOKINGS_TOPIC, on_change)
        callback(self.snapshot(user_id))
        return unsubscribe
