# backend/slotbook/services/booking/overrides.py
"""
Availability overrides: whole disabled days and disabled (day, slot) pairs.

Stored as a single document (row id "calendar") with two JSON text columns:
  disabled_dates  ["2025-12-25", ...]
  disabled_slots  [{"date": "2025-12-24", "slotId": "afternoon"}, ...]

The row is created lazily on the first write; an absent row reads as empty.
Callers depend on the OverridesStore protocol (get/set), not on the table.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import Internal, InvalidArgument
from ...models.tables import CalendarConfig as DBCalendarConfig
from ..access_rules import ensure_admin
from ..feed import CALENDAR_TOPIC, ChangeFeed, Unsubscribe, make_event
from ..identity import Identity
from .config import is_valid_slot

logger = logging.getLogger(__name__)

CALENDAR_DOC_ID = "calendar"


@dataclass(frozen=True)
class OverridesConfig:
    disabled_dates: frozenset[str] = field(default_factory=frozenset)
    disabled_slots: frozenset[tuple[str, str]] = field(default_factory=frozenset)

    def is_date_disabled(self, day: str) -> bool:
        return day in self.disabled_dates

    def is_slot_disabled(self, day: str, slot_id: str) -> bool:
        return (day, slot_id) in self.disabled_slots

    def with_date(self, day: str, disabled: bool) -> "OverridesConfig":
        dates = set(self.disabled_dates)
        if disabled:
            dates.add(day)
        else:
            dates.discard(day)
        return OverridesConfig(frozenset(dates), self.disabled_slots)

    def with_slot(self, day: str, slot_id: str, disabled: bool) -> "OverridesConfig":
        slots = set(self.disabled_slots)
        if disabled:
            slots.add((day, slot_id))
        else:
            slots.discard((day, slot_id))
        return OverridesConfig(self.disabled_dates, frozenset(slots))

    def to_document(self) -> dict:
        return {
            "disabledDates": sorted(self.disabled_dates),
            "disabledSlots": [
                {"date": d, "slotId": s} for d, s in sorted(self.disabled_slots)
            ],
        }


class OverridesStore(Protocol):
    def get(self) -> OverridesConfig: ...

    def set(self, actor: Identity, config: OverridesConfig) -> OverridesConfig: ...


def _parse_dates(raw: str | None) -> frozenset[str]:
    try:
        items = json.loads(raw) if raw else []
    except (json.JSONDecodeError, TypeError):
        logger.error(f"Invalid disabled_dates JSON: {str(raw)[:200]}")
        return frozenset()
    return frozenset(str(d) for d in items if d)


def _parse_slots(raw: str | None) -> frozenset[tuple[str, str]]:
    try:
        items = json.loads(raw) if raw else []
    except (json.JSONDecodeError, TypeError):
        logger.error(f"Invalid disabled_slots JSON: {str(raw)[:200]}")
        return frozenset()
    return frozenset(
        (item["date"], item["slotId"])
        for item in items
        if isinstance(item, dict) and item.get("date") and item.get("slotId")
    )


class SqlOverridesStore:
    def __init__(self, db: Session, feed: ChangeFeed | None = None):
        self.db = db
        self.feed = feed

    def get(self) -> OverridesConfig:
        obj = self.db.get(DBCalendarConfig, CALENDAR_DOC_ID)
        if obj is None:
            return OverridesConfig()
        return OverridesConfig(
            disabled_dates=_parse_dates(obj.disabled_dates),
            disabled_slots=_parse_slots(obj.disabled_slots),
        )

    def set(self, actor: Identity, config: OverridesConfig) -> OverridesConfig:
        ensure_admin(actor)
        for _, slot_id in config.disabled_slots:
            if not is_valid_slot(slot_id):
                raise InvalidArgument(f"Unknown slot: {slot_id}")

        document = config.to_document()
        try:
            obj = self.db.get(DBCalendarConfig, CALENDAR_DOC_ID)
            if obj is None:
                obj = DBCalendarConfig(id=CALENDAR_DOC_ID)
                self.db.add(obj)
            obj.disabled_dates = json.dumps(document["disabledDates"])
            obj.disabled_slots = json.dumps(document["disabledSlots"])
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to write calendar overrides")
            raise Internal("Could not save the calendar settings. Please retry.") from e

        logger.info(
            f"Calendar overrides updated by {actor.user_id}: "
            f"{len(config.disabled_dates)} days, {len(config.disabled_slots)} slots"
        )
        if self.feed is not None:
            self.feed.publish(CALENDAR_TOPIC, make_event("calendar.updated", document))
        return config


class OverridesView:
    """
    Live overrides for calendars: the current config on subscribe and again
    after every calendar.updated event. Reads use their own session, since
    callbacks may arrive on a feed listener thread.
    """

    def __init__(self, session_factory: Callable[[], Session], feed: ChangeFeed):
        self.session_factory = session_factory
        self.feed = feed

    def snapshot(self) -> OverridesConfig:
        try:
            db = self.session_factory()
            try:
                return SqlOverridesStore(db).get()
            finally:
                db.close()
        except SQLAlchemyError:
            logger.exception("Overrides projection failed")
            return OverridesConfig()

    def subscribe(self, callback: Callable[[OverridesConfig], None]) -> Unsubscribe:
        unsubscribe = self.feed.subscribe(CALENDAR_TOPIC, lambda event: callback(self.snapshot()))
        callback(self.snapshot())
        return unsubscribe


# ── Helpers on top of get/set ────────────────────────────────────────────────

def disable_date(store: OverridesStore, actor: Identity, day: date) -> OverridesConfig:
    return store.set(actor, store.get().with_date(day.isoformat(), True))


def enable_date(store: OverridesStore, actor: Identity, day: date) -> OverridesConfig:
    return store.set(actor, store.get().with_date(day.isoformat(), False))


def disable_slot(store: OverridesStore, actor: Identity, day: date, slot_id: str) -> OverridesConfig:
    if not is_valid_slot(slot_id):
        raise InvalidArgument(f"Unknown slot: {slot_id}")
    return store.set(actor, store.get().with_slot(day.isoformat(), slot_id, True))


def enable_slot(store: OverridesStore, actor: Identity, day: date, slot_id: str) -> OverridesConfig:
    if not is_valid_slot(slot_id):
        raise InvalidArgument(f"Unknown slot: {slot_id}")
    return store.set(actor, store.get().with_slot(day.isoformat(), slot_id, False))
