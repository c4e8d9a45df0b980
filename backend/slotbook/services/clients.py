# backend/slotbook/services/clients.py
"""
Client registry: admin-owned client records keyed by an id derived from the
normalized email, so re-adding an email updates the existing record.

Deleting a client does not touch its user profile or bookings.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import Internal, InvalidArgument, NotFound
from ..models.tables import Clients as DBClients
from .access_rules import ensure_admin
from .booking.config import (
    DEFAULT_MAX_BOOKINGS_PER_MONTH,
    MAX_BOOKINGS_PER_MONTH,
    MIN_BOOKINGS_PER_MONTH,
)
from .client_cache import ClientCache
from .identity import Identity, normalize_email

logger = logging.getLogger(__name__)


def client_id_from_email(email: str) -> str:
    """
    mario.rossi@example.it → mario_dot_rossi_at_example_dot_it

    Literal underscores are doubled first, so the mapping stays one-to-one:
    a.b@x.it → a_dot_b_at_x_dot_it, a_dot_b@x.it → a__dot__b_at_x_dot_it
    """
    return (
        normalize_email(email)
        .replace("_", "__")
        .replace("@", "_at_")
        .replace(".", "_dot_")
    )


def clamp_quota(value: Optional[int], default: int = DEFAULT_MAX_BOOKINGS_PER_MONTH) -> int:
    if value is None:
        return default
    return min(MAX_BOOKINGS_PER_MONTH, max(MIN_BOOKINGS_PER_MONTH, int(value)))


def to_record(obj: DBClients) -> dict:
    return {
        "id": obj.id,
        "email": obj.email,
        "display_name": obj.display_name or "",
        "max_bookings_per_month": obj.max_bookings_per_month,
    }


class ClientRegistry:
    def __init__(
        self,
        db: Session,
        cache: ClientCache | None = None,
        default_quota: int = DEFAULT_MAX_BOOKINGS_PER_MONTH,
    ):
        self.db = db
        self.cache = cache
        self.default_quota = default_quota

    # ── Read ─────────────────────────────────────────────────────────────

    def list_all(self) -> list[DBClients]:
        return self.db.query(DBClients).order_by(DBClients.email).all()

    def get(self, client_id: str) -> Optional[dict]:
        """Client record by id, served from the cache when possible."""
        if self.cache is not None:
            cached = self.cache.get(client_id)
            if cached is not None:
                return cached

        obj = self.db.get(DBClients, client_id)
        if obj is None:
            return None

        record = to_record(obj)
        if self.cache is not None:
            self.cache.store(record)
        return record

    def find_by_email_fresh(self, email: str) -> Optional[DBClients]:
        """
        Client by email straight from the database.

        Skips the Redis cache and refreshes any instance already held in the
        session's identity map, so an admin edit made elsewhere is always seen.
        """
        normalized = normalize_email(email)
        if not normalized:
            return None
        stmt = (
            select(DBClients)
            .where(
                DBClients.id == client_id_from_email(normalized),
                DBClients.email == normalized,
            )
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalars().first()

    # ── Write ────────────────────────────────────────────────────────────

    def add_or_update(
        self,
        actor: Identity,
        email: str,
        display_name: Optional[str] = None,
        quota: Optional[int] = None,
    ) -> DBClients:
        ensure_admin(actor)
        normalized = normalize_email(email)
        if not normalized:
            raise InvalidArgument("Email is required.")

        client_id = client_id_from_email(normalized)
        obj = self.db.get(DBClients, client_id)
        if obj is None:
            obj = DBClients(
                id=client_id,
                email=normalized,
                display_name=(display_name or "").strip(),
                max_bookings_per_month=clamp_quota(quota, self.default_quota),
            )
            self.db.add(obj)
            action = "added"
        else:
            if display_name is not None:
                obj.display_name = display_name.strip()
            if quota is not None:
                obj.max_bookings_per_month = clamp_quota(quota)
            action = "updated"

        self._commit(obj, f"Could not save client {normalized}.")
        logger.info(f"Client {action}: {client_id} quota={obj.max_bookings_per_month}")
        return obj

    def update(
        self,
        actor: Identity,
        client_id: str,
        display_name: Optional[str] = None,
        quota: Optional[int] = None,
    ) -> DBClients:
        ensure_admin(actor)
        obj = self.db.get(DBClients, client_id)
        if not obj:
            raise NotFound("Client not found")

        if display_name is not None:
            obj.display_name = display_name.strip()
        if quota is not None:
            obj.max_bookings_per_month = clamp_quota(quota)

        self._commit(obj, "Could not update the client.")
        logger.info(f"Client updated: {client_id} quota={obj.max_bookings_per_month}")
        return obj

    def delete(self, actor: Identity, client_id: str) -> None:
        ensure_admin(actor)
        obj = self.db.get(DBClients, client_id)
        if not obj:
            raise NotFound("Client not found")

        try:
            self.db.delete(obj)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to delete client {client_id}")
            raise Internal("Could not delete the client.") from e

        if self.cache is not None:
            self.cache.invalidate(client_id)
        logger.info(f"Client deleted: {client_id}")

    def _commit(self, obj: DBClients, failure_message: str) -> None:
        try:
            self.db.commit()
            self.db.refresh(obj)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(failure_message)
            raise Internal(failure_message) from e

        if self.cache is not None:
            self.cache.store(to_record(obj))
