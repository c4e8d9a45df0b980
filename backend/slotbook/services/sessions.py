# backend/slotbook/services/sessions.py
"""
Role capabilities.

open_session() turns a resolved identity into exactly one of:
- ClientSession: book/cancel for oneself, anonymous occupancy, own profile
- AdminSession: clients, overrides, any booking, occupancy with identities

Each type only has the methods its role may call; routers ask for the type
they need instead of branching on is_admin.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..errors import Internal
from ..models.tables import Bookings as DBBookings
from ..models.tables import Clients as DBClients
from ..models.tables import UserProfiles as DBUserProfiles
from . import accounts
from .accounts import AccountProvider, CreatedAccount
from .booking import overrides as overrides_ops
from .booking.admission import AdmissionEngine, AdmissionResult
from .booking.config import DEFAULT_MAX_BOOKINGS_PER_MONTH
from .booking.occupancy import (
    AdminOccupancy,
    ClientOccupancy,
    OccupancyReadModel,
    UserBookingsView,
)
from .booking.overrides import OverridesConfig, OverridesView, SqlOverridesStore
from .booking.store import SqlBookingStore
from .client_cache import ClientCache
from .clients import ClientRegistry
from .feed import ChangeFeed, Unsubscribe
from .identity import Identity
from .profiles import ProfileStore, sync_client_to_user_profile


@dataclass
class Backends:
    """Per-request collaborators shared by both session types."""
    db: Session
    feed: ChangeFeed
    session_factory: Callable[[], Session]
    client_cache: Optional[ClientCache] = None
    account_provider: Optional[AccountProvider] = None
    default_quota: int = DEFAULT_MAX_BOOKINGS_PER_MONTH


class _BaseSession:
    def __init__(self, identity: Identity, backends: Backends):
        self.identity = identity
        self.backends = backends

        self.bookings = SqlBookingStore(backends.db, backends.feed)
        self.overrides_store = SqlOverridesStore(backends.db, backends.feed)
        self.profiles = ProfileStore(backends.db, backends.default_quota)
        self.engine = AdmissionEngine(
            self.bookings,
            self.overrides_store,
            self.profiles.effective_quota,
        )
        self.occupancy_model = OccupancyReadModel(backends.session_factory, backends.feed)

    def overrides(self) -> OverridesConfig:
        return self.overrides_store.get()

    def watch_overrides(self, callback: Callable[[OverridesConfig], None]) -> Unsubscribe:
        view = OverridesView(self.backends.session_factory, self.backends.feed)
        return view.subscribe(callback)


class ClientSession(_BaseSession):
    role = "client"

    def sync_profile(self) -> Optional[DBUserProfiles]:
        return sync_client_to_user_profile(
            self.backends.db,
            self.identity.user_id,
            self.identity.email,
            self.backends.default_quota,
        )

    def effective_quota(self) -> int:
        return self.profiles.effective_quota(self.identity.user_id)

    def book(self, day: date, slot_id: str) -> AdmissionResult:
        return self.engine.try_book(self.identity, day, slot_id)

    def cancel(self, booking_id: str) -> None:
        self.engine.cancel(self.identity, booking_id)

    def my_bookings(self) -> list[DBBookings]:
        return self.bookings.list_for_user(self.identity.user_id)

    def monthly_count(self, month: date) -> int:
        return self.engine.monthly_count(self.identity.user_id, month)

    def occupancy(self, start: date, end: date) -> ClientOccupancy:
        return self.occupancy_model.client_view(start, end)

    def watch_occupancy(
        self,
        start: date,
        end: date,
        callback: Callable[[ClientOccupancy], None],
    ) -> Unsubscribe:
        return self.occupancy_model.subscribe(start, end, callback, admin=False)

    def watch_my_bookings(self, callback: Callable[[list[dict]], None]) -> Unsubscribe:
        view = UserBookingsView(self.backends.session_factory, self.backends.feed)
        return view.subscribe(self.identity.user_id, callback)


class AdminSession(_BaseSession):
    role = "admin"

    def __init__(self, identity: Identity, backends: Backends):
        super().__init__(identity, backends)
        self.clients = ClientRegistry(backends.db, backends.client_cache, backends.default_quota)

    # ── Bookings ─────────────────────────────────────────────────────────

    def list_bookings(self) -> list[DBBookings]:
        return self.bookings.list_all()

    def create_booking(
        self,
        user_id: str,
        day: date,
        slot_id: str,
        user_email: Optional[str] = None,
    ) -> DBBookings:
        return self.engine.admin_create_booking(self.identity, user_id, day, slot_id, user_email)

    def update_booking(self, booking_id: str, new_date: date, new_slot_id: str) -> DBBookings:
        return self.engine.admin_update_booking(self.identity, booking_id, new_date, new_slot_id)

    def delete_booking(self, booking_id: str) -> None:
        self.engine.admin_delete_booking(self.identity, booking_id)

    def occupancy(self, start: date, end: date) -> AdminOccupancy:
        return self.occupancy_model.admin_view(start, end)

    def watch_occupancy(
        self,
        start: date,
        end: date,
        callback: Callable[[AdminOccupancy], None],
    ) -> Unsubscribe:
        return self.occupancy_model.subscribe(start, end, callback, admin=True)

    # ── Clients ──────────────────────────────────────────────────────────

    def list_clients(self) -> list[DBClients]:
        return self.clients.list_all()

    def get_client(self, client_id: str) -> Optional[dict]:
        return self.clients.get(client_id)

    def add_or_update_client(
        self,
        email: str,
        display_name: Optional[str] = None,
        quota: Optional[int] = None,
    ) -> DBClients:
        return self.clients.add_or_update(self.identity, email, display_name, quota)

    def update_client(
        self,
        client_id: str,
        display_name: Optional[str] = None,
        quota: Optional[int] = None,
    ) -> DBClients:
        return self.clients.update(self.identity, client_id, display_name, quota)

    def delete_client(self, client_id: str) -> None:
        self.clients.delete(self.identity, client_id)

    def create_client_user(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        max_bookings_per_month: Optional[int] = None,
    ) -> CreatedAccount:
        provider = self.backends.account_provider
        if provider is None:
            raise Internal("Account provisioning is not configured.")
        return accounts.create_client_user(
            self.backends.db,
            provider,
            email,
            password,
            display_name,
            max_bookings_per_month,
        )

    # ── Overrides ────────────────────────────────────────────────────────

    def set_overrides(self, config: OverridesConfig) -> OverridesConfig:
        return self.overrides_store.set(self.identity, config)

    def disable_date(self, day: date) -> OverridesConfig:
        return overrides_ops.disable_date(self.overrides_store, self.identity, day)

    def enable_date(self, day: date) -> OverridesConfig:
        return overrides_ops.enable_date(self.overrides_store, self.identity, day)

    def disable_slot(self, day: date, slot_id: str) -> OverridesConfig:
        return overrides_ops.disable_slot(self.overrides_store, self.identity, day, slot_id)

    def enable_slot(self, day: date, slot_id: str) -> OverridesConfig:
        return overrides_ops.enable_slot(self.overrides_store, self.identity, day, slot_id)


RoleSession = ClientSession | AdminSession


def open_session(identity: Identity, backends: Backends) -> RoleSession:
    if identity.is_admin:
        return AdminSession(identity, backends)
    return ClientSession(identity, backends)
