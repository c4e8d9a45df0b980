# backend/slotbook/services/booking/__init__.py
"""
Booking core.

- config:     the two fixed daily slots, month arithmetic
- store:      booking persistence + change events
- overrides:  disabled days / disabled (day, slot) pairs, live view
- admission:  accept/reject booking requests
- occupancy:  live anonymous / admin projections of who holds what
"""

from .config import SLOTS, SLOT_IDS, SlotDefinition, SlotId, month_bounds
from .store import BookingStore, SqlBookingStore
from .overrides import OverridesConfig, OverridesStore, OverridesView, SqlOverridesStore
from .admission import AdmissionEngine, AdmissionResult
from .occupancy import OccupancyReadModel, UserBookingsView

__all__ = [
    "SLOTS",
    "SLOT_IDS",
    "SlotDefinition",
    "SlotId",
    "month_bounds",
    "BookingStore",
    "SqlBookingStore",
    "OverridesConfig",
    "OverridesStore",
    "OverridesView",
    "SqlOverridesStore",
    "AdmissionEngine",
    "AdmissionResult",
    "OccupancyReadModel",
    "UserBookingsView",
]
