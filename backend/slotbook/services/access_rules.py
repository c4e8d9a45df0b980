# backend/slotbook/services/access_rules.py
"""
Storage-side authorization rules.

Applied by the stores on every write, independently of which session or
engine issued it:

- bookings: create by owner or admin, delete by owner or admin, update by admin
- calendar overrides: write by admin, read by anyone
- clients, user profiles of others: write by admin
"""

from ..errors import PermissionDenied
from .identity import Identity


def ensure_can_create_booking(actor: Identity, owner_id: str) -> None:
    if actor.is_admin or actor.user_id == owner_id:
        return
    raise PermissionDenied("You can only book for yourself.")


def ensure_can_delete_booking(actor: Identity, owner_id: str) -> None:
    if actor.is_admin or actor.user_id == owner_id:
        return
    raise PermissionDenied("You can only cancel your own bookings.")


def ensure_can_update_booking(actor: Identity) -> None:
    if not actor.is_admin:
        raise PermissionDenied("Only the administrator can move bookings.")


def ensure_admin(actor: Identity) -> None:
    if not actor.is_admin:
        raise PermissionDenied("Administrator access required.")
