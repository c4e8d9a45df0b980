# backend/slotbook/services/identity.py
"""
Identity resolution.

The upstream gateway authenticates the caller and forwards a normalized
identity (opaque user id + email). Admin status is derived here, by exact
case-insensitive match against the single configured administrator email.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: Optional[str]
    is_admin: bool = False


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def is_admin_email(email: Optional[str], admin_email: str) -> bool:
    normalized = normalize_email(email)
    return bool(normalized) and normalized == normalize_email(admin_email)


def resolve_identity(
    user_id: str,
    email: Optional[str],
    admin_email: str,
) -> Identity:
    normalized = normalize_email(email) or None
    return Identity(
        user_id=user_id,
        email=normalized,
        is_admin=is_admin_email(normalized, admin_email),
    )
