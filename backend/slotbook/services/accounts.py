# backend/slotbook/services/accounts.py
"""
Login account provisioning (email + password) through the external identity
provider.

Provider: Google Identity Toolkit REST API
  POST {IDENTITY_API_URL}/accounts:signUp?key=...   → localId
  (email, password and displayName in one request)

The client registry does not depend on this succeeding: a client record may
exist without a login account and vice versa; the profile synchronizer
reconciles them on the next login.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx
from sqlalchemy.orm import Session

from ..errors import AlreadyExists, Internal, InvalidArgument
from .booking.config import DEFAULT_MAX_BOOKINGS_PER_MONTH
from .clients import clamp_quota
from .identity import normalize_email
from .profiles import ProfileStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

CREATED_MESSAGE = "Client created. Share the email and password with the client so they can sign in."


class AccountProvider(Protocol):
    def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> str:
        """Create a login account and return its uid."""
        ...


class ProviderError(Exception):
    def __init__(self, code: str, message: str = ""):
        self.code = code
        self.message = message or code
        super().__init__(self.message)


@dataclass(frozen=True)
class CreatedAccount:
    uid: str
    email: str
    message: str = CREATED_MESSAGE


class IdentityToolkitProvider:
    """Synchronous httpx client for the Identity Toolkit accounts API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://identitytoolkit.googleapis.com/v1",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _post(self, client: httpx.Client, action: str, payload: dict) -> dict:
        url = f"{self.base_url}/accounts:{action}"
        try:
            resp = client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Identity API request failed: {action} -> {e}")
            raise ProviderError("NETWORK_ERROR", str(e)) from e

        if resp.status_code >= 400:
            try:
                message = resp.json().get("error", {}).get("message", "")
            except ValueError:
                message = resp.text
            logger.warning(f"Identity API error: {action} -> {resp.status_code} {message}")
            # e.g. "WEAK_PASSWORD : Password should be at least 6 characters"
            raise ProviderError(message.split(" ")[0] or "UNKNOWN", message)

        return resp.json()

    def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> str:
        payload = {"email": email, "password": password, "returnSecureToken": False}
        if display_name:
            # one request: the account exists with its name, or not at all
            payload["displayName"] = display_name

        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            data = self._post(client, "signUp", payload)
        return data["localId"]


def map_provider_error(err: ProviderError) -> Exception:
    if err.code == "EMAIL_EXISTS":
        return AlreadyExists("This email is already registered.")
    if err.code == "INVALID_EMAIL":
        return InvalidArgument("Invalid email.")
    if err.code == "WEAK_PASSWORD":
        return InvalidArgument(f"Password too weak (min {MIN_PASSWORD_LENGTH} characters).")
    return Internal(err.message or "Could not create the user.")


def create_client_user(
    db: Session,
    provider: AccountProvider,
    email: str,
    password: str,
    display_name: Optional[str] = None,
    max_bookings_per_month: Optional[int] = None,
) -> CreatedAccount:
    """
    Create a login account and its user profile.

    Callers must already hold an admin session; see AdminSession.create_client_user.
    """
    normalized = normalize_email(email)
    if not normalized:
        raise InvalidArgument("Email is required.")

    password = (password or "").strip()
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidArgument(f"Password is required (min {MIN_PASSWORD_LENGTH} characters).")

    name = (display_name or "").strip()

    try:
        uid = provider.create_user(normalized, password, name or None)
    except ProviderError as e:
        raise map_provider_error(e) from e

    quota = (
        clamp_quota(max_bookings_per_month)
        if max_bookings_per_month is not None and max_bookings_per_month >= 1
        else DEFAULT_MAX_BOOKINGS_PER_MONTH
    )
    ProfileStore(db).upsert(uid, email=normalized, display_name=name, quota=quota)

    logger.info(f"Login account created: {uid} ({normalized}) quota={quota}")
    return CreatedAccount(uid=uid, email=normalized)
