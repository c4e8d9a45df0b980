# backend/slotbook/dependencies.py
"""
Request-scoped dependencies.

The gateway in front of this service authenticates the caller and forwards:
  X-User-Id     opaque user id (required)
  X-User-Email  email, if the account has one
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from .config import Settings, get_settings
from .database import get_db, get_session_factory
from .errors import PermissionDenied
from .redis_client import redis_client
from .services.accounts import AccountProvider, IdentityToolkitProvider
from .services.client_cache import ClientCache
from .services.feed import ChangeFeed, get_change_feed
from .services.identity import Identity, resolve_identity
from .services.sessions import AdminSession, Backends, ClientSession, RoleSession, open_session


def get_identity(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Identity:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return resolve_identity(x_user_id.strip(), x_user_email, settings.admin_email)


def get_client_cache(settings: Settings = Depends(get_settings)) -> Optional[ClientCache]:
    if redis_client is None:
        return None
    return ClientCache(redis_client, settings.client_cache_ttl_seconds)


def get_account_provider(settings: Settings = Depends(get_settings)) -> Optional[AccountProvider]:
    if not settings.identity_api_key:
        return None
    return IdentityToolkitProvider(settings.identity_api_key, settings.identity_api_url)


def get_backends(
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
    session_factory=Depends(get_session_factory),
    client_cache: Optional[ClientCache] = Depends(get_client_cache),
    account_provider: Optional[AccountProvider] = Depends(get_account_provider),
    settings: Settings = Depends(get_settings),
) -> Backends:
    return Backends(
        db=db,
        feed=feed,
        session_factory=session_factory,
        client_cache=client_cache,
        account_provider=account_provider,
        default_quota=settings.default_max_bookings_per_month,
    )


def get_role_session(
    identity: Identity = Depends(get_identity),
    backends: Backends = Depends(get_backends),
) -> RoleSession:
    return open_session(identity, backends)


def require_client_session(session: RoleSession = Depends(get_role_session)) -> ClientSession:
    if not isinstance(session, ClientSession):
        raise PermissionDenied("This page is for clients.")
    return session


def require_admin_session(session: RoleSession = Depends(get_role_session)) -> AdminSession:
    if not isinstance(session, AdminSession):
        raise PermissionDenied("Administrator access required.")
    return session
