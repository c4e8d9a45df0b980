# backend/slotbook/services/profiles.py
"""
User profiles and the client → profile synchronizer.

A profile is keyed by the authenticated user id, so the admission engine can
read a quota with a single primary-key lookup. It is derived data: the client
record (keyed by email) is authoritative and is copied over on login and on
each booking-page load.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import Internal
from ..models.tables import UserProfiles as DBUserProfiles
from .booking.config import DEFAULT_MAX_BOOKINGS_PER_MONTH
from .clients import ClientRegistry
from .identity import normalize_email

logger = logging.getLogger(__name__)


class ProfileStore:
    def __init__(self, db: Session, default_quota: int = DEFAULT_MAX_BOOKINGS_PER_MONTH):
        self.db = db
        self.default_quota = default_quota

    def get(self, user_id: str) -> Optional[DBUserProfiles]:
        return self.db.get(DBUserProfiles, user_id)

    def effective_quota(self, user_id: str) -> int:
        profile = self.get(user_id)
        if profile is None or profile.max_bookings_per_month is None:
            return self.default_quota
        return profile.max_bookings_per_month

    def upsert(
        self,
        user_id: str,
        *,
        email: Optional[str],
        display_name: str,
        quota: int,
    ) -> DBUserProfiles:
        obj = self.get(user_id)
        if obj is None:
            obj = DBUserProfiles(uid=user_id)
            self.db.add(obj)

        obj.email = email
        obj.display_name = display_name
        obj.max_bookings_per_month = quota

        try:
            self.db.commit()
            self.db.refresh(obj)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to write profile {user_id}")
            raise Internal("Could not save the user profile.") from e
        return obj


def sync_client_to_user_profile(
    db: Session,
    user_id: str,
    email: Optional[str],
    default_quota: int = DEFAULT_MAX_BOOKINGS_PER_MONTH,
) -> Optional[DBUserProfiles]:
    """
    Copy name and quota from the client record matching email into the profile.

    The client record is read from the database, never from the cache, so a
    stale quota cannot overwrite a fresh admin edit. Without a matching client
    record this is a no-op and the current profile (if any) is returned.
    """
    profiles = ProfileStore(db, default_quota)

    normalized = normalize_email(email)
    if not normalized:
        return profiles.get(user_id)

    client = ClientRegistry(db).find_by_email_fresh(normalized)
    if client is None:
        logger.debug(f"No client record for {normalized}, profile {user_id} left as is")
        return profiles.get(user_id)

    profile = profiles.upsert(
        user_id,
        email=normalized,
        display_name=client.display_name or "",
        quota=client.max_bookings_per_month,
    )
    logger.info(f"Profile synced: {user_id} ← {client.id} quota={profile.max_bookings_per_month}")
    return profile
