# backend/slotbook/routers/profile.py
"""
Own profile.

GET /profile/me re-syncs from the client record on every call (booking page
load), so a quota changed by the administrator applies without a new login.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ..dependencies import require_client_session
from ..models.tables import UserProfiles as DBUserProfiles
from ..schemas.user_profiles import UserProfileRead
from ..services.sessions import ClientSession

router = APIRouter(prefix="/profile", tags=["profile"])


def _profile_read(session: ClientSession, profile: Optional[DBUserProfiles]) -> UserProfileRead:
    return UserProfileRead(
        uid=session.identity.user_id,
        email=session.identity.email,
        display_name=profile.display_name if profile else "",
        max_bookings_per_month=session.effective_quota(),
        is_admin=False,
    )


@router.get("/me", response_model=UserProfileRead)
def get_my_profile(session: ClientSession = Depends(require_client_session)):
    return _profile_read(session, session.sync_profile())


@router.post("/sync", response_model=UserProfileRead)
def sync_my_profile(session: ClientSession = Depends(require_client_session)):
    return _profile_read(session, session.sync_profile())
