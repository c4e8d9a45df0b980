# backend/slotbook/routers/accounts.py

from fastapi import APIRouter, Depends, status

from ..dependencies import require_admin_session
from ..schemas.accounts import AccountCreate, AccountCreated
from ..services.sessions import AdminSession

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.post("/", response_model=AccountCreated, status_code=status.HTTP_201_CREATED)
def create_client_user(
    data: AccountCreate,
    session: AdminSession = Depends(require_admin_session),
):
    """Create a login account for a client and seed its profile."""
    return session.create_client_user(
        data.email,
        data.password,
        data.display_name,
        data.max_bookings_per_month,
    )
