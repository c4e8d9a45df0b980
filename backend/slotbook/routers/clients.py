# backend/slotbook/routers/clients.py
# Admin only. DELETE does not cascade to profiles or bookings.

from fastapi import APIRouter, Depends, status

from ..dependencies import require_admin_session
from ..errors import NotFound
from ..schemas.clients import ClientCreate, ClientRead, ClientUpdate
from ..services.sessions import AdminSession

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("/", response_model=list[ClientRead])
def list_clients(session: AdminSession = Depends(require_admin_session)):
    return session.list_clients()


@router.get("/{client_id}", response_model=ClientRead)
def get_client(client_id: str, session: AdminSession = Depends(require_admin_session)):
    record = session.get_client(client_id)
    if record is None:
        raise NotFound("Client not found")
    return record


@router.post("/", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
def add_or_update_client(
    data: ClientCreate,
    session: AdminSession = Depends(require_admin_session),
):
    return session.add_or_update_client(
        data.email,
        data.display_name,
        data.max_bookings_per_month,
    )


@router.patch("/{client_id}", response_model=ClientRead)
def update_client(
    client_id: str,
    data: ClientUpdate,
    session: AdminSession = Depends(require_admin_session),
):
    return session.update_client(
        client_id,
        data.display_name,
        data.max_bookings_per_month,
    )


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(client_id: str, session: AdminSession = Depends(require_admin_session)):
    session.delete_client(client_id)
