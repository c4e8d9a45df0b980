# backend/slotbook/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from .config import get_settings
from .database import SessionLocal, engine
from .errors import register_error_handlers
from .middleware.audit import audit_middleware
from .models import Base
from .redis_client import redis_client
from .routers import (
    accounts,
    admin,
    bookings,
    calendar_overrides,
    clients,
    occupancy,
    profile,
    slots,
)

logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    _setup_logging()
    Base.metadata.create_all(bind=engine)
    logger.info("Schema ready")
    yield


app = FastAPI(title="Slotbook API", lifespan=lifespan)

app.middleware("http")(audit_middleware)
register_error_handlers(app)

app.include_router(slots.router)
app.include_router(profile.router)
app.include_router(bookings.router)
app.include_router(occupancy.router)
app.include_router(calendar_overrides.router)
app.include_router(clients.router)
app.include_router(accounts.router)
app.include_router(admin.router)


@app.get("/health")
def health():
    db_ok = True
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database unreachable")
        db_ok = False
    finally:
        db.close()

    result = {"db": db_ok}
    if redis_client is not None:
        try:
            result["redis"] = bool(redis_client.ping())
        except Exception:
            logger.exception("Health check: redis unreachable")
            result["redis"] = False
    return result
