import os
import sys
import pathlib

from dotenv import load_dotenv

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "backend"))


# ======================================================
# ENV
# ======================================================

load_dotenv()

if not os.getenv("DATABASE_URL"):
    raise RuntimeError("DATABASE_URL is not set")

if not os.getenv("ADMIN_EMAIL"):
    raise RuntimeError("ADMIN_EMAIL is not set")


from slotbook.database import SessionLocal, engine  # noqa: E402
from slotbook.models import Base, CalendarConfig  # noqa: E402
from slotbook.services.booking.overrides import CALENDAR_DOC_ID  # noqa: E402


# ======================================================
# MAIN LOGIC
# ======================================================

def main():
    Base.metadata.create_all(bind=engine)
    print(f"[BOOTSTRAP] Schema ready: {', '.join(sorted(Base.metadata.tables))}")

    db = SessionLocal()
    try:
        # --- ensure calendar singleton ---
        if db.get(CalendarConfig, CALENDAR_DOC_ID) is None:
            db.add(CalendarConfig(id=CALENDAR_DOC_ID))
            db.commit()
            print("[BOOTSTRAP] Calendar overrides document created")
        else:
            print("[BOOTSTRAP] Calendar overrides document already exists")
    finally:
        db.close()

    print(f"[BOOTSTRAP] Administrator: {os.getenv('ADMIN_EMAIL').strip().lower()}")


if __name__ == "__main__":
    main()
