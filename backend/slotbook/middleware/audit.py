# logs: method / path / status; user id; IP / UA; duration
# does NOT block the request; does NOT write to the DB

import json
import logging
import time

from fastapi import Request

logger = logging.getLogger("slotbook.audit")


async def audit_middleware(request: Request, call_next):
    start_ts = time.time()

    response = await call_next(request)

    duration_ms = int((time.time() - start_ts) * 1000)

    record = {
        "ts": int(start_ts),
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "user_id": request.headers.get("X-User-Id") or None,
        "ip": request.headers.get("X-Real-IP") or (request.client.host if request.client else None),
        "ua": request.headers.get("User-Agent", ""),
        "duration_ms": duration_ms,
    }

    logger.info(json.dumps(record, ensure_ascii=False))

    return response
