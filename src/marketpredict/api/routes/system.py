"""System health endpoints."""

from __future__ import annotations

import time

from fastapi import APIRouter, Depends

from marketpredict.api.deps import get_db
from marketpredict.registry.db import Database

router = APIRouter()

_start_time = time.time()


@router.get("/system/health")
def health(db: Database = Depends(get_db)) -> dict:
    db_ok = db.health_check()
    return {
        "status": "ok" if db_ok else "degraded",
        "database": db_ok,
        "uptimeSeconds": int(time.time() - _start_time),
    }
