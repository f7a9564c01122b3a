from __future__ import annotations

import sys
import logging
from fastapi import APIRouter
import pydantic  # type: ignore

from contextly.core import config
from contextly.services import inflight

logger = logging.getLogger("contextly.api.health")
router = APIRouter()


@router.get("/ping")
def ping():
    logger.info("GET /health/ping")
    return {"ok": True}


@router.get("/info")
def info():
    out = {
        "ok": True,
        "upstream": config.UPSTREAM_URL,
        "streaming": inflight.count(),
        "python": sys.version.split()[0],
        "pydantic": getattr(pydantic, "__version__", "unknown"),
    }
    logger.info("GET /health/info streaming=%d", out["streaming"])
    return out

