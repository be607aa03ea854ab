# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + data directory + encoder + SMS config.
"""

import os
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.context import AppContext, get_context

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(ctx: AppContext = Depends(get_context)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Data directory writability
    - Whether ffmpeg transcoding and SMS notification are usable
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "data_dir": "unknown",
        "transcoder": "ok" if ctx.transcoder.available else "unavailable",
        "notifier": "ok" if ctx.notifier.configured else "not configured",
    }

    # Check database
    try:
        with ctx.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        result["database"] = "ok"
    except SQLAlchemyError as e:
        result["database"] = f"error: {e.__class__.__name__}"
        result["status"] = "degraded"

    # Check data directory
    if os.path.isdir(ctx.media.data_dir) and os.access(ctx.media.data_dir, os.W_OK):
        result["data_dir"] = "ok"
    else:
        result["data_dir"] = "not writable"
        result["status"] = "degraded"

    return result
