from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Request
from sqlalchemy import text

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health")
async def health(request: Request):
    database_state = "Connected"
    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        database_state = "Disconnected"

    return {
        "status": "OK",
        "message": f"{request.app.title} is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "databaseState": database_state,
    }
