from fastapi import APIRouter
from datetime import datetime, timezone
import logging
import platform
import sys

from spiralpdf.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/server/info")
async def server_info():
    """
    Server information endpoint
    Returns server details and system information
    """
    logger.info("Server info requested")
    return {
        "service": "spiralpdf-server",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "system": {
            "platform": platform.platform(),
            "python_version": sys.version,
            "architecture": platform.architecture()[0]
        },
        "queue": {
            "poll_interval_seconds": settings.poll_interval_seconds,
            "render_executor": settings.render_executor,
        },
        "status": "running"
    }
