from fastapi import APIRouter
from datetime import datetime
import logging

import spiralpdf.services.queue_processor as queue_service

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/healthz")
async def health_check():
    """
    Health check endpoint
    Returns OK status for basic health validation
    """
    logger.info("Health check requested")
    processor = queue_service.queue_processor
    return {
        "status": "OK",
        "timestamp": datetime.now().isoformat(),
        "service": "spiralpdf-server",
        "queue_processor": {
            "running": bool(processor and processor.is_running),
            "in_flight": bool(processor and processor.in_flight),
        },
    }
