"""
@file: health.py
@description:
Health check endpoint used by the hosting platform and uptime monitors.

@notes:
- The check does not call Supabase; it only proves the process is serving
  requests.
"""

from fastapi import APIRouter
from cloude.core.logger import setup_logger

# Create a component-specific logger
logger = setup_logger("cloude.api.health")

router = APIRouter()

@router.get("/health", tags=["Health"])
async def health_check():
    """
    Returns:
        dict: A dictionary containing status and message.
    """
    logger.debug("Health check requested")
    return {
        "status": "OK",
        "message": "Health check successful"
    }
