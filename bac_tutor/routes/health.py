# FILE: bac_tutor/routes/health.py
"""
Health check endpoint
"""
import logging
from fastapi import APIRouter

from bac_tutor import __version__
from bac_tutor.config import get_settings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def health_check():
    """
    Health check endpoint
    Reports configuration readiness, never secrets
    """
    settings = get_settings()

    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.environment,
        "record_store": settings.record_store,
        "record_store_configured": settings.record_store == "local" or bool(
            settings.supabase_url and settings.supabase_service_role_key
        ),
        "completion_configured": bool(settings.gemini_api_key)
    }
