# FILE: bac_tutor/routes/deps.py
"""
Shared FastAPI dependencies
"""
import logging
from typing import Optional
from fastapi import Depends, Header

from bac_tutor.errors import AuthenticationError, ConfigurationError
from bac_tutor.providers.gemini import get_gemini_provider
from bac_tutor.services.record_store import RecordStore, get_record_store
from bac_tutor.services.session_registry import SessionRegistry, get_session_registry
from bac_tutor.services.tutor_chat import TutorChatService, bearer_token

logger = logging.getLogger(__name__)


def get_store() -> RecordStore:
    return get_record_store()


def get_registry() -> SessionRegistry:
    return get_session_registry()


async def get_current_user_id(
    authorization: Optional[str] = Header(None),
    store: RecordStore = Depends(get_store)
) -> str:
    """Resolve the caller through the identity provider"""
    token = bearer_token(authorization)
    if token is None:
        raise AuthenticationError("Missing bearer token")

    user_id = await store.resolve_user_id(token)
    if not user_id:
        raise AuthenticationError("Invalid or expired token")
    return user_id


def get_chat_service() -> TutorChatService:
    try:
        store = get_record_store()
    except ConfigurationError as e:
        logger.warning(f"Conversations will not be stored: {e}")
        store = None
    return TutorChatService(provider_factory=get_gemini_provider, store=store)
