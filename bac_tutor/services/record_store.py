# FILE: bac_tutor/services/record_store.py
"""
Generic record store interface and factory
"""
import logging
from typing import Any, Dict, Optional

from bac_tutor.config import get_settings
from bac_tutor.errors import ConfigurationError

logger = logging.getLogger(__name__)

ATTEMPTS_TABLE = "quiz_attempts"
QUIZZES_TABLE = "quizzes"
QUESTION_RESULTS_TABLE = "quiz_question_results"
CONVERSATIONS_TABLE = "ai_learning_conversations"


class RecordStore:
    """
    Minimal table-oriented store.

    Filters are exact-match column/value pairs. Implementations raise
    PersistenceError on any failed write or transport error.
    """

    async def select_one(self, table: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def update(self, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def insert(self, table: str, row: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def resolve_user_id(self, access_token: str) -> Optional[str]:
        """Map a bearer token to a user id via the identity provider"""
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


_record_store: Optional[RecordStore] = None


def create_record_store() -> RecordStore:
    """Build the store selected by RECORD_STORE"""
    settings = get_settings()

    if settings.record_store == "local":
        from bac_tutor.services.local_store import LocalRecordStore
        return LocalRecordStore(settings.data_dir)

    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured")

    from bac_tutor.services.supabase_store import SupabaseRecordStore
    return SupabaseRecordStore(
        url=settings.supabase_url,
        service_key=settings.supabase_service_role_key,
        timeout=settings.supabase_timeout
    )


def get_record_store() -> RecordStore:
    """Get or create singleton record store"""
    global _record_store
    if _record_store is None:
        _record_store = create_record_store()
        logger.info(f"Record store initialized: {type(_record_store).__name__}")
    return _record_store


async def close_record_store():
    """Release the singleton store (app shutdown)"""
    global _record_store
    if _record_store is not None:
        await _record_store.aclose()
        _record_store = None
