# FILE: bac_tutor/services/quiz_repository.py
"""
Typed access to quiz and attempt records
"""
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as ModelValidationError

from bac_tutor.errors import NotFoundError
from bac_tutor.models.quizzes import AttemptResult, Quiz, QuizAttempt
from bac_tutor.services.record_store import ATTEMPTS_TABLE, QUIZZES_TABLE, RecordStore

logger = logging.getLogger(__name__)


class QuizRepository:
    """Validates raw rows into quiz models at the store boundary"""

    def __init__(self, store: RecordStore):
        self.store = store

    async def get_attempt(self, attempt_id: str, owner_id: str) -> QuizAttempt:
        """Fetch an attempt owned by owner_id; other owners look the same as missing"""
        row = await self.store.select_one(
            ATTEMPTS_TABLE,
            {"id": attempt_id, "student_id": owner_id}
        )
        return self._validate(QuizAttempt, row, f"attempt {attempt_id}")

    async def get_quiz(self, quiz_id: str) -> Quiz:
        row = await self.store.select_one(QUIZZES_TABLE, {"id": quiz_id})
        return self._validate(Quiz, row, f"quiz {quiz_id}")

    async def update_attempt(self, attempt_id: str, result: AttemptResult) -> None:
        """Single write of score, answers and completion time"""
        await self.store.update(ATTEMPTS_TABLE, {"id": attempt_id}, result.to_record())
        logger.info(f"Attempt {attempt_id} updated: score={result.score}")

    @staticmethod
    def _validate(model, row: Optional[Dict[str, Any]], what: str):
        if row is None:
            raise NotFoundError(f"No {what}")
        try:
            return model.model_validate(row)
        except ModelValidationError as e:
            logger.warning(f"Malformed {what}: {e}")
            raise NotFoundError(f"Malformed {what}") from e
