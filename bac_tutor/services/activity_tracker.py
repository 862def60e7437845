# FILE: bac_tutor/services/activity_tracker.py
"""
Per-question outcome logging
"""
import logging

from bac_tutor.models.quizzes import QuestionOutcome
from bac_tutor.services.record_store import QUESTION_RESULTS_TABLE, RecordStore

logger = logging.getLogger(__name__)


class ActivityTracker:
    """Records what a student answered against the correct answer"""

    def __init__(self, store: RecordStore):
        self.store = store

    async def log_question_outcome(
        self,
        attempt_id: str,
        question_id: str,
        question_text: str,
        student_answer: str,
        correct_answer: str,
        is_correct: bool
    ) -> None:
        """Insert one outcome row; raises PersistenceError on failure"""
        outcome = QuestionOutcome(
            attempt_id=attempt_id,
            question_id=question_id,
            question_text=question_text,
            student_answer=student_answer,
            correct_answer=correct_answer,
            is_correct=is_correct
        )
        await self.store.insert(QUESTION_RESULTS_TABLE, outcome.model_dump())
        logger.debug(f"Outcome logged: attempt={attempt_id} question={question_id} correct={is_correct}")
