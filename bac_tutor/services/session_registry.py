# FILE: bac_tutor/services/session_registry.py
"""
Live quiz sessions held by the web process, one per attempt
"""
import asyncio
import logging
from typing import Dict, Optional

from bac_tutor.config import get_settings
from bac_tutor.errors import NotFoundError
from bac_tutor.services.activity_tracker import ActivityTracker
from bac_tutor.services.quiz_repository import QuizRepository
from bac_tutor.services.quiz_session import QuizSessionController, SessionState
from bac_tutor.services.record_store import RecordStore, get_record_store

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Owns session controllers and the runner task that keeps each countdown alive"""

    def __init__(self, store: RecordStore, quiz_list_route: str = "/quizzes", tick_interval: float = 1.0):
        self.repository = QuizRepository(store)
        self.tracker = ActivityTracker(store)
        self.quiz_list_route = quiz_list_route
        self.tick_interval = tick_interval
        self.sessions: Dict[str, QuizSessionController] = {}
        self.runners: Dict[str, asyncio.Task] = {}

    async def open(self, attempt_id: str, user_id: str) -> QuizSessionController:
        """Load a fresh session, replacing any previous one for the attempt"""
        controller = QuizSessionController(
            repository=self.repository,
            tracker=self.tracker,
            quiz_list_route=self.quiz_list_route,
            tick_interval=self.tick_interval
        )
        await controller.load(attempt_id, user_id)
        await self.close(attempt_id)

        self.sessions[attempt_id] = controller
        self.runners[attempt_id] = asyncio.create_task(self._run(controller))
        return controller

    def get(self, attempt_id: str, user_id: str) -> QuizSessionController:
        controller = self.sessions.get(attempt_id)
        if controller is None or controller.user_id != user_id:
            raise NotFoundError(f"No active session for attempt {attempt_id}")
        return controller

    async def close(self, attempt_id: str) -> Optional[QuizSessionController]:
        """Abandon and forget a session"""
        controller = self.sessions.pop(attempt_id, None)
        if controller is not None:
            controller.abandon()

        runner = self.runners.pop(attempt_id, None)
        if runner is not None:
            runner.cancel()
            try:
                await runner
            except asyncio.CancelledError:
                pass
        return controller

    def discard(self, attempt_id: str) -> None:
        """Forget a terminated session once its final state has been delivered"""
        self.sessions.pop(attempt_id, None)
        self.runners.pop(attempt_id, None)

    async def shutdown(self):
        for attempt_id in list(self.sessions):
            await self.close(attempt_id)
        logger.info("Session registry shut down")

    @staticmethod
    async def _run(controller: QuizSessionController):
        if controller.state is not SessionState.READY:
            return
        async with controller.countdown():
            await controller.wait_terminated()


_registry: Optional[SessionRegistry] = None


def get_session_registry() -> SessionRegistry:
    """Get or create singleton session registry"""
    global _registry
    if _registry is None:
        settings = get_settings()
        _registry = SessionRegistry(get_record_store(), quiz_list_route=settings.quiz_list_route)
    return _registry


async def close_session_registry():
    global _registry
    if _registry is not None:
        await _registry.shutdown()
        _registry = None
