# FILE: bac_tutor/services/quiz_session.py
"""
Quiz session lifecycle: load, countdown, answer capture, scoring, submission

State flows LOADING -> READY -> SUBMITTING -> TERMINATED, with
LOADING -> TERMINATED when the attempt or quiz cannot be loaded.

The module-level transition functions are pure: they take a SessionSnapshot
and return a new one. QuizSessionController wires them to the record store,
the activity log and the countdown task.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Mapping, Optional

from bac_tutor.errors import NotFoundError, SessionClosedError, ValidationError
from bac_tutor.models.quizzes import OPTION_LETTERS, AttemptResult, Question, Quiz, QuizAttempt
from bac_tutor.models.sessions import Notification, OptionView, QuestionView, SessionView
from bac_tutor.services.activity_tracker import ActivityTracker
from bac_tutor.services.quiz_repository import QuizRepository

logger = logging.getLogger(__name__)

QUIZ_TIME_LIMIT_SECONDS = 1800


class SessionState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    SUBMITTING = "submitting"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable state of one quiz session"""
    state: SessionState = SessionState.LOADING
    attempt: Optional[QuizAttempt] = None
    quiz: Optional[Quiz] = None
    current_index: int = 0
    selections: Mapping[str, str] = field(default_factory=dict)
    time_left: int = QUIZ_TIME_LIMIT_SECONDS

    @property
    def question_count(self) -> int:
        return len(self.quiz.questions) if self.quiz else 0

    @property
    def current_question(self) -> Optional[Question]:
        if not self.question_count:
            return None
        return self.quiz.questions[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return self.question_count > 0 and self.current_index == self.question_count - 1


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def start(attempt: QuizAttempt, quiz: Quiz) -> SessionSnapshot:
    """Fresh READY snapshot: empty selections, first question, full time budget"""
    if not quiz.questions:
        raise NotFoundError("Quiz not found or has no questions")

    return SessionSnapshot(
        state=SessionState.READY,
        attempt=attempt,
        quiz=quiz,
        current_index=0,
        selections={},
        time_left=QUIZ_TIME_LIMIT_SECONDS
    )


def select_answer(snapshot: SessionSnapshot, question_id: str, option: str) -> SessionSnapshot:
    """Record (or overwrite) the chosen letter for one question"""
    letter = (option or "").strip().upper()
    if letter not in OPTION_LETTERS:
        raise ValidationError(f"Option must be one of {', '.join(OPTION_LETTERS)}")
    if snapshot.quiz is None or question_id not in snapshot.quiz.question_ids():
        raise ValidationError(f"Question {question_id} is not part of this quiz")

    return replace(snapshot, selections={**snapshot.selections, question_id: letter})


def advance(snapshot: SessionSnapshot) -> SessionSnapshot:
    if snapshot.current_index < snapshot.question_count - 1:
        return replace(snapshot, current_index=snapshot.current_index + 1)
    return snapshot


def retreat(snapshot: SessionSnapshot) -> SessionSnapshot:
    if snapshot.current_index > 0:
        return replace(snapshot, current_index=snapshot.current_index - 1)
    return snapshot


def tick(snapshot: SessionSnapshot) -> SessionSnapshot:
    """One second off the clock while READY"""
    if snapshot.state is not SessionState.READY or snapshot.time_left <= 0:
        return snapshot
    return replace(snapshot, time_left=snapshot.time_left - 1)


def compute_score(quiz: Quiz, selections: Mapping[str, str]) -> int:
    """
    Flat score: every exact match is worth the quiz's per-question value.

    Unanswered and wrong questions score zero; keys in selections that are
    not questions of this quiz are ignored.
    """
    correct = sum(1 for q in quiz.questions if selections.get(q.id) == q.correct_answer)
    return correct * quiz.points_per_question


def format_clock(seconds: int) -> str:
    minutes, remaining = divmod(max(seconds, 0), 60)
    return f"{minutes}:{remaining:02d}"


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class QuizSessionController:
    """Drives one attempt from load to submission"""

    def __init__(
        self,
        repository: QuizRepository,
        tracker: ActivityTracker,
        quiz_list_route: str = "/quizzes",
        tick_interval: float = 1.0
    ):
        self.repository = repository
        self.tracker = tracker
        self.quiz_list_route = quiz_list_route
        self.tick_interval = tick_interval

        self.snapshot = SessionSnapshot()
        self.attempt_id: Optional[str] = None
        self.user_id: Optional[str] = None
        self.final_score: Optional[int] = None
        self.notifications: List[Notification] = []
        self.redirect: Optional[str] = None

        self._countdown_task: Optional[asyncio.Task] = None
        self._terminated = asyncio.Event()

    @property
    def state(self) -> SessionState:
        return self.snapshot.state

    # -- lifecycle ----------------------------------------------------------

    async def load(self, attempt_id: str, user_id: str) -> SessionSnapshot:
        """Fetch the attempt and its quiz; any failure terminates the session"""
        if self.state is not SessionState.LOADING:
            raise SessionClosedError("Session already loaded")

        self.attempt_id = attempt_id
        self.user_id = user_id

        try:
            if not attempt_id or not user_id:
                raise ValidationError("attempt_id and user_id are required")

            attempt = await self.repository.get_attempt(attempt_id, user_id)
            quiz = await self.repository.get_quiz(attempt.quiz_id)
            snapshot = start(attempt, quiz)
        except Exception as e:
            logger.error(f"Error loading attempt {attempt_id}: {e}")
            self._notify("Error", "Failed to load quiz", variant="destructive")
            self._terminate()
            raise

        self.snapshot = snapshot
        logger.info(
            f"Session ready: attempt={attempt_id} quiz={snapshot.quiz.id} "
            f"questions={snapshot.question_count}"
        )
        return snapshot

    def select_answer(self, question_id: str, option: str) -> SessionSnapshot:
        self._require_ready()
        self.snapshot = select_answer(self.snapshot, question_id, option)
        return self.snapshot

    def advance(self) -> SessionSnapshot:
        self._require_ready()
        self.snapshot = advance(self.snapshot)
        return self.snapshot

    def retreat(self) -> SessionSnapshot:
        self._require_ready()
        self.snapshot = retreat(self.snapshot)
        return self.snapshot

    async def tick(self) -> None:
        """Advance the clock; the tick that reaches zero submits"""
        if self.state is not SessionState.READY:
            return

        self.snapshot = tick(self.snapshot)
        if self.snapshot.time_left == 0:
            logger.info(f"Time is up for attempt {self.attempt_id}")
            await self.submit()

    async def finish(self) -> Optional[int]:
        """Explicit submission, only offered on the last question"""
        self._require_ready()
        if not self.snapshot.is_last_question:
            raise ValidationError("Submit is only available on the last question")
        return await self.submit()

    async def submit(self) -> Optional[int]:
        """
        Score and persist the attempt, then log per-question outcomes.

        Runs at most once: any call made while the session is not READY is a
        no-op returning None. A failed score write terminates the session and
        re-raises; outcome logging failures are logged and skipped.
        """
        if self.state is not SessionState.READY:
            logger.debug(f"Ignoring submit for attempt {self.attempt_id} in state {self.state.value}")
            return None

        self.snapshot = replace(self.snapshot, state=SessionState.SUBMITTING)
        self._cancel_countdown()

        snapshot = self.snapshot
        final_score = compute_score(snapshot.quiz, snapshot.selections)
        result = AttemptResult(
            score=final_score,
            answers=dict(snapshot.selections),
            completed_at=datetime.now(timezone.utc)
        )

        try:
            await self.repository.update_attempt(snapshot.attempt.id, result)
        except Exception as e:
            logger.error(f"Error submitting attempt {self.attempt_id}: {e}")
            self._notify("Error", "Failed to submit quiz", variant="destructive")
            self._terminate()
            raise

        await self._log_outcomes(snapshot)

        self.final_score = final_score
        self._notify("Quiz completed!", f"Your score: {final_score}/{snapshot.quiz.max_score}")
        self._terminate()
        logger.info(f"Attempt {self.attempt_id} submitted: score={final_score}/{snapshot.quiz.max_score}")
        return final_score

    def abandon(self) -> None:
        """Student left the page; nothing is written"""
        if self.state in (SessionState.LOADING, SessionState.READY):
            logger.info(f"Session abandoned: attempt={self.attempt_id}")
            self._terminate()

    async def wait_terminated(self) -> None:
        await self._terminated.wait()

    # -- countdown ----------------------------------------------------------

    @asynccontextmanager
    async def countdown(self):
        """Run the countdown for as long as the context is held"""
        self._require_ready()
        self._countdown_task = asyncio.create_task(self._run_countdown())
        try:
            yield self
        finally:
            await self._stop_countdown()

    async def _run_countdown(self):
        while self.state is SessionState.READY:
            await asyncio.sleep(self.tick_interval)
            try:
                await self.tick()
            except Exception as e:
                # Already surfaced through the session notification
                logger.error(f"Automatic submission failed for attempt {self.attempt_id}: {e}")

    def _cancel_countdown(self):
        task = self._countdown_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _stop_countdown(self):
        task, self._countdown_task = self._countdown_task, None
        if task is None or task is asyncio.current_task():
            return
        # A timed submission runs inside the countdown task and must complete
        if self.state is not SessionState.SUBMITTING:
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    # -- helpers ------------------------------------------------------------

    async def _log_outcomes(self, snapshot: SessionSnapshot):
        for question in snapshot.quiz.questions:
            student_answer = snapshot.selections.get(question.id, "")
            try:
                await self.tracker.log_question_outcome(
                    attempt_id=snapshot.attempt.id,
                    question_id=question.id,
                    question_text=question.question_text,
                    student_answer=student_answer,
                    correct_answer=question.correct_answer,
                    is_correct=student_answer == question.correct_answer
                )
            except Exception as e:
                logger.warning(f"Failed to log outcome for question {question.id}: {e}")

    def _require_ready(self):
        if self.state is not SessionState.READY:
            raise SessionClosedError(f"Session is {self.state.value}")

    def _notify(self, title: str, description: str, variant: str = "default"):
        self.notifications.append(Notification(title=title, description=description, variant=variant))

    def _terminate(self):
        self.snapshot = replace(self.snapshot, state=SessionState.TERMINATED)
        self.redirect = self.quiz_list_route
        self._cancel_countdown()
        self._terminated.set()

    def view(self) -> SessionView:
        """Render-ready snapshot for the quiz page"""
        snapshot = self.snapshot
        question = snapshot.current_question
        count = snapshot.question_count

        question_view = None
        if question is not None:
            question_view = QuestionView(
                id=question.id,
                question_text=question.question_text,
                options=[OptionView(letter=letter, text=text) for letter, text in question.options()],
                difficulty=question.difficulty
            )

        selections: Dict[str, str] = dict(snapshot.selections)
        return SessionView(
            attempt_id=self.attempt_id or "",
            state=snapshot.state.value,
            label=snapshot.quiz.label if snapshot.quiz else None,
            current_index=snapshot.current_index,
            question_count=count,
            is_last_question=snapshot.is_last_question,
            question=question_view,
            selected_option=selections.get(question.id) if question else None,
            selections=selections,
            time_left=snapshot.time_left,
            clock=format_clock(snapshot.time_left),
            progress=round((snapshot.current_index + 1) / count * 100) if count else 0,
            notification=self.notifications[-1] if self.notifications else None,
            redirect=self.redirect
        )
