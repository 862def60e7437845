# FILE: bac_tutor/routes/quiz_sessions.py
"""
Quiz-taking endpoints: one live session per attempt
"""
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from bac_tutor.errors import SessionClosedError, TutorError
from bac_tutor.models.sessions import AnswerRequest, SessionView, SubmitResponse
from bac_tutor.routes.deps import get_current_user_id, get_registry
from bac_tutor.services.quiz_session import QuizSessionController, SessionState
from bac_tutor.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)
router = APIRouter()


def _status_for(error: Exception) -> int:
    return error.status_code if isinstance(error, TutorError) else 500


def _failure(controller: QuizSessionController, status_code: int, error: str) -> JSONResponse:
    view = controller.view()
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "notification": view.notification.model_dump() if view.notification else None,
            "redirect": view.redirect
        }
    )


@router.post("/{attempt_id}", response_model=SessionView)
async def open_session(
    attempt_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """Load the attempt and its quiz and start the countdown"""
    logger.info(f"Open session: attempt={attempt_id}")

    try:
        controller = await registry.open(attempt_id, user_id)
    except Exception as e:
        logger.warning(f"Session load failed for attempt {attempt_id}: {e}")
        return JSONResponse(
            status_code=_status_for(e),
            content={
                "error": "Failed to load quiz",
                "notification": {
                    "title": "Error",
                    "description": "Failed to load quiz",
                    "variant": "destructive"
                },
                "redirect": registry.quiz_list_route
            }
        )

    return controller.view()


@router.get("/{attempt_id}", response_model=SessionView)
async def get_session(
    attempt_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """Current view; a terminated session is dropped after this read"""
    controller = registry.get(attempt_id, user_id)
    view = controller.view()
    if controller.state is SessionState.TERMINATED:
        registry.discard(attempt_id)
    return view


@router.put("/{attempt_id}/answers/{question_id}", response_model=SessionView)
async def select_answer(
    attempt_id: str,
    question_id: str,
    request: AnswerRequest,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    controller = registry.get(attempt_id, user_id)
    controller.select_answer(question_id, request.option)
    return controller.view()


@router.post("/{attempt_id}/next", response_model=SessionView)
async def next_question(
    attempt_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    controller = registry.get(attempt_id, user_id)
    controller.advance()
    return controller.view()


@router.post("/{attempt_id}/previous", response_model=SessionView)
async def previous_question(
    attempt_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    controller = registry.get(attempt_id, user_id)
    controller.retreat()
    return controller.view()


@router.post("/{attempt_id}/submit", response_model=SubmitResponse)
async def submit_session(
    attempt_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """Explicit submission from the last question"""
    controller = registry.get(attempt_id, user_id)

    try:
        score = await controller.finish()
    except Exception as e:
        # Refused before submitting: the session is unchanged
        if isinstance(e, SessionClosedError) or controller.state is not SessionState.TERMINATED:
            raise
        registry.discard(attempt_id)
        return _failure(controller, _status_for(e), "Failed to submit quiz")

    registry.discard(attempt_id)
    view = controller.view()
    return SubmitResponse(
        score=score,
        max_score=controller.snapshot.quiz.max_score,
        notification=view.notification,
        redirect=view.redirect
    )


@router.delete("/{attempt_id}")
async def leave_session(
    attempt_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry)
):
    """Student left the quiz page; progress is dropped"""
    registry.get(attempt_id, user_id)
    await registry.close(attempt_id)
    return {
        "status": "success",
        "attempt_id": attempt_id,
        "redirect": registry.quiz_list_route
    }
