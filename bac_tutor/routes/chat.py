# FILE: bac_tutor/routes/chat.py
"""
AI tutoring proxy endpoint
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header

from bac_tutor.models.chat import ChatRequest, ChatResponse
from bac_tutor.routes.deps import get_chat_service
from bac_tutor.services.tutor_chat import TutorChatService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=ChatResponse)
async def gemini_chat(
    request: ChatRequest,
    authorization: Optional[str] = Header(None),
    service: TutorChatService = Depends(get_chat_service)
):
    """
    Answer a student question with the tutoring model

    400 when the question is missing, 502 when the completion service fails.
    """
    answer = await service.ask(request, authorization=authorization)
    return ChatResponse(answer=answer)
