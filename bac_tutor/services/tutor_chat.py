# FILE: bac_tutor/services/tutor_chat.py
"""
AI tutoring proxy: prompt template, one completion call, best-effort logging
"""
import logging
from typing import Any, Callable, Optional

from bac_tutor.errors import ValidationError
from bac_tutor.models.chat import ChatRequest, Conversation
from bac_tutor.services.record_store import CONVERSATIONS_TABLE, RecordStore

logger = logging.getLogger(__name__)

SYSTEM_CONTEXT = """You are an AI tutor specialized in the Algerian BAC (Baccalauréat) curriculum.
IMPORTANT RESPONSE RULES:
- ALWAYS answer in Arabic with clear structured explanations
- Keep responses SHORT and DIRECT (maximum 150 words)
- Use BULLET POINTS instead of long paragraphs
- When writing mathematical functions, expressions, or equations, format them using LaTeX
- Wrap inline math with \\( ... \\) and block math with \\[ ... \\]
- Write all physics/math units in FRENCH (e.g., m/s², kg, N, etc.)
- Be concise and go straight to the point
- Provide step-by-step solutions in bullet format
- Use examples but keep them brief
- Present content like a teacher explaining in Arabic while showing math symbols and equations neatly

Current context: Subject: {subject}, Chapter: {chapter}"""


def build_prompt(question: str, subject: Optional[str] = None, chapter: Optional[str] = None) -> str:
    context = SYSTEM_CONTEXT.format(subject=subject or "General", chapter=chapter or "General")
    return f"{context}\n\nStudent Question: {question}\n\nPlease provide a comprehensive answer:"


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an Authorization header"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class TutorChatService:
    """
    Forwards one student question to the completion provider.

    The provider is resolved per request, after input validation.
    """

    def __init__(self, provider_factory: Callable[[], Any], store: Optional[RecordStore] = None):
        self.provider_factory = provider_factory
        self.store = store

    async def ask(self, request: ChatRequest, authorization: Optional[str] = None) -> str:
        question = (request.question or "").strip()
        if not question:
            raise ValidationError("Question is required")

        logger.info(f"Processing question: subject={request.subject} chapter={request.chapter}")
        logger.debug(f"Question preview: {question[:80]}")

        provider = self.provider_factory()
        answer = await provider.generate(build_prompt(question, request.subject, request.chapter))
        logger.info("Gemini response received")

        await self._store_conversation(request, question, answer, authorization)
        return answer

    async def _store_conversation(
        self,
        request: ChatRequest,
        question: str,
        answer: str,
        authorization: Optional[str]
    ):
        """Persist the exchange when the caller is signed in; never fails the request"""
        token = bearer_token(authorization)
        if token is None or self.store is None:
            return

        try:
            user_id = await self.store.resolve_user_id(token)
            if not user_id:
                return

            conversation = Conversation(
                user_id=user_id,
                question_text=question,
                answer_text=answer,
                subject=request.subject or None,
                chapter=request.chapter or None
            )
            await self.store.insert(CONVERSATIONS_TABLE, conversation.model_dump())
            logger.info("Conversation stored successfully")
        except Exception as e:
            logger.error(f"Error storing conversation: {e}")
