# FILE: bac_tutor/models/chat.py
"""
Tutoring chat models
"""
from typing import Optional
from pydantic import BaseModel


class ChatRequest(BaseModel):
    """Student question forwarded to the completion service"""
    question: Optional[str] = None
    subject: Optional[str] = None
    chapter: Optional[str] = None


class ChatResponse(BaseModel):
    """Answer text returned to the student"""
    answer: str


class Conversation(BaseModel):
    """Stored question/answer exchange"""
    user_id: str
    question_text: str
    answer_text: str
    subject: Optional[str] = None
    chapter: Optional[str] = None
