# FILE: bac_tutor/models/sessions.py
"""
Quiz session view models
"""
from typing import Optional, List, Dict
from pydantic import BaseModel, Field


class Notification(BaseModel):
    """User-visible toast"""
    title: str
    description: str
    variant: str = Field(default="default", description="default or destructive")


class OptionView(BaseModel):
    letter: str
    text: str


class QuestionView(BaseModel):
    """Question as shown to the student (no correct answer)"""
    id: str
    question_text: str
    options: List[OptionView]
    difficulty: Optional[str] = None


class SessionView(BaseModel):
    """Render-ready snapshot of a quiz session"""
    attempt_id: str
    state: str
    label: Optional[str] = None
    current_index: int = 0
    question_count: int = 0
    is_last_question: bool = False
    question: Optional[QuestionView] = None
    selected_option: Optional[str] = None
    selections: Dict[str, str] = Field(default_factory=dict)
    time_left: int = 0
    clock: str = "0:00"
    progress: int = 0
    notification: Optional[Notification] = None
    redirect: Optional[str] = None


class AnswerRequest(BaseModel):
    """Answer selection for one question"""
    option: str


class SubmitResponse(BaseModel):
    """Result of a completed submission"""
    score: int
    max_score: int
    notification: Notification
    redirect: str
