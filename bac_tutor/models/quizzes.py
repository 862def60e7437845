# FILE: bac_tutor/models/quizzes.py
"""
Quiz, question and attempt models
"""
from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

OPTION_LETTERS: Tuple[str, ...] = ("A", "B", "C", "D")

DAILY_QUIZ_TYPE = "daily"
DAILY_POINTS_PER_QUESTION = 25
DEFAULT_POINTS_PER_QUESTION = 8
DEFAULT_MAX_SCORE = 100


class Question(BaseModel):
    """Multiple-choice question with four lettered options"""
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore", frozen=True)

    id: str
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_answer: str
    difficulty: Optional[str] = None

    @field_validator("correct_answer")
    @classmethod
    def validate_correct_answer(cls, v):
        v = v.strip().upper()
        if v not in OPTION_LETTERS:
            raise ValueError("correct_answer must be one of A, B, C, D")
        return v

    def options(self) -> List[Tuple[str, str]]:
        """Ordered (letter, text) pairs"""
        return list(zip(OPTION_LETTERS, (self.option_a, self.option_b, self.option_c, self.option_d)))


class Quiz(BaseModel):
    """Quiz with its ordered questions"""
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore", frozen=True)

    id: str
    subject: str
    chapter: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    max_score: int = DEFAULT_MAX_SCORE
    type: Optional[str] = None

    @field_validator("questions", mode="before")
    @classmethod
    def validate_questions(cls, v):
        # Rows written by older clients sometimes carry a non-list payload
        if not isinstance(v, list):
            return []
        return v

    @field_validator("max_score", mode="before")
    @classmethod
    def validate_max_score(cls, v):
        return v or DEFAULT_MAX_SCORE

    @property
    def points_per_question(self) -> int:
        if self.type == DAILY_QUIZ_TYPE:
            return DAILY_POINTS_PER_QUESTION
        return DEFAULT_POINTS_PER_QUESTION

    @property
    def label(self) -> str:
        return f"{self.subject} - {self.chapter or 'General'}"

    def question_ids(self) -> List[str]:
        return [q.id for q in self.questions]


class QuizAttempt(BaseModel):
    """One student's attempt at a quiz"""
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore", frozen=True)

    id: str
    quiz_id: str
    student_id: str
    score: int = 0
    answers: Any = Field(default_factory=dict)
    attempt_number: int = 1
    completed_at: Optional[datetime] = None


class AttemptResult(BaseModel):
    """Final values written to an attempt at submission"""
    score: int = Field(..., ge=0)
    answers: Dict[str, str] = Field(default_factory=dict)
    completed_at: datetime

    def to_record(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "answers": dict(self.answers),
            "completed_at": self.completed_at.isoformat()
        }


class QuestionOutcome(BaseModel):
    """Per-question outcome row for the activity log"""
    attempt_id: str
    question_id: str
    question_text: str
    student_answer: str = ""
    correct_answer: str
    is_correct: bool
