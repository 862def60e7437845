# FILE: tests/conftest.py

import os
import sys
import tempfile
from collections import defaultdict
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

os.environ.setdefault("RECORD_STORE", "local")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="bac_tutor_tests_"))

import pytest

from bac_tutor.config import get_settings
from bac_tutor.errors import PersistenceError
from bac_tutor.services.activity_tracker import ActivityTracker
from bac_tutor.services.quiz_repository import QuizRepository
from bac_tutor.services.quiz_session import QuizSessionController
from bac_tutor.services.record_store import RecordStore

STUDENT = "student-1"
OTHER_STUDENT = "student-2"
DAILY_ANSWERS = ["A", "B", "C", "D"]


class FakeStore(RecordStore):
    """In-memory record store with failure switches"""

    def __init__(self):
        self.tables = defaultdict(list)
        self.updates = []
        self.inserts = []
        self.tokens = {}
        self.fail_update = False
        self.fail_insert_question_ids = set()
        self.fail_inserts = False

    async def select_one(self, table, filters):
        for row in self.tables[table]:
            if all(str(row.get(k)) == str(v) for k, v in filters.items()):
                return row
        return None

    async def update(self, table, filters, values):
        self.updates.append((table, filters, values))
        if self.fail_update:
            raise PersistenceError("connection lost")

    async def insert(self, table, row):
        if self.fail_inserts or row.get("question_id") in self.fail_insert_question_ids:
            raise PersistenceError("insert failed")
        self.inserts.append((table, row))

    async def resolve_user_id(self, access_token):
        return self.tokens.get(access_token)

    def outcomes(self):
        return [row for table, row in self.inserts if table == "quiz_question_results"]


def question_row(number, correct):
    return {
        "id": f"q{number}",
        "question_text": f"Question {number}?",
        "option_a": "first",
        "option_b": "second",
        "option_c": "third",
        "option_d": "fourth",
        "correct_answer": correct,
        "difficulty": "medium"
    }


def quiz_row(quiz_id, correct_answers, quiz_type="daily", max_score=100):
    return {
        "id": quiz_id,
        "subject": "Mathematics",
        "chapter": "Limits",
        "questions": [question_row(i + 1, c) for i, c in enumerate(correct_answers)],
        "max_score": max_score,
        "type": quiz_type
    }


@pytest.fixture(scope="session")
def settings():
    """Provide settings for tests"""
    return get_settings()


@pytest.fixture
def store():
    """Store seeded with a daily quiz, a practice quiz and an empty quiz"""
    fake = FakeStore()
    fake.tables["quizzes"] += [
        quiz_row("quiz-daily", DAILY_ANSWERS),
        quiz_row("quiz-practice", ["B"] * 10, quiz_type="practice", max_score=80),
        quiz_row("quiz-empty", [])
    ]
    fake.tables["quiz_attempts"] += [
        {"id": "attempt-daily", "quiz_id": "quiz-daily", "student_id": STUDENT, "score": 0,
         "answers": [], "attempt_number": 1},
        {"id": "attempt-practice", "quiz_id": "quiz-practice", "student_id": STUDENT, "score": 0,
         "answers": [], "attempt_number": 2},
        {"id": "attempt-empty", "quiz_id": "quiz-empty", "student_id": STUDENT, "score": 0,
         "answers": [], "attempt_number": 1},
        {"id": "attempt-other", "quiz_id": "quiz-daily", "student_id": OTHER_STUDENT, "score": 0,
         "answers": [], "attempt_number": 1},
        {"id": "attempt-orphan", "quiz_id": "quiz-missing", "student_id": STUDENT, "score": 0,
         "answers": [], "attempt_number": 1}
    ]
    fake.tokens = {"token-1": STUDENT, "token-2": OTHER_STUDENT}
    return fake


@pytest.fixture
def controller(store):
    """Controller with a fast countdown"""
    return QuizSessionController(
        repository=QuizRepository(store),
        tracker=ActivityTracker(store),
        tick_interval=0.001
    )
