# FILE: bac_tutor/models/__init__.py
"""
Pydantic models for records and request/response validation
"""
from bac_tutor.models.quizzes import *
from bac_tutor.models.chat import *
from bac_tutor.models.sessions import *
