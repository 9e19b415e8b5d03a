# Database models
from .base import Base
from .user import User, UserRole
from .course import Class, Unit, Lesson, Enrollment
from .assessment import (
    Test,
    TestQuestion,
    TestSubmission,
    TestAnswer,
    QuestionType,
)
from .progress import LessonCompletion, UnitCompletion

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Class",
    "Unit",
    "Lesson",
    "Enrollment",
    "Test",
    "TestQuestion",
    "TestSubmission",
    "TestAnswer",
    "QuestionType",
    "LessonCompletion",
    "UnitCompletion",
]
