from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.models.assessment import QuestionType


class QuestionResponse(BaseModel):
    """Schema for a question as shown to learners (no correct answer)"""
    id: int
    question_type: QuestionType
    question_text: str
    options: Optional[List[str]] = None
    points: int
    order_index: int

    class Config:
        from_attributes = True


class TestResponse(BaseModel):
    """Schema for a test as shown to learners"""
    id: int
    class_id: int
    unit_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    passing_score: float
    questions: List[QuestionResponse]

    class Config:
        from_attributes = True


class AnswerSubmit(BaseModel):
    """Schema for one submitted answer"""
    question_id: int
    answer_text: str


class SubmissionCreate(BaseModel):
    """Schema for submitting a test attempt"""
    answers: List[AnswerSubmit] = Field(default_factory=list)


class SubmissionResponse(BaseModel):
    """Schema for a stored test attempt"""
    id: int
    test_id: int
    user_id: int
    submitted_at: datetime
    score: Optional[float] = None

    class Config:
        from_attributes = True


class GradedSubmissionResponse(BaseModel):
    """Schema for the result of grading an attempt"""
    submission: SubmissionResponse
    score: float
    earned_points: int
    total_points: int
    passing_score: float
    passed: bool


class AnswerResponse(BaseModel):
    """Schema for a recorded answer"""
    question_id: int
    answer_text: str
    is_correct: bool

    class Config:
        from_attributes = True


class SubmissionDetailResponse(SubmissionResponse):
    """Schema for a stored attempt with its answers"""
    passed: bool
    answers: List[AnswerResponse]
