from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, Numeric, JSON, Index, CheckConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from app.config import settings
from .base import Base


class QuestionType(str, enum.Enum):
    """Question kinds, each graded by its own comparison rule"""
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"


class Test(Base):
    """Graded assessment attached to a class, optionally scoped to a unit"""
    __tablename__ = "tests"

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    passing_score = Column(
        Numeric(5, 2), nullable=False, default=lambda: settings.default_passing_score, server_default="70.00"
    )  # Percentage
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    class_ = relationship("Class", back_populates="tests")
    unit = relationship("Unit")
    questions = relationship("TestQuestion", back_populates="test", order_by="TestQuestion.order_index")
    submissions = relationship("TestSubmission", back_populates="test")


class TestQuestion(Base):
    """Question in a test's bank with exactly one correct answer"""
    __tablename__ = "test_questions"
    __table_args__ = (
        CheckConstraint("points > 0", name="ck_test_questions_points_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    question_type = Column(Enum(QuestionType), nullable=False)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=True)  # Only for multiple_choice
    correct_answer = Column(Text, nullable=False)
    points = Column(Integer, nullable=False, default=1)
    order_index = Column(Integer, nullable=False, default=0)

    # Relationships
    test = relationship("Test", back_populates="questions")


class TestSubmission(Base):
    """One graded attempt at a test by a learner"""
    __tablename__ = "test_submissions"
    __table_args__ = (
        Index('ix_test_submissions_user_test_submitted', 'user_id', 'test_id', 'submitted_at'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    test_id = Column(Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    score = Column(Numeric(5, 2), nullable=True)  # Set once, right after grading

    # Relationships
    user = relationship("User", back_populates="submissions")
    test = relationship("Test", back_populates="submissions")
    answers = relationship("TestAnswer", back_populates="submission", order_by="TestAnswer.id")


class TestAnswer(Base):
    """Learner's raw answer to one question within a submission"""
    __tablename__ = "test_answers"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("test_submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("test_questions.id", ondelete="CASCADE"), nullable=False, index=True)
    answer_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    # Relationships
    submission = relationship("TestSubmission", back_populates="answers")
    question = relationship("TestQuestion")
