from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from .base import Base


class LessonCompletion(Base):
    """Fact: a learner finished a lesson"""
    __tablename__ = "lesson_completions"
    __table_args__ = (
        UniqueConstraint('user_id', 'lesson_id', name='uq_lesson_completion_user_lesson'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class UnitCompletion(Base):
    """Fact: a learner finished a unit"""
    __tablename__ = "unit_completions"
    __table_args__ = (
        UniqueConstraint('user_id', 'unit_id', name='uq_unit_completion_user_unit'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
