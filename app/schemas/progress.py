from pydantic import BaseModel, Field
from typing import Optional


class UnitProgressResponse(BaseModel):
    """Schema for a unit's completion by the current learner"""
    unit_id: int
    title: Optional[str] = None
    order_index: Optional[int] = None
    percentage: int = Field(..., ge=0, le=100)
    completed: bool

    class Config:
        from_attributes = True


class TestProgressResponse(BaseModel):
    """Schema for a test's completion by the current learner"""
    test_id: int
    title: str
    completed: bool
    latest_score: Optional[float] = None

    class Config:
        from_attributes = True


class ClassProgressResponse(BaseModel):
    """Schema for class completion with per-item breakdown"""
    class_id: int
    percentage: int = Field(..., ge=0, le=100)
    units: list[UnitProgressResponse]
    tests: list[TestProgressResponse]

    class Config:
        from_attributes = True


class CompletionMarkedResponse(BaseModel):
    """Schema for a mark-complete action; created is False when already complete"""
    created: bool
    unit_id: int
    unit_percentage: int = Field(..., ge=0, le=100)
    unit_completed: bool
    lesson_id: Optional[int] = None
