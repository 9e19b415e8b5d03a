from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ClassResponse(BaseModel):
    """Schema for class response"""
    id: int
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class EnrolledClassResponse(ClassResponse):
    """Schema for an enrolled class on the learner dashboard"""
    completion: int


class EnrollResponse(BaseModel):
    message: str
    class_id: int
