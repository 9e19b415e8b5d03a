from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class Class(Base):
    """Top-level course made of ordered units and tests"""
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    units = relationship("Unit", back_populates="class_", order_by="Unit.order_index")
    tests = relationship("Test", back_populates="class_")
    enrollments = relationship("Enrollment", back_populates="class_")


class Unit(Base):
    """Ordered content grouping within a class"""
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")  # Markdown
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    class_ = relationship("Class", back_populates="units")
    lessons = relationship("Lesson", back_populates="unit", order_by="Lesson.order_index")


class Lesson(Base):
    """Smallest completable content item"""
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")  # Markdown
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    unit = relationship("Unit", back_populates="lessons")


class Enrollment(Base):
    """Enrollment relationship between learners and classes"""
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint('user_id', 'class_id', name='uq_enrollment_user_class'),
        Index('ix_enrollments_user_class', 'user_id', 'class_id'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    enrolled_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="enrollments")
    class_ = relationship("Class", back_populates="enrollments")
