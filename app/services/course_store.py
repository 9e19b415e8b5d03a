"""
Data-access layer for progress tracking and assessment.

Every function takes an explicit Session and never commits: the caller owns
the transaction. Store errors (SQLAlchemyError) propagate unmodified.
"""
import logging
from typing import Iterable, List, Optional, Set

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, selectinload

from app.models.assessment import Test, TestAnswer, TestSubmission
from app.models.course import Class, Lesson, Unit
from app.models.progress import LessonCompletion, UnitCompletion

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO NOTHING support
_CONFLICT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _insert_ignoring_conflict(db: Session, model, index_elements: List[str], **values) -> bool:
    """
    Insert a row unless it collides with the unique constraint on index_elements.
    Returns True if a row was inserted.
    """
    insert = _CONFLICT_INSERTS.get(db.get_bind().dialect.name)
    if insert is None:
        # No upsert support: check, then insert
        existing = db.query(model).filter_by(**values).first()
        if existing:
            return False
        db.add(model(**values))
        db.flush()
        return True

    stmt = insert(model).values(**values).on_conflict_do_nothing(index_elements=index_elements)
    result = db.execute(stmt)
    return result.rowcount > 0


# Content lookups

def get_class(db: Session, class_id: int) -> Optional[Class]:
    return db.query(Class).filter(Class.id == class_id).first()


def get_unit(db: Session, unit_id: int) -> Optional[Unit]:
    return db.query(Unit).filter(Unit.id == unit_id).first()


def get_lesson(db: Session, lesson_id: int) -> Optional[Lesson]:
    return db.query(Lesson).filter(Lesson.id == lesson_id).first()


def list_units_of_class(db: Session, class_id: int) -> List[Unit]:
    """Units of a class in display order"""
    return db.query(Unit).filter(
        Unit.class_id == class_id
    ).order_by(Unit.order_index, Unit.id).all()


def list_tests_of_class(db: Session, class_id: int) -> List[Test]:
    return db.query(Test).filter(
        Test.class_id == class_id
    ).order_by(Test.created_at, Test.id).all()


def list_lessons_of_unit(db: Session, unit_id: int) -> List[Lesson]:
    """Lessons of a unit in display order"""
    return db.query(Lesson).filter(
        Lesson.unit_id == unit_id
    ).order_by(Lesson.order_index, Lesson.id).all()


def get_test_with_questions(db: Session, test_id: int) -> Optional[Test]:
    """Load a test with its ordered question bank, or None if it does not exist"""
    return db.query(Test).options(
        selectinload(Test.questions)
    ).filter(Test.id == test_id).first()


# Completion facts

def is_unit_completed(db: Session, user_id: int, unit_id: int) -> bool:
    return db.query(UnitCompletion).filter(
        UnitCompletion.user_id == user_id,
        UnitCompletion.unit_id == unit_id,
    ).first() is not None


def mark_unit_complete(db: Session, user_id: int, unit_id: int) -> bool:
    """Record a unit completion. No-op if already recorded; returns True if new."""
    created = _insert_ignoring_conflict(
        db, UnitCompletion, ["user_id", "unit_id"], user_id=user_id, unit_id=unit_id,
    )
    if created:
        logger.info("User %s completed unit %s", user_id, unit_id)
    return created


def list_completed_unit_ids(db: Session, user_id: int, unit_ids: Iterable[int]) -> Set[int]:
    """Batched lookup of which of unit_ids the user has completed"""
    unit_ids = list(unit_ids)
    if not unit_ids:
        return set()
    rows = db.query(UnitCompletion.unit_id).filter(
        UnitCompletion.user_id == user_id,
        UnitCompletion.unit_id.in_(unit_ids),
    ).all()
    return {row[0] for row in rows}


def is_lesson_completed(db: Session, user_id: int, lesson_id: int) -> bool:
    return db.query(LessonCompletion).filter(
        LessonCompletion.user_id == user_id,
        LessonCompletion.lesson_id == lesson_id,
    ).first() is not None


def mark_lesson_complete(db: Session, user_id: int, lesson_id: int) -> bool:
    """Record a lesson completion. No-op if already recorded; returns True if new."""
    return _insert_ignoring_conflict(
        db, LessonCompletion, ["user_id", "lesson_id"], user_id=user_id, lesson_id=lesson_id,
    )


def list_completed_lesson_ids(db: Session, user_id: int, lesson_ids: Iterable[int]) -> Set[int]:
    """Batched lookup of which of lesson_ids the user has completed"""
    lesson_ids = list(lesson_ids)
    if not lesson_ids:
        return set()
    rows = db.query(LessonCompletion.lesson_id).filter(
        LessonCompletion.user_id == user_id,
        LessonCompletion.lesson_id.in_(lesson_ids),
    ).all()
    return {row[0] for row in rows}


# Submissions

def list_test_submissions(db: Session, user_id: int, test_id: int) -> List[TestSubmission]:
    """All attempts of a user at a test, newest first"""
    return db.query(TestSubmission).filter(
        TestSubmission.user_id == user_id,
        TestSubmission.test_id == test_id,
    ).order_by(TestSubmission.submitted_at.desc(), TestSubmission.id.desc()).all()


def get_latest_submission(db: Session, user_id: int, test_id: int) -> Optional[TestSubmission]:
    return db.query(TestSubmission).options(
        selectinload(TestSubmission.answers)
    ).filter(
        TestSubmission.user_id == user_id,
        TestSubmission.test_id == test_id,
    ).order_by(TestSubmission.submitted_at.desc(), TestSubmission.id.desc()).first()


def list_submitted_test_ids(db: Session, user_id: int, test_ids: Iterable[int]) -> Set[int]:
    """Batched lookup of which of test_ids have at least one submission by the user"""
    test_ids = list(test_ids)
    if not test_ids:
        return set()
    rows = db.query(TestSubmission.test_id).filter(
        TestSubmission.user_id == user_id,
        TestSubmission.test_id.in_(test_ids),
    ).distinct().all()
    return {row[0] for row in rows}


def create_test_submission(db: Session, user_id: int, test_id: int) -> TestSubmission:
    """Insert an ungraded submission and flush so its id can be referenced"""
    submission = TestSubmission(user_id=user_id, test_id=test_id, score=None)
    db.add(submission)
    db.flush()
    return submission


def update_submission_score(db: Session, submission_id: int, score: float) -> None:
    db.query(TestSubmission).filter(
        TestSubmission.id == submission_id
    ).update({TestSubmission.score: score})


def insert_test_answers(db: Session, rows: List[TestAnswer]) -> None:
    if not rows:
        return
    db.add_all(rows)
    db.flush()
