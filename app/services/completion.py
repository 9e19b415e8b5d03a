"""
Completion calculator.

Class progress counts completable items: every unit (complete once a
UnitCompletion exists) and every test (complete once the learner has at least
one submission, passing or not). Unit progress counts completed lessons.
Both are integer percentages in [0, 100]; an empty class or unit is 0.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from app.services import course_store as store

logger = logging.getLogger(__name__)


class ClassNotFoundError(LookupError):
    """Referenced class does not exist"""


class LessonNotFoundError(LookupError):
    """Referenced lesson does not exist"""


@dataclass
class UnitProgress:
    unit_id: int
    title: str
    order_index: int
    percentage: int
    completed: bool


@dataclass
class TestProgress:
    test_id: int
    title: str
    completed: bool
    latest_score: Optional[float] = None


@dataclass
class ClassProgress:
    class_id: int
    percentage: int
    units: List[UnitProgress] = field(default_factory=list)
    tests: List[TestProgress] = field(default_factory=list)


def completion_percentage(completed: int, total: int) -> int:
    """round(100 * completed / total), half-up; 0 when there is nothing to complete."""
    if total <= 0:
        return 0
    return int(math.floor(100 * completed / total + 0.5))


def compute_unit_completion(db: Session, user_id: int, unit_id: int) -> int:
    """Percentage of the unit's lessons the learner has completed"""
    lessons = store.list_lessons_of_unit(db, unit_id)
    if not lessons:
        return 0

    completed = store.list_completed_lesson_ids(db, user_id, [lesson.id for lesson in lessons])
    return completion_percentage(len(completed), len(lessons))


def compute_class_completion(db: Session, user_id: int, class_id: int) -> int:
    """Percentage of the class's units and tests the learner has completed"""
    units = store.list_units_of_class(db, class_id)
    tests = store.list_tests_of_class(db, class_id)

    total_items = len(units) + len(tests)
    if total_items == 0:
        return 0

    completed_units = store.list_completed_unit_ids(db, user_id, [u.id for u in units])
    completed_tests = store.list_submitted_test_ids(db, user_id, [t.id for t in tests])

    return completion_percentage(len(completed_units) + len(completed_tests), total_items)


def get_class_progress(db: Session, user_id: int, class_id: int) -> ClassProgress:
    """
    Class completion plus the per-unit and per-test breakdown behind it.

    Raises ClassNotFoundError if the class does not exist.
    """
    if store.get_class(db, class_id) is None:
        raise ClassNotFoundError(class_id)

    units = store.list_units_of_class(db, class_id)
    tests = store.list_tests_of_class(db, class_id)
    completed_units = store.list_completed_unit_ids(db, user_id, [u.id for u in units])
    submitted_tests = store.list_submitted_test_ids(db, user_id, [t.id for t in tests])

    unit_rows = [
        UnitProgress(
            unit_id=unit.id,
            title=unit.title,
            order_index=unit.order_index,
            percentage=compute_unit_completion(db, user_id, unit.id),
            completed=unit.id in completed_units,
        )
        for unit in units
    ]

    test_rows = []
    for test in tests:
        latest_score = None
        if test.id in submitted_tests:
            latest = store.get_latest_submission(db, user_id, test.id)
            if latest is not None and latest.score is not None:
                latest_score = float(latest.score)
        test_rows.append(
            TestProgress(
                test_id=test.id,
                title=test.title,
                completed=test.id in submitted_tests,
                latest_score=latest_score,
            )
        )

    return ClassProgress(
        class_id=class_id,
        percentage=completion_percentage(
            len(completed_units) + len(submitted_tests), len(units) + len(tests)
        ),
        units=unit_rows,
        tests=test_rows,
    )


def mark_unit_complete(db: Session, user_id: int, unit_id: int) -> bool:
    """Explicit learner action; idempotent. Returns True if a new completion was recorded."""
    return store.mark_unit_complete(db, user_id, unit_id)


def mark_lesson_complete(db: Session, user_id: int, lesson_id: int) -> bool:
    """
    Record a lesson completion and complete its unit once every lesson is done.

    Idempotent. Returns True if a new lesson completion was recorded.
    Raises LessonNotFoundError if the lesson does not exist.
    """
    lesson = store.get_lesson(db, lesson_id)
    if lesson is None:
        raise LessonNotFoundError(lesson_id)

    created = store.mark_lesson_complete(db, user_id, lesson_id)
    if not created:
        return False

    unit_lessons = store.list_lessons_of_unit(db, lesson.unit_id)
    completed = store.list_completed_lesson_ids(db, user_id, [l.id for l in unit_lessons])
    if unit_lessons and len(completed) == len(unit_lessons):
        logger.info(
            "All %d lessons of unit %s done by user %s, completing unit",
            len(unit_lessons), lesson.unit_id, user_id,
        )
        store.mark_unit_complete(db, user_id, lesson.unit_id)

    return True
