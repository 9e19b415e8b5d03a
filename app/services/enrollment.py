"""
Class enrollment.

Enrollment gates which classes a learner sees progress for and which tests
they may submit. One enrollment per (user, class).
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.course import Class, Enrollment

logger = logging.getLogger(__name__)


class AlreadyEnrolledError(Exception):
    """Learner is already enrolled in the class"""


def get_enrollment(db: Session, user_id: int, class_id: int) -> Optional[Enrollment]:
    return db.query(Enrollment).filter(
        Enrollment.class_id == class_id,
        Enrollment.user_id == user_id,
    ).first()


def is_enrolled(db: Session, user_id: int, class_id: int) -> bool:
    return get_enrollment(db, user_id, class_id) is not None


def enroll(db: Session, user_id: int, class_id: int) -> Enrollment:
    """
    Enroll a learner in a class.
    Raises AlreadyEnrolledError if an enrollment already exists.
    """
    existing = get_enrollment(db, user_id, class_id)
    if existing:
        raise AlreadyEnrolledError(f"User {user_id} already enrolled in class {class_id}")

    enrollment = Enrollment(user_id=user_id, class_id=class_id)
    db.add(enrollment)
    db.flush()
    logger.info("Enrolled user %s in class %s", user_id, class_id)
    return enrollment


def unenroll(db: Session, user_id: int, class_id: int) -> bool:
    """
    Remove an enrollment. Completion facts and submissions are kept.
    Returns True if unenrolled, False if there was no enrollment.
    """
    enrollment = get_enrollment(db, user_id, class_id)
    if not enrollment:
        logger.info("No enrollment found for user %s in class %s", user_id, class_id)
        return False

    db.delete(enrollment)
    db.flush()
    logger.info("Unenrolled user %s from class %s", user_id, class_id)
    return True


def list_enrolled_classes(db: Session, user_id: int) -> List[Class]:
    return db.query(Class).join(Enrollment).filter(
        Enrollment.user_id == user_id
    ).order_by(Enrollment.enrolled_at.desc(), Class.id).all()


def list_available_classes(db: Session, user_id: int) -> List[Class]:
    """Classes the learner is not enrolled in, newest first"""
    enrolled_ids = select(Enrollment.class_id).where(Enrollment.user_id == user_id)
    return db.query(Class).filter(
        Class.id.notin_(enrolled_ids)
    ).order_by(Class.created_at.desc(), Class.id.desc()).all()
