from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.auth.dependencies import get_current_user, require_learner, check_enrollment
from app.models.user import User
from app.services import completion, course_store as store, enrollment as enrollment_service
from app.services.enrollment import AlreadyEnrolledError
from app.schemas.classes import ClassResponse, EnrolledClassResponse, EnrollResponse
from app.schemas.progress import ClassProgressResponse

router = APIRouter(prefix="/classes", tags=["classes"])


@router.get("", response_model=List[EnrolledClassResponse])
def list_my_classes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List the current user's enrolled classes with their completion percentage"""
    classes = enrollment_service.list_enrolled_classes(db, current_user.id)
    return [
        EnrolledClassResponse(
            id=class_.id,
            title=class_.title,
            description=class_.description,
            thumbnail_url=class_.thumbnail_url,
            created_at=class_.created_at,
            completion=completion.compute_class_completion(db, current_user.id, class_.id),
        )
        for class_ in classes
    ]


@router.get("/available", response_model=List[ClassResponse])
def list_available_classes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List classes the current user can still enroll in"""
    return enrollment_service.list_available_classes(db, current_user.id)


@router.post("/{class_id}/enroll", response_model=EnrollResponse)
def enroll_in_class(
    class_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_learner)
):
    """Enroll the current user in a class"""
    if store.get_class(db, class_id) is None:
        raise HTTPException(status_code=404, detail="Class not found")

    try:
        enrollment_service.enroll(db, current_user.id, class_id)
    except AlreadyEnrolledError:
        raise HTTPException(status_code=400, detail="Already enrolled in this class")
    db.commit()

    return EnrollResponse(message="Successfully enrolled in class", class_id=class_id)


@router.delete("/{class_id}/enroll", response_model=EnrollResponse)
def unenroll_from_class(
    class_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Leave a class. Progress already recorded is kept."""
    if not enrollment_service.unenroll(db, current_user.id, class_id):
        raise HTTPException(status_code=404, detail="Not enrolled in this class")
    db.commit()

    return EnrollResponse(message="Successfully unenrolled from class", class_id=class_id)


@router.get("/{class_id}/progress", response_model=ClassProgressResponse)
def get_class_progress(
    class_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Completion percentage of a class with per-unit and per-test breakdown"""
    if store.get_class(db, class_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    check_enrollment(db, current_user, class_id)

    try:
        return completion.get_class_progress(db, current_user.id, class_id)
    except completion.ClassNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
