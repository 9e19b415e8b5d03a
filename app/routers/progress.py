from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.auth.dependencies import get_current_user, require_learner, check_enrollment
from app.models.user import User
from app.services import completion, course_store as store
from app.schemas.progress import UnitProgressResponse, CompletionMarkedResponse

router = APIRouter(tags=["progress"])


def _get_unit_or_404(db: Session, unit_id: int):
    unit = store.get_unit(db, unit_id)
    if not unit:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unit not found")
    return unit


@router.get("/units/{unit_id}/progress", response_model=UnitProgressResponse)
def get_unit_progress(
    unit_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Percentage of the unit's lessons completed by the current user"""
    unit = _get_unit_or_404(db, unit_id)
    check_enrollment(db, current_user, unit.class_id)

    return UnitProgressResponse(
        unit_id=unit.id,
        title=unit.title,
        order_index=unit.order_index,
        percentage=completion.compute_unit_completion(db, current_user.id, unit.id),
        completed=store.is_unit_completed(db, current_user.id, unit.id),
    )


@router.post("/units/{unit_id}/complete", response_model=CompletionMarkedResponse)
def complete_unit(
    unit_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_learner)
):
    """Mark a unit complete. Repeating the call changes nothing."""
    unit = _get_unit_or_404(db, unit_id)
    check_enrollment(db, current_user, unit.class_id)

    created = completion.mark_unit_complete(db, current_user.id, unit.id)
    db.commit()

    return CompletionMarkedResponse(
        created=created,
        unit_id=unit.id,
        unit_percentage=completion.compute_unit_completion(db, current_user.id, unit.id),
        unit_completed=True,
    )


@router.post("/lessons/{lesson_id}/complete", response_model=CompletionMarkedResponse)
def complete_lesson(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_learner)
):
    """Mark a lesson complete; the unit completes with its last lesson."""
    lesson = store.get_lesson(db, lesson_id)
    if not lesson:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found")
    unit = _get_unit_or_404(db, lesson.unit_id)
    check_enrollment(db, current_user, unit.class_id)

    try:
        created = completion.mark_lesson_complete(db, current_user.id, lesson.id)
    except completion.LessonNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found")
    db.commit()

    return CompletionMarkedResponse(
        created=created,
        lesson_id=lesson.id,
        unit_id=unit.id,
        unit_percentage=completion.compute_unit_completion(db, current_user.id, unit.id),
        unit_completed=store.is_unit_completed(db, current_user.id, unit.id),
    )
