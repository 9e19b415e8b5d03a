from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.auth.dependencies import get_current_user, require_learner, check_enrollment
from app.models.user import User
from app.services import course_store as store, grading
from app.services.grading import SubmittedAnswer, TestNotFoundError
from app.schemas.tests import (
    TestResponse,
    SubmissionCreate,
    SubmissionResponse,
    GradedSubmissionResponse,
    SubmissionDetailResponse,
    AnswerResponse,
)

router = APIRouter(prefix="/tests", tags=["tests"])


def _get_test_or_404(db: Session, test_id: int):
    test = store.get_test_with_questions(db, test_id)
    if not test:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test not found")
    return test


@router.get("/{test_id}", response_model=TestResponse)
def get_test(
    test_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Test with its ordered questions; correct answers are never included."""
    test = _get_test_or_404(db, test_id)
    check_enrollment(db, current_user, test.class_id)
    return test


@router.post("/{test_id}/submissions", response_model=GradedSubmissionResponse, status_code=status.HTTP_201_CREATED)
def submit_test(
    test_id: int,
    submission_data: SubmissionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_learner)
):
    """
    Grade an attempt at a test.
    Every call creates a new submission; earlier attempts are kept.
    """
    test = _get_test_or_404(db, test_id)
    check_enrollment(db, current_user, test.class_id)
    passing_score = float(test.passing_score)

    answers = [
        SubmittedAnswer(question_id=a.question_id, answer_text=a.answer_text)
        for a in submission_data.answers
    ]
    try:
        result = grading.grade_submission(db, current_user.id, test_id, answers)
    except TestNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test not found")

    return GradedSubmissionResponse(
        submission=SubmissionResponse.model_validate(result.submission),
        score=result.score,
        earned_points=result.earned_points,
        total_points=result.total_points,
        passing_score=passing_score,
        passed=grading.is_passing(result.score, passing_score),
    )


@router.get("/{test_id}/submissions", response_model=List[SubmissionResponse])
def list_my_submissions(
    test_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """The current user's attempts at a test, newest first"""
    test = _get_test_or_404(db, test_id)
    check_enrollment(db, current_user, test.class_id)
    return store.list_test_submissions(db, current_user.id, test_id)


@router.get("/{test_id}/submissions/latest", response_model=SubmissionDetailResponse)
def get_latest_submission(
    test_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """The current user's most recent attempt with its graded answers"""
    test = _get_test_or_404(db, test_id)
    check_enrollment(db, current_user, test.class_id)

    submission = store.get_latest_submission(db, current_user.id, test_id)
    if not submission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No submissions for this test")

    return SubmissionDetailResponse(
        id=submission.id,
        test_id=submission.test_id,
        user_id=submission.user_id,
        submitted_at=submission.submitted_at,
        score=submission.score,
        passed=grading.is_passing(submission.score, test.passing_score),
        answers=[AnswerResponse.model_validate(a) for a in submission.answers],
    )
