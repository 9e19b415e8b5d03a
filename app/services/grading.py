"""
Test grading engine.

Scores a learner's answers against a test's question bank. Each question type
has one comparison rule; there is no partial credit and no fuzzy matching.
Grading runs in a single transaction: the submission row, its score and its
answer rows are committed together or not at all.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.assessment import QuestionType, TestAnswer, TestQuestion, TestSubmission
from app.services import course_store as store

logger = logging.getLogger(__name__)


class TestNotFoundError(LookupError):
    """Referenced test does not exist"""

    def __init__(self, test_id: int):
        super().__init__(f"Test not found: {test_id}")
        self.test_id = test_id


def _match_multiple_choice(submitted: str, correct: str) -> bool:
    # Case-sensitive
    return submitted.strip() == correct.strip()


def _match_true_false(submitted: str, correct: str) -> bool:
    return submitted.lower() == correct.lower()


def _match_short_answer(submitted: str, correct: str) -> bool:
    return submitted.strip().lower() == correct.strip().lower()


ANSWER_RULES: Dict[QuestionType, Callable[[str, str], bool]] = {
    QuestionType.MULTIPLE_CHOICE: _match_multiple_choice,
    QuestionType.TRUE_FALSE: _match_true_false,
    QuestionType.SHORT_ANSWER: _match_short_answer,
}


@dataclass
class SubmittedAnswer:
    question_id: int
    answer_text: str


@dataclass
class AnswerResult:
    question_id: int
    answer_text: str
    is_correct: bool
    points: int


@dataclass
class ScoreSheet:
    earned_points: int = 0
    total_points: int = 0
    answers: List[AnswerResult] = field(default_factory=list)
    skipped_question_ids: List[int] = field(default_factory=list)

    @property
    def score(self) -> float:
        return calculate_score(self.earned_points, self.total_points)


@dataclass
class GradedSubmission:
    submission: TestSubmission
    score: float
    earned_points: int
    total_points: int


def is_answer_correct(question_type: QuestionType, correct_answer: str, answer_text: str) -> bool:
    """Apply the comparison rule for the question's type"""
    rule = ANSWER_RULES[QuestionType(question_type)]
    return rule(answer_text, correct_answer)


def calculate_score(earned_points: int, total_points: int) -> float:
    """Percentage of points earned; 0 when no points were at stake."""
    if total_points <= 0:
        return 0.0
    return (earned_points / total_points) * 100.0


def is_passing(score: Optional[float], passing_score: float) -> bool:
    if score is None:
        return False
    return float(score) >= float(passing_score)


def score_answers(questions: Iterable[TestQuestion], answers: Iterable[SubmittedAnswer]) -> ScoreSheet:
    """
    Grade answers against a question bank without touching the store.

    Answers citing a question outside the bank are skipped: they are neither
    scored nor recorded.
    """
    bank = {q.id: q for q in questions}
    sheet = ScoreSheet()

    for answer in answers:
        question = bank.get(answer.question_id)
        if question is None:
            sheet.skipped_question_ids.append(answer.question_id)
            continue

        correct = is_answer_correct(question.question_type, question.correct_answer, answer.answer_text)
        sheet.total_points += question.points
        if correct:
            sheet.earned_points += question.points
        sheet.answers.append(
            AnswerResult(
                question_id=question.id,
                answer_text=answer.answer_text,
                is_correct=correct,
                points=question.points,
            )
        )

    return sheet


def grade_submission(
    db: Session,
    user_id: int,
    test_id: int,
    answers: List[SubmittedAnswer],
) -> GradedSubmission:
    """
    Grade one attempt at a test and persist it.

    Raises TestNotFoundError (before any write) if the test does not exist.
    Store failures roll back the whole attempt and propagate.
    """
    test = store.get_test_with_questions(db, test_id)
    if test is None:
        raise TestNotFoundError(test_id)

    try:
        submission = store.create_test_submission(db, user_id, test_id)

        sheet = score_answers(test.questions, answers)
        if sheet.skipped_question_ids:
            logger.warning(
                "Submission %s: ignored answers for questions not in test %s: %s",
                submission.id, test_id, sheet.skipped_question_ids,
            )

        score = sheet.score
        store.update_submission_score(db, submission.id, score)
        store.insert_test_answers(db, [
            TestAnswer(
                submission_id=submission.id,
                question_id=result.question_id,
                answer_text=result.answer_text,
                is_correct=result.is_correct,
            )
            for result in sheet.answers
        ])
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Grading failed for user %s on test %s, rolled back", user_id, test_id)
        raise

    logger.info(
        "Graded submission %s for user %s on test %s: %d/%d points (%.2f%%)",
        submission.id, user_id, test_id, sheet.earned_points, sheet.total_points, score,
    )
    return GradedSubmission(
        submission=submission,
        score=score,
        earned_points=sheet.earned_points,
        total_points=sheet.total_points,
    )
