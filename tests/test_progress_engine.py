"""End-to-end progress and grading behavior on a real (SQLite) session"""
import pytest

from app.models import Class, Enrollment, TestAnswer, TestSubmission
from app.services import course_store as store
from app.services.completion import (
    compute_class_completion,
    compute_unit_completion,
    get_class_progress,
    mark_lesson_complete,
    mark_unit_complete,
)
from app.services.grading import grade_submission, SubmittedAnswer, TestNotFoundError


class TestClassCompletionEndToEnd:
    def test_empty_class_is_zero_enrolled_or_not(self, db_session, learner):
        empty = Class(title="Coming soon")
        db_session.add(empty)
        db_session.commit()

        assert compute_class_completion(db_session, learner.id, empty.id) == 0

        db_session.add(Enrollment(user_id=learner.id, class_id=empty.id))
        db_session.commit()
        assert compute_class_completion(db_session, learner.id, empty.id) == 0

    def test_nothing_done(self, db_session, course, learner):
        assert compute_class_completion(db_session, learner.id, course["class"].id) == 0

    def test_failed_attempt_still_counts_as_completed(self, db_session, course, learner):
        grade_submission(db_session, learner.id, course["test"].id, [
            SubmittedAnswer(question_id=course["questions"][0].id, answer_text="Lyon"),
        ])

        # 1 of 3 items (2 units + 1 test)
        assert compute_class_completion(db_session, learner.id, course["class"].id) == 33

    def test_everything_done_is_100(self, db_session, course, learner):
        for unit in course["units"]:
            mark_unit_complete(db_session, learner.id, unit.id)
        db_session.commit()
        grade_submission(db_session, learner.id, course["test"].id, [])

        assert compute_class_completion(db_session, learner.id, course["class"].id) == 100

    def test_lesson_progress_feeds_unit_then_class(self, db_session, course, learner):
        france, spain, _ = course["lessons"]
        europe = course["units"][0]

        mark_lesson_complete(db_session, learner.id, france.id)
        db_session.commit()
        assert compute_unit_completion(db_session, learner.id, europe.id) == 50
        assert store.is_unit_completed(db_session, learner.id, europe.id) is False

        mark_lesson_complete(db_session, learner.id, spain.id)
        db_session.commit()
        assert compute_unit_completion(db_session, learner.id, europe.id) == 100
        assert store.is_unit_completed(db_session, learner.id, europe.id) is True
        assert compute_class_completion(db_session, learner.id, course["class"].id) == 33

    def test_unknown_unit_is_zero(self, db_session, learner):
        assert compute_unit_completion(db_session, learner.id, 12345) == 0

    def test_progress_breakdown(self, db_session, course, learner):
        france = course["lessons"][0]
        mark_lesson_complete(db_session, learner.id, france.id)
        db_session.commit()
        grade_submission(db_session, learner.id, course["test"].id, [
            SubmittedAnswer(question_id=course["questions"][1].id, answer_text="blue"),
        ])

        progress = get_class_progress(db_session, learner.id, course["class"].id)

        assert progress.percentage == 33
        assert [(u.title, u.percentage, u.completed) for u in progress.units] == [
            ("Europe", 50, False),
            ("Asia", 0, False),
        ]
        assert len(progress.tests) == 1
        assert progress.tests[0].completed is True
        assert progress.tests[0].latest_score == 100.0


class TestGradingEndToEnd:
    def test_weighted_score(self, db_session, course, learner):
        capital, colour = course["questions"]

        result = grade_submission(db_session, learner.id, course["test"].id, [
            SubmittedAnswer(question_id=capital.id, answer_text="Lyon"),
            SubmittedAnswer(question_id=colour.id, answer_text=" blue "),
        ])

        assert result.earned_points == 3
        assert result.total_points == 4
        assert result.score == 75.0
        assert float(result.submission.score) == 75.0

        answers = db_session.query(TestAnswer).filter(
            TestAnswer.submission_id == result.submission.id
        ).order_by(TestAnswer.question_id).all()
        assert [(a.question_id, a.answer_text, a.is_correct) for a in answers] == [
            (capital.id, "Lyon", False),
            (colour.id, " blue ", True),
        ]

    def test_test_without_questions(self, db_session, course, learner):
        from app.models import Test
        bare = Test(class_id=course["class"].id, title="Placeholder")
        db_session.add(bare)
        db_session.commit()

        result = grade_submission(db_session, learner.id, bare.id, [])

        assert result.score == 0
        assert result.earned_points == 0
        assert result.total_points == 0

    def test_missing_test_writes_nothing(self, db_session, learner):
        with pytest.raises(TestNotFoundError):
            grade_submission(db_session, learner.id, 9999, [])
        assert db_session.query(TestSubmission).count() == 0

    def test_two_attempts_are_independent(self, db_session, course, learner):
        capital = course["questions"][0]
        test_id = course["test"].id

        first = grade_submission(db_session, learner.id, test_id, [
            SubmittedAnswer(question_id=capital.id, answer_text="Paris"),
        ])
        second = grade_submission(db_session, learner.id, test_id, [
            SubmittedAnswer(question_id=capital.id, answer_text="paris"),
        ])

        assert first.submission.id != second.submission.id
        assert first.score == 100.0
        assert second.score == 0.0

        history = store.list_test_submissions(db_session, learner.id, test_id)
        assert [s.id for s in history] == [second.submission.id, first.submission.id]
        assert [float(s.score) for s in history] == [0.0, 100.0]

    def test_foreign_question_leaves_no_answer_row(self, db_session, course, learner):
        result = grade_submission(db_session, learner.id, course["test"].id, [
            SubmittedAnswer(question_id=424242, answer_text="Paris"),
        ])

        assert result.earned_points == 0
        assert result.total_points == 0
        assert db_session.query(TestAnswer).filter(
            TestAnswer.submission_id == result.submission.id
        ).count() == 0

    def test_score_frozen_when_bank_changes(self, db_session, course, learner):
        capital, colour = course["questions"]
        result = grade_submission(db_session, learner.id, course["test"].id, [
            SubmittedAnswer(question_id=colour.id, answer_text="Blue"),
        ])

        colour.correct_answer = "Red"
        colour.points = 10
        db_session.commit()

        latest = store.get_latest_submission(db_session, learner.id, course["test"].id)
        assert latest.id == result.submission.id
        assert float(latest.score) == 100.0
        assert latest.answers[0].is_correct is True
