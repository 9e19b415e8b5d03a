"""Tests for test-taking endpoints (app/routers/tests.py)"""
import pytest
from unittest.mock import Mock, patch


class TestGetTest:
    def test_nonexistent_test(self, client_with_learner):
        client, mock_db, learner = client_with_learner
        with patch("app.services.course_store.get_test_with_questions", return_value=None):
            response = client.get("/tests/999")
        assert response.status_code == 404

    def test_not_enrolled_forbidden(self, client_with_learner):
        client, mock_db, learner = client_with_learner
        test = Mock(id=1, class_id=7)
        with patch("app.services.course_store.get_test_with_questions", return_value=test), \
             patch("app.services.enrollment.is_enrolled", return_value=False):
            response = client.get("/tests/1")
        assert response.status_code == 403

    def test_correct_answers_hidden(self, client_with_db, course):
        client, db, learner = client_with_db
        response = client.get(f"/tests/{course['test'].id}")

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Europe quiz"
        assert data["passing_score"] == 70.0
        assert [q["question_type"] for q in data["questions"]] == ["multiple_choice", "short_answer"]
        assert data["questions"][0]["options"] == ["Paris", "Lyon", "Nice"]
        assert all("correct_answer" not in q for q in data["questions"])

    def test_requires_authentication(self, unauthenticated_client):
        client, mock_db = unauthenticated_client
        response = client.get("/tests/1")
        assert response.status_code in (401, 403)


class TestSubmitTest:
    def test_submit_grades_attempt(self, client_with_db, course):
        client, db, learner = client_with_db
        capital, colour = course["questions"]

        response = client.post(f"/tests/{course['test'].id}/submissions", json={
            "answers": [
                {"question_id": capital.id, "answer_text": "Lyon"},
                {"question_id": colour.id, "answer_text": " blue "},
            ]
        })

        assert response.status_code == 201
        data = response.json()
        assert data["earned_points"] == 3
        assert data["total_points"] == 4
        assert data["score"] == 75.0
        assert data["submission"]["score"] == 75.0
        assert data["passing_score"] == 70.0
        assert data["passed"] is True

    def test_failing_attempt(self, client_with_db, course):
        client, db, learner = client_with_db
        capital = course["questions"][0]

        response = client.post(f"/tests/{course['test'].id}/submissions", json={
            "answers": [{"question_id": capital.id, "answer_text": "paris"}]
        })

        assert response.status_code == 201
        assert response.json()["score"] == 0.0
        assert response.json()["passed"] is False

    def test_submit_to_missing_test(self, client_with_db, course):
        client, db, learner = client_with_db
        response = client.post("/tests/9999/submissions", json={"answers": []})
        assert response.status_code == 404

    def test_submit_not_enrolled(self, client_with_learner):
        client, mock_db, learner = client_with_learner
        test = Mock(id=1, class_id=7, passing_score=70)
        with patch("app.services.course_store.get_test_with_questions", return_value=test), \
             patch("app.services.enrollment.is_enrolled", return_value=False), \
             patch("app.services.grading.grade_submission") as mock_grade:
            response = client.post("/tests/1/submissions", json={"answers": []})

        assert response.status_code == 403
        mock_grade.assert_not_called()

    def test_grading_race_with_deleted_test(self, client_with_learner):
        client, mock_db, learner = client_with_learner
        from app.services.grading import TestNotFoundError
        test = Mock(id=1, class_id=7, passing_score=70)
        with patch("app.services.course_store.get_test_with_questions", return_value=test), \
             patch("app.services.enrollment.is_enrolled", return_value=True), \
             patch("app.services.grading.grade_submission", side_effect=TestNotFoundError(1)):
            response = client.post("/tests/1/submissions", json={"answers": []})

        assert response.status_code == 404


class TestSubmissionHistory:
    def test_history_newest_first(self, client_with_db, course):
        client, db, learner = client_with_db
        test_id = course["test"].id
        capital = course["questions"][0]

        first = client.post(f"/tests/{test_id}/submissions", json={
            "answers": [{"question_id": capital.id, "answer_text": "Paris"}]
        }).json()
        second = client.post(f"/tests/{test_id}/submissions", json={
            "answers": [{"question_id": capital.id, "answer_text": "Nice"}]
        }).json()

        response = client.get(f"/tests/{test_id}/submissions")
        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [
            second["submission"]["id"],
            first["submission"]["id"],
        ]

    def test_latest_with_answers(self, client_with_db, course):
        client, db, learner = client_with_db
        test_id = course["test"].id
        capital, colour = course["questions"]
        client.post(f"/tests/{test_id}/submissions", json={
            "answers": [
                {"question_id": capital.id, "answer_text": "Paris"},
                {"question_id": colour.id, "answer_text": "Green"},
                {"question_id": 424242, "answer_text": "ignored"},
            ]
        })

        response = client.get(f"/tests/{test_id}/submissions/latest")
        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 25.0
        assert data["passed"] is False
        assert [(a["question_id"], a["is_correct"]) for a in data["answers"]] == [
            (capital.id, True),
            (colour.id, False),
        ]

    def test_latest_without_attempts(self, client_with_db, course):
        client, db, learner = client_with_db
        response = client.get(f"/tests/{course['test'].id}/submissions/latest")
        assert response.status_code == 404
