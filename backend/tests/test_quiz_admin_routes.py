"""
Tests for question bank and weekly quiz administration
"""
from datetime import datetime, timedelta

from models import db, Question, QuizQuestionOrder


class TestAccessControl:
    def test_learner_cannot_manage_question_bank(self, client, learner_headers):
        res = client.get("/admin/quiz-bank/categories", headers=learner_headers)
        assert res.status_code == 403


class TestQuestionBank:
    def test_category_type_question_flow(self, client, admin_headers):
        category = client.post(
            "/admin/quiz-bank/categories", json={"name": "Math"}, headers=admin_headers
        ).get_json()
        qtype = client.post(
            "/admin/quiz-bank/types",
            json={"name": "Algebra", "category_id": category["id"]},
            headers=admin_headers
        ).get_json()

        first = client.post("/admin/quiz-bank/questions", json={
            "content": "2 + 2?",
            "options": '["3", "4", "5"]',
            "correct_answer": "4",
            "type_id": qtype["id"]
        }, headers=admin_headers)
        second = client.post("/admin/quiz-bank/questions", json={
            "content": "3 * 3?",
            "options": ["6", "9"],
            "correct_answer": "9",
            "type_id": qtype["id"]
        }, headers=admin_headers)

        assert first.status_code == 201
        assert first.get_json()["options"] == ["3", "4", "5"]
        assert second.get_json()["order"] == first.get_json()["order"] + 1

        listing = client.get(
            f"/admin/quiz-bank/questions?type_id={qtype['id']}", headers=admin_headers
        ).get_json()
        assert listing[0]["type"]["category"]["name"] == "Math"

    def test_correct_answer_must_be_an_option(self, client, admin_headers, question_bank):
        _, qtype, _ = question_bank
        res = client.post("/admin/quiz-bank/questions", json={
            "content": "Pick one",
            "options": ["a", "b"],
            "correct_answer": "c",
            "type_id": qtype.id
        }, headers=admin_headers)
        assert res.status_code == 400

    def test_reorder_questions(self, client, admin_headers, question_bank):
        _, qtype, questions = question_bank
        res = client.post(f"/admin/quiz-bank/types/{qtype.id}/reorder", json={
            "questions": [{"id": questions[0].id, "order": 9}, {"id": questions[4].id, "order": 0}]
        }, headers=admin_headers)
        assert res.status_code == 200
        assert db.session.get(Question, questions[0].id).order == 9

    def test_reorder_rejects_unknown_ids(self, client, admin_headers, question_bank):
        _, qtype, questions = question_bank
        res = client.post(f"/admin/quiz-bank/types/{qtype.id}/reorder", json={
            "questions": [{"id": questions[0].id, "order": 3}, {"id": 999, "order": 1}]
        }, headers=admin_headers)
        assert res.status_code == 400
        assert db.session.get(Question, questions[0].id).order == 0


class TestWeeklyQuizAdmin:
    def _payload(self, category, **overrides):
        now = datetime.utcnow()
        payload = {
            "title": "Week 1",
            "category_id": category.id,
            "start_date": now.isoformat(),
            "end_date": (now + timedelta(days=7)).isoformat(),
        }
        payload.update(overrides)
        return payload

    def test_create_with_json_config(self, client, admin_headers, question_bank):
        category, qtype, _ = question_bank
        res = client.post("/admin/weekly-quiz", json=self._payload(
            category, config=f'{{"type_id": {qtype.id}, "question_count": 3, "duration": 15}}'
        ), headers=admin_headers)

        assert res.status_code == 201
        data = res.get_json()
        assert data["config"] == {"type_id": qtype.id, "question_count": 3, "duration": 15}
        assert data["_count"]["quiz_attempts"] == 0

    def test_defaults_apply_without_config(self, client, admin_headers, question_bank):
        category, _, _ = question_bank
        data = client.post("/admin/weekly-quiz", json=self._payload(category), headers=admin_headers).get_json()
        assert data["config"]["question_count"] == 10
        assert data["config"]["duration"] == 30

    def test_end_must_follow_start(self, client, admin_headers, question_bank):
        category, _, _ = question_bank
        now = datetime.utcnow()
        res = client.post("/admin/weekly-quiz", json=self._payload(
            category, end_date=(now - timedelta(days=1)).isoformat()
        ), headers=admin_headers)
        assert res.status_code == 400

    def test_type_must_belong_to_category(self, client, admin_headers, question_bank):
        _, qtype, _ = question_bank
        other = client.post(
            "/admin/quiz-bank/categories", json={"name": "History"}, headers=admin_headers
        ).get_json()
        res = client.post("/admin/weekly-quiz", json={
            "title": "Mismatch",
            "category_id": other["id"],
            "start_date": datetime.utcnow().isoformat(),
            "end_date": (datetime.utcnow() + timedelta(days=1)).isoformat(),
            "type_id": qtype.id
        }, headers=admin_headers)
        assert res.status_code == 400

    def test_assign_and_reorder_questions(self, client, admin_headers, open_quiz, question_bank):
        _, _, questions = question_bank
        for question in (questions[1], questions[2]):
            res = client.post(
                f"/admin/weekly-quiz/{open_quiz.id}/questions",
                json={"question_id": question.id},
                headers=admin_headers
            )
            assert res.status_code == 201

        duplicate = client.post(
            f"/admin/weekly-quiz/{open_quiz.id}/questions",
            json={"question_id": questions[1].id},
            headers=admin_headers
        )
        assert duplicate.status_code == 409

        res = client.put(f"/admin/weekly-quiz/{open_quiz.id}/questions/reorder", json={
            "questions": [{"id": questions[2].id, "order": 0}, {"id": questions[1].id, "order": 1}]
        }, headers=admin_headers)
        assert res.status_code == 200

        assigned = client.get(f"/admin/weekly-quiz/{open_quiz.id}/questions", headers=admin_headers).get_json()
        assert [q["id"] for q in assigned] == [questions[2].id, questions[1].id]

        res = client.delete(
            f"/admin/weekly-quiz/{open_quiz.id}/questions",
            json={"question_id": questions[2].id},
            headers=admin_headers
        )
        assert res.status_code == 200
        assert QuizQuestionOrder.query.filter_by(quiz_id=open_quiz.id).count() == 1

    def test_delete_quiz(self, client, admin_headers, open_quiz):
        res = client.delete(f"/admin/weekly-quiz/{open_quiz.id}", headers=admin_headers)
        assert res.status_code == 200
        assert client.get("/admin/weekly-quiz", headers=admin_headers).get_json() == []

    def test_category_change_rechecks_stored_type(self, client, admin_headers, open_quiz, question_bank):
        _, python_type, _ = question_bank
        math = client.post(
            "/admin/quiz-bank/categories", json={"name": "Math"}, headers=admin_headers
        ).get_json()

        res = client.put(
            f"/admin/weekly-quiz/{open_quiz.id}", json={"category_id": math["id"]}, headers=admin_headers
        )
        assert res.status_code == 400
        db.session.refresh(open_quiz)
        assert open_quiz.type_id == python_type.id
        assert open_quiz.category_id == python_type.category_id

    def test_category_change_with_matching_type(self, client, admin_headers, open_quiz, question_bank):
        python, _, _ = question_bank
        math = client.post(
            "/admin/quiz-bank/categories", json={"name": "Math"}, headers=admin_headers
        ).get_json()
        algebra = client.post(
            "/admin/quiz-bank/types", json={"name": "Algebra", "category_id": math["id"]}, headers=admin_headers
        ).get_json()

        res = client.put(f"/admin/weekly-quiz/{open_quiz.id}", json={
            "category_id": math["id"], "type_id": algebra["id"]
        }, headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["config"]["type_id"] == algebra["id"]

        cleared = client.put(f"/admin/weekly-quiz/{open_quiz.id}", json={
            "category_id": python.id, "type_id": None
        }, headers=admin_headers)
        assert cleared.status_code == 200
        assert cleared.get_json()["config"]["type_id"] is None

    def test_non_numeric_ids_are_validation_errors(self, client, admin_headers, open_quiz, question_bank):
        category, _, _ = question_bank
        res = client.post("/admin/weekly-quiz", json=self._payload(category, category_id="abc"), headers=admin_headers)
        assert res.status_code == 400

        res = client.post("/admin/weekly-quiz", json=self._payload(category, type_id="abc"), headers=admin_headers)
        assert res.status_code == 400

        res = client.put(f"/admin/weekly-quiz/{open_quiz.id}", json={"category_id": "abc"}, headers=admin_headers)
        assert res.status_code == 400

        for method in (client.post, client.delete):
            res = method(
                f"/admin/weekly-quiz/{open_quiz.id}/questions",
                json={"question_id": "first"},
                headers=admin_headers
            )
            assert res.status_code == 400
