"""
Tests for the weekly quiz engine

Tests cover:
- Config parsing and rounding helpers
- Question selection (assigned order vs. random pool)
- Start window checks
- Grading, retake deltas and certificates
"""
import os
import random
from datetime import datetime, timedelta
from unittest import mock

import pytest

from models import (
    db, QuizQuestionOrder, Certificate, GamificationProfile, QuizAttempt,
    QuizCategory, QuestionType, Question, WeeklyQuiz
)
from services.certificate_generator import CertificateGenerator
from services.quiz_services import (
    QuizService, QuizError, CertificateService, parse_quiz_config, round_half_up, parse_datetime
)


class TestHelpers:
    def test_round_half_up(self):
        assert round_half_up(62.5) == 63
        assert round_half_up(0.5) == 1
        assert round_half_up(66.6) == 67
        assert round_half_up(66.4) == 66

    def test_parse_quiz_config_from_json_string(self):
        parsed = parse_quiz_config({"config": '{"type_id": 3, "question_count": 5, "duration": 15}'})
        assert parsed == {"type_id": 3, "question_count": 5, "duration_minutes": 15}

    def test_flat_fields_override_config(self):
        parsed = parse_quiz_config({"config": {"question_count": 5}, "question_count": 8})
        assert parsed["question_count"] == 8

    def test_parse_quiz_config_rejects_bad_values(self):
        with pytest.raises(QuizError):
            parse_quiz_config({"config": "{not json"})
        with pytest.raises(QuizError):
            parse_quiz_config({"question_count": 0})

    def test_parse_datetime_converts_aware_values_to_utc(self):
        parsed = parse_datetime("2024-05-01T10:00:00+07:00", "start_date")
        assert parsed == datetime(2024, 5, 1, 3, 0)
        assert parsed.tzinfo is None

    def test_calculate_points(self):
        assert QuizService.calculate_points(100, 5) == 100
        assert QuizService.calculate_points(60, 5) == 30
        assert QuizService.calculate_points(0, 5) == 0

    def test_certificate_code_is_capped(self):
        code = CertificateService.build_code(123456789, "x" * 40, datetime(2024, 1, 1))
        assert code.startswith("CERT-123456789-xxxxxxxx-")
        assert len(code) <= 50

    def test_certificate_code_millis_are_utc(self):
        code = CertificateService.build_code(1, 2, datetime(2024, 1, 1))
        assert code == "CERT-1-2-1704067200000"


class TestQuestionSelection:
    def test_assigned_questions_keep_their_order(self, open_quiz, question_bank):
        _, _, questions = question_bank
        for order, question in enumerate([questions[3], questions[0]]):
            db.session.add(QuizQuestionOrder(quiz_id=open_quiz.id, question_id=question.id, order=order))
        db.session.commit()

        selected = QuizService.select_questions(open_quiz)
        assert [q.id for q in selected] == [questions[3].id, questions[0].id]

    def test_pool_is_sampled_to_question_count(self, open_quiz):
        open_quiz.question_count = 3
        db.session.commit()

        selected = QuizService.select_questions(open_quiz, random.Random(7))
        assert len(selected) == 3
        assert len({q.id for q in selected}) == 3

    def test_pool_smaller_than_count_returns_everything(self, open_quiz):
        open_quiz.question_count = 50
        db.session.commit()
        assert len(QuizService.select_questions(open_quiz)) == 5

    def test_category_pool_without_type(self, question_bank):
        category, basics, questions = question_bank
        advanced = QuestionType(name="Advanced", category_id=category.id)
        other_category = QuizCategory(name="History")
        db.session.add_all([advanced, other_category])
        db.session.flush()
        foreign_type = QuestionType(name="Dates", category_id=other_category.id)
        db.session.add(foreign_type)
        db.session.flush()

        advanced_questions = [
            Question(type_id=advanced.id, content=f"Advanced {i}", options=["a", "b"], correct_answer="a")
            for i in range(2)
        ]
        foreign_questions = [
            Question(type_id=foreign_type.id, content=f"Year {i}", options=["a", "b"], correct_answer="a")
            for i in range(3)
        ]
        db.session.add_all(advanced_questions + foreign_questions)
        quiz = WeeklyQuiz(
            title="Whole category",
            category_id=category.id,
            type_id=None,
            question_count=50,
            start_date=datetime.utcnow() - timedelta(days=1),
            end_date=datetime.utcnow() + timedelta(days=1)
        )
        db.session.add(quiz)
        db.session.commit()

        in_category = {q.id for q in questions + advanced_questions}
        foreign = {q.id for q in foreign_questions}

        everything = {q.id for q in QuizService.select_questions(quiz)}
        assert everything == in_category
        assert QuizService.quiz_question_ids(quiz) == in_category

        quiz.question_count = 3
        db.session.commit()
        sampled_types = set()
        for seed in range(20):
            picked = QuizService.select_questions(quiz, random.Random(seed))
            assert len(picked) == 3
            assert not {q.id for q in picked} & foreign
            sampled_types.update(q.type_id for q in picked)
        assert sampled_types == {basics.id, advanced.id}


class TestStartQuiz:
    def test_start_hides_answers(self, open_quiz):
        session = QuizService.start_quiz(open_quiz.id)
        assert session["duration"] == 20
        assert len(session["questions"]) == 5
        assert all("correct_answer" not in q for q in session["questions"])

    def test_start_outside_window_is_rejected(self, open_quiz):
        with pytest.raises(QuizError):
            QuizService.start_quiz(open_quiz.id, now=open_quiz.end_date + timedelta(minutes=1))

    def test_start_inactive_quiz_is_rejected(self, open_quiz):
        open_quiz.is_active = False
        db.session.commit()
        with pytest.raises(QuizError):
            QuizService.start_quiz(open_quiz.id)

    def test_missing_quiz_is_404(self, app):
        with pytest.raises(QuizError) as exc:
            QuizService.start_quiz(999)
        assert exc.value.status_code == 404


def _answers(questions, right=5):
    return {
        str(q.id): (q.correct_answer if i < right else q.options[1])
        for i, q in enumerate(questions)
    }


class TestSubmitQuiz:
    def test_perfect_score_awards_bonus_and_certificate(self, app, learner, open_quiz, question_bank):
        _, _, questions = question_bank
        result = QuizService.submit_quiz(learner, open_quiz.id, _answers(questions))

        assert result["score"] == 100
        assert result["correctCount"] == 5
        assert result["earnedPoints"] == 100
        assert result["certificateUrl"].startswith("/certificates/CERT-")

        certificate = Certificate.query.filter_by(user_id=learner.id).one()
        pdf = os.path.join(app.config["CERTIFICATE_FOLDER"], f"{certificate.certificate_code}.pdf")
        assert os.path.exists(pdf)

    def test_retake_only_earns_the_improvement(self, learner, open_quiz, question_bank):
        _, _, questions = question_bank
        first = QuizService.submit_quiz(learner, open_quiz.id, _answers(questions, right=3))
        second = QuizService.submit_quiz(learner, open_quiz.id, _answers(questions, right=5))
        third = QuizService.submit_quiz(learner, open_quiz.id, _answers(questions, right=5))

        assert first["earnedPoints"] == 30
        assert second["earnedPoints"] == 70
        assert third["earnedPoints"] == 0
        profile = GamificationProfile.query.filter_by(user_id=learner.id).one()
        assert profile.total_points == 100
        assert QuizAttempt.query.filter_by(user_id=learner.id).count() == 3

    def test_certificate_issued_once(self, learner, open_quiz, question_bank):
        _, _, questions = question_bank
        first = QuizService.submit_quiz(learner, open_quiz.id, _answers(questions))
        second = QuizService.submit_quiz(learner, open_quiz.id, _answers(questions))

        assert first["certificateUrl"] == second["certificateUrl"]
        assert Certificate.query.filter_by(user_id=learner.id).count() == 1

    def test_below_passing_score_gets_no_certificate(self, learner, open_quiz, question_bank):
        _, _, questions = question_bank
        result = QuizService.submit_quiz(learner, open_quiz.id, _answers(questions, right=3))
        assert result["score"] == 60
        assert result["certificateUrl"] is None

    def test_unanswered_questions_count_as_wrong(self, learner, open_quiz, question_bank):
        _, _, questions = question_bank
        answers = {str(q.id): q.correct_answer for q in questions[:4]}
        result = QuizService.submit_quiz(
            learner, open_quiz.id, answers, question_ids=[q.id for q in questions]
        )
        assert result["totalQuestions"] == 5
        assert result["correctCount"] == 4
        assert result["score"] == 80

    def test_foreign_questions_are_not_graded(self, learner, open_quiz, question_bank):
        _, _, questions = question_bank
        answers = {str(questions[0].id): questions[0].correct_answer, "9999": "anything"}
        result = QuizService.submit_quiz(learner, open_quiz.id, answers)
        assert result["totalQuestions"] == 1
        assert result["score"] == 100

    def test_results_reveal_key_only_for_correct_answers(self, learner, open_quiz, question_bank):
        _, _, questions = question_bank
        result = QuizService.submit_quiz(learner, open_quiz.id, _answers(questions, right=1))
        by_id = {r["id"]: r for r in result["results"]}
        assert by_id[questions[0].id]["correctAnswer"] == questions[0].correct_answer
        assert by_id[questions[1].id]["correctAnswer"] is None

    def test_submission_grace_follows_duration(self, learner, open_quiz, question_bank):
        _, _, questions = question_bank
        late = open_quiz.end_date + timedelta(minutes=10)
        result = QuizService.submit_quiz(learner, open_quiz.id, _answers(questions), now=late)
        assert result["score"] == 100

        too_late = open_quiz.end_date + timedelta(minutes=21)
        with pytest.raises(QuizError):
            QuizService.submit_quiz(learner, open_quiz.id, _answers(questions), now=too_late)

    def test_empty_submission_is_rejected(self, learner, open_quiz):
        with pytest.raises(QuizError):
            QuizService.submit_quiz(learner, open_quiz.id, {})

    def test_failed_certificate_render_keeps_the_attempt(self, learner, open_quiz, question_bank):
        _, _, questions = question_bank
        with mock.patch.object(CertificateGenerator, "_draw", side_effect=OSError("disk full")):
            result = QuizService.submit_quiz(learner, open_quiz.id, _answers(questions))

        assert result["score"] == 100
        assert result["certificateUrl"] is None
        assert Certificate.query.count() == 0
        assert QuizAttempt.query.filter_by(user_id=learner.id).count() == 1
