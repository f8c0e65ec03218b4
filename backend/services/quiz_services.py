import json
import math
import random
from datetime import datetime, timedelta, timezone
from flask import current_app
from sqlalchemy import func
from models import (
    db,
    WeeklyQuiz,
    Question,
    QuestionType,
    QuizQuestionOrder,
    QuizAttempt,
    Certificate,
)
from services.core_services import PointsService
from services.certificate_generator import CertificateGenerator
from utils.constants import POINTS_CONFIG, CERTIFICATES, QUIZ_DEFAULTS, ACTION_TYPES


class QuizError(Exception):
    """A quiz rule was violated; carries the HTTP status the route should use."""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def parse_quiz_config(data):
    """Collect type_id, question_count and duration from a request payload.

    The admin client historically posts ``config`` as a JSON string; flat
    fields on the payload take precedence over it.
    """
    raw = data.get("config") or {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw or "{}")
        except ValueError:
            raise QuizError("config must be valid JSON")
    if not isinstance(raw, dict):
        raise QuizError("config must be an object")

    merged = dict(raw)
    for key in ("type_id", "question_count", "duration"):
        if key in data:
            merged[key] = data[key]
    if "duration_minutes" in data:
        merged["duration"] = data["duration_minutes"]

    parsed = {}
    if "type_id" in merged:
        try:
            parsed["type_id"] = int(merged["type_id"]) if merged["type_id"] not in (None, "") else None
        except (TypeError, ValueError):
            raise QuizError("type_id must be an integer")
    for key, field in (("question_count", "question_count"), ("duration", "duration_minutes")):
        if key in merged and merged[key] not in (None, ""):
            try:
                value = int(merged[key])
            except (TypeError, ValueError):
                raise QuizError(f"{key} must be an integer")
            if value < 1:
                raise QuizError(f"{key} must be at least 1")
            parsed[field] = value
    return parsed


def round_half_up(value):
    return int(math.floor(value + 0.5))


def parse_datetime(value, field):
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise QuizError(f"{field} must be an ISO 8601 datetime")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class QuizService:
    """Weekly quiz lifecycle: listing, starting, grading and rewards."""

    @staticmethod
    def get_quiz(quiz_id):
        quiz = db.session.get(WeeklyQuiz, quiz_id)
        if not quiz:
            raise QuizError("Quiz not found", 404)
        return quiz

    @staticmethod
    def assigned_questions(quiz):
        return [qo.question for qo in quiz.question_orders.order_by(QuizQuestionOrder.order.asc()).all()]

    @staticmethod
    def pool_query(quiz):
        if quiz.type_id:
            return Question.query.filter(Question.type_id == quiz.type_id)
        return Question.query.join(QuestionType).filter(QuestionType.category_id == quiz.category_id)

    @staticmethod
    def select_questions(quiz, rng=None):
        """Explicitly assigned questions win, in order; otherwise sample the pool."""
        assigned = QuizService.assigned_questions(quiz)
        if assigned:
            return assigned

        rng = rng or random
        pool = QuizService.pool_query(quiz).order_by(Question.order.asc(), Question.id.asc()).all()
        count = min(quiz.question_count or QUIZ_DEFAULTS["question_count"], len(pool))
        return rng.sample(pool, count)

    @staticmethod
    def quiz_question_ids(quiz):
        assigned = [qo.question_id for qo in quiz.question_orders.all()]
        if assigned:
            return set(assigned)
        return {q.id for q in QuizService.pool_query(quiz).with_entities(Question.id).all()}

    @staticmethod
    def list_open_quizzes(user, now=None):
        now = now or datetime.utcnow()
        quizzes = (
            WeeklyQuiz.query
            .filter(
                WeeklyQuiz.is_active.is_(True),
                WeeklyQuiz.start_date <= now,
                WeeklyQuiz.end_date >= now
            )
            .order_by(WeeklyQuiz.end_date.asc())
            .all()
        )
        listing = []
        for quiz in quizzes:
            last = (
                quiz.attempts.filter_by(user_id=user.id)
                .order_by(QuizAttempt.finished_at.desc(), QuizAttempt.id.desc())
                .first()
            )
            data = quiz.to_dict()
            data["attempted"] = last is not None
            data["last_score"] = last.score if last else None
            listing.append(data)
        return listing

    @staticmethod
    def start_quiz(quiz_id, now=None, rng=None):
        now = now or datetime.utcnow()
        quiz = QuizService.get_quiz(quiz_id)
        if not quiz.is_active:
            raise QuizError("Quiz is not active")
        if now < quiz.start_date or now > quiz.end_date:
            raise QuizError("Quiz is not currently open")

        questions = QuizService.select_questions(quiz, rng)
        if not questions:
            raise QuizError("No questions available for this quiz", 500)

        duration = quiz.duration_minutes or QUIZ_DEFAULTS["duration_minutes"]
        return {
            "quiz_id": quiz.id,
            "title": quiz.title,
            "questions": [q.to_dict(include_answer=False) for q in questions],
            "duration": duration,
            "started_at": now.isoformat(),
            "expires_at": (now + timedelta(minutes=duration)).isoformat(),
        }

    @staticmethod
    def calculate_points(score, total_questions):
        """10 points per correct answer, plus the perfect-score bonus."""
        correct = round_half_up((score / 100) * total_questions)
        points = correct * POINTS_CONFIG["quiz_correct_answer"]
        if score == 100:
            points += POINTS_CONFIG["quiz_perfect_score_bonus"]
        return points

    @staticmethod
    def grade(questions, answers):
        correct_count = 0
        results = []
        for question in questions:
            submitted = answers.get(question.id)
            is_correct = submitted is not None and submitted == question.correct_answer
            if is_correct:
                correct_count += 1
            results.append({
                "id": question.id,
                "content": question.content,
                "options": question.options,
                "submittedAnswer": submitted,
                "isCorrect": is_correct,
                # Reveal the key only for questions the learner already got right
                "correctAnswer": question.correct_answer if is_correct else None,
                "explanation": question.explanation if is_correct else None,
            })

        total = len(questions)
        score = round_half_up((correct_count / total) * 100) if total > 0 else 0
        return score, correct_count, results

    @staticmethod
    def _normalize_answers(answers):
        normalized = {}
        for key, value in (answers or {}).items():
            try:
                normalized[int(key)] = value
            except (TypeError, ValueError):
                continue
        return normalized

    @staticmethod
    def _graded_questions(quiz, answers, question_ids):
        allowed = QuizService.quiz_question_ids(quiz)
        if question_ids:
            ordered_ids = []
            for qid in question_ids:
                try:
                    qid = int(qid)
                except (TypeError, ValueError):
                    continue
                if qid in allowed and qid not in ordered_ids:
                    ordered_ids.append(qid)
        else:
            ordered_ids = [qid for qid in answers if qid in allowed]

        if not ordered_ids:
            return []
        by_id = {q.id: q for q in Question.query.filter(Question.id.in_(ordered_ids)).all()}
        return [by_id[qid] for qid in ordered_ids if qid in by_id]

    @staticmethod
    def submit_quiz(user, quiz_id, answers, question_ids=None, started_at=None, now=None):
        now = now or datetime.utcnow()
        answers = QuizService._normalize_answers(answers)
        if not answers and not question_ids:
            raise QuizError("No answers provided")

        quiz = QuizService.get_quiz(quiz_id)
        if not quiz.is_active:
            raise QuizError("Quiz is not active")
        if now < quiz.start_date:
            raise QuizError("Quiz is not currently open")
        grace = timedelta(minutes=quiz.duration_minutes or QUIZ_DEFAULTS["duration_minutes"])
        if now > quiz.end_date + grace:
            raise QuizError("Quiz submission window has closed")

        questions = QuizService._graded_questions(quiz, answers, question_ids)
        score, correct_count, results = QuizService.grade(questions, answers)
        total_questions = len(questions)

        previous_best = (
            db.session.query(func.max(QuizAttempt.score))
            .filter(QuizAttempt.user_id == user.id, QuizAttempt.quiz_id == quiz.id)
            .scalar()
        ) or 0
        # Retakes only earn what they add on top of the best earlier attempt
        earned_points = max(
            0,
            QuizService.calculate_points(score, total_questions)
            - QuizService.calculate_points(previous_best, total_questions)
        )

        attempt = QuizAttempt(
            user_id=user.id,
            quiz_id=quiz.id,
            score=score,
            answers={str(k): v for k, v in answers.items()},
            started_at=parse_datetime(started_at, "started_at") if started_at else now,
            finished_at=now
        )
        db.session.add(attempt)
        PointsService.award_points(user.id, ACTION_TYPES["quiz"], earned_points, f"quiz_{quiz.id}", commit=False)
        db.session.commit()

        current_app.logger.info(
            "User %s scored %s on quiz %s (%s/%s), +%s points",
            user.id, score, quiz.id, correct_count, total_questions, earned_points
        )

        certificate_url = None
        if score >= CERTIFICATES["passing_score"]:
            certificate_url = CertificateService.issue(user, quiz, now)

        return {
            "message": "Quiz submitted successfully",
            "attempt_id": attempt.id,
            "score": score,
            "correctCount": correct_count,
            "totalQuestions": total_questions,
            "earnedPoints": earned_points,
            "certificateUrl": certificate_url,
            "results": results,
        }


class CertificateService:
    @staticmethod
    def build_code(quiz_id, user_id, now):
        millis = int(now.replace(tzinfo=timezone.utc).timestamp() * 1000)
        code = f"CERT-{quiz_id}-{str(user_id)[:8]}-{millis}"
        return code[:CERTIFICATES["code_max_length"]]

    @staticmethod
    def issue(user, quiz, now):
        """Return the user's certificate URL for a quiz, generating it on first pass."""
        existing = Certificate.query.filter_by(user_id=user.id, quiz_id=quiz.id).first()
        if existing:
            return existing.file_url

        code = CertificateService.build_code(quiz.id, user.id, now)
        file_url = CertificateGenerator.generate(user.name or "Participant", quiz.title, now, code)
        if not file_url:
            return None

        db.session.add(Certificate(
            user_id=user.id,
            quiz_id=quiz.id,
            certificate_code=code,
            file_url=file_url,
            issued_at=now
        ))
        db.session.commit()
        return file_url
