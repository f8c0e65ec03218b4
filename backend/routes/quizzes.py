from flask import Blueprint, jsonify, request, current_app
from models import db, QuizAttempt
from services.quiz_services import QuizService, QuizError
from utils.role_required import user_required, load_current_user

quizzes_bp = Blueprint('quizzes_bp', __name__)


# GET quizzes open right now
@quizzes_bp.route('', methods=['GET'])
@user_required
def get_open_quizzes():
    user = load_current_user()
    try:
        return jsonify(QuizService.list_open_quizzes(user)), 200
    except Exception:
        current_app.logger.exception("Error fetching quizzes")
        return jsonify({"error": "Error fetching quizzes"}), 500


# GET own attempt history
@quizzes_bp.route('/attempts', methods=['GET'])
@user_required
def get_my_attempts():
    user = load_current_user()
    attempts = (
        QuizAttempt.query.filter_by(user_id=user.id)
        .order_by(QuizAttempt.finished_at.desc(), QuizAttempt.id.desc())
        .all()
    )
    return jsonify([a.to_dict() for a in attempts]), 200


# START a quiz session
@quizzes_bp.route('/<int:quiz_id>/start', methods=['GET'])
@user_required
def start_quiz(quiz_id):
    try:
        return jsonify(QuizService.start_quiz(quiz_id)), 200
    except QuizError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Error starting quiz %s", quiz_id)
        return jsonify({"error": "Error starting quiz"}), 500


# SUBMIT answers
@quizzes_bp.route('/<int:quiz_id>/submit', methods=['POST'])
@user_required
def submit_quiz(quiz_id):
    user = load_current_user()
    data = request.get_json() or {}
    answers = data.get("answers") or {}
    question_ids = data.get("question_ids")

    if not isinstance(answers, dict):
        return jsonify({"error": "answers must be an object"}), 400
    if question_ids is not None and not isinstance(question_ids, list):
        return jsonify({"error": "question_ids must be a list"}), 400

    try:
        result = QuizService.submit_quiz(
            user,
            quiz_id,
            answers,
            question_ids=question_ids,
            started_at=data.get("started_at")
        )
    except QuizError as e:
        db.session.rollback()
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error submitting quiz %s for user %s", quiz_id, user.id)
        return jsonify({"error": "Error submitting quiz"}), 500

    return jsonify(result), 200
