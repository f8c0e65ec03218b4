from flask import Blueprint, jsonify, request, current_app
from sqlalchemy import func
from models import db, WeeklyQuiz, QuizCategory, QuestionType, Question, QuizQuestionOrder
from services.quiz_services import QuizError, parse_quiz_config, parse_datetime
from utils.constants import QUIZ_DEFAULTS
from utils.role_required import role_required
from utils.reorder import apply_order

weekly_quiz_bp = Blueprint('weekly_quiz_bp', __name__)


def _int_id(value, field):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise QuizError(f"{field} must be an integer")


def _apply_config(quiz, config):
    if "type_id" in config:
        quiz.type_id = config["type_id"]
    # A stored type must follow the quiz into a new category too
    if quiz.type_id is not None:
        question_type = db.session.get(QuestionType, quiz.type_id)
        if not question_type:
            raise QuizError("Question type not found", 404)
        if question_type.category_id != quiz.category_id:
            raise QuizError("Question type does not belong to the quiz category")
    if "question_count" in config:
        quiz.question_count = config["question_count"]
    if "duration_minutes" in config:
        quiz.duration_minutes = config["duration_minutes"]


def _serialize(quiz):
    data = quiz.to_dict()
    data["_count"] = {"quiz_attempts": quiz.attempts.count()}
    data["assigned_questions"] = quiz.question_orders.count()
    return data


@weekly_quiz_bp.route('', methods=['GET'])
@role_required("admin")
def get_weekly_quizzes():
    quizzes = WeeklyQuiz.query.order_by(WeeklyQuiz.start_date.desc()).all()
    return jsonify([_serialize(q) for q in quizzes]), 200


@weekly_quiz_bp.route('', methods=['POST'])
@role_required("admin")
def create_weekly_quiz():
    data = request.get_json() or {}
    title = (data.get("title") or "").strip()
    category_id = data.get("category_id")
    start_date = data.get("start_date")
    end_date = data.get("end_date")

    if not all([title, category_id, start_date, end_date]):
        return jsonify({"error": "Missing required fields"}), 400

    try:
        category_id = _int_id(category_id, "category_id")
        if not db.session.get(QuizCategory, category_id):
            raise QuizError("Category not found", 404)

        quiz = WeeklyQuiz(
            title=title,
            category_id=category_id,
            start_date=parse_datetime(start_date, "start_date"),
            end_date=parse_datetime(end_date, "end_date"),
            question_count=QUIZ_DEFAULTS["question_count"],
            duration_minutes=QUIZ_DEFAULTS["duration_minutes"],
            is_active=bool(data.get("is_active", True))
        )
        if quiz.start_date >= quiz.end_date:
            raise QuizError("End date must be after start date")
        _apply_config(quiz, parse_quiz_config(data))

        db.session.add(quiz)
        db.session.commit()
    except QuizError as e:
        db.session.rollback()
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error creating weekly quiz")
        return jsonify({"error": "Error creating quiz"}), 500

    return jsonify(_serialize(quiz)), 201


@weekly_quiz_bp.route('/<int:quiz_id>', methods=['PUT'])
@role_required("admin")
def update_weekly_quiz(quiz_id):
    quiz = db.get_or_404(WeeklyQuiz, quiz_id)
    data = request.get_json() or {}

    try:
        if data.get("title"):
            quiz.title = data["title"].strip()
        if data.get("category_id"):
            category_id = _int_id(data["category_id"], "category_id")
            if not db.session.get(QuizCategory, category_id):
                raise QuizError("Category not found", 404)
            quiz.category_id = category_id
        if data.get("start_date"):
            quiz.start_date = parse_datetime(data["start_date"], "start_date")
        if data.get("end_date"):
            quiz.end_date = parse_datetime(data["end_date"], "end_date")
        if quiz.start_date >= quiz.end_date:
            raise QuizError("End date must be after start date")
        if data.get("is_active") is not None:
            quiz.is_active = bool(data["is_active"])
        _apply_config(quiz, parse_quiz_config(data))

        db.session.commit()
    except QuizError as e:
        db.session.rollback()
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error updating weekly quiz %s", quiz_id)
        return jsonify({"error": "Error updating quiz"}), 500

    return jsonify(_serialize(quiz)), 200


@weekly_quiz_bp.route('/<int:quiz_id>', methods=['DELETE'])
@role_required("admin")
def delete_weekly_quiz(quiz_id):
    quiz = db.get_or_404(WeeklyQuiz, quiz_id)
    try:
        db.session.delete(quiz)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error deleting weekly quiz %s", quiz_id)
        return jsonify({"error": "Error deleting quiz"}), 500
    return jsonify({"message": "Quiz deleted successfully"}), 200


# ASSIGNED QUESTIONS
@weekly_quiz_bp.route('/<int:quiz_id>/questions', methods=['GET'])
@role_required("admin")
def get_quiz_questions(quiz_id):
    quiz = db.get_or_404(WeeklyQuiz, quiz_id)
    orders = quiz.question_orders.order_by(QuizQuestionOrder.order.asc()).all()
    return jsonify([
        {
            "id": qo.question.id,
            "content": qo.question.content,
            "options": qo.question.options,
            "correct_answer": qo.question.correct_answer,
            "type_id": qo.question.type_id,
            "order": qo.order,
        } for qo in orders
    ]), 200


@weekly_quiz_bp.route('/<int:quiz_id>/questions', methods=['POST'])
@role_required("admin")
def add_quiz_question(quiz_id):
    quiz = db.get_or_404(WeeklyQuiz, quiz_id)
    data = request.get_json() or {}
    question_id = data.get("question_id")
    if not question_id:
        return jsonify({"error": "question_id is required"}), 400
    try:
        question_id = _int_id(question_id, "question_id")
    except QuizError as e:
        return jsonify({"error": e.message}), e.status_code

    question = db.session.get(Question, question_id)
    if not question:
        return jsonify({"error": "Question not found"}), 404
    if QuizQuestionOrder.query.filter_by(quiz_id=quiz.id, question_id=question.id).first():
        return jsonify({"error": "Question already assigned to this quiz"}), 409

    max_order = (
        db.session.query(func.max(QuizQuestionOrder.order))
        .filter(QuizQuestionOrder.quiz_id == quiz.id)
        .scalar()
    )
    db.session.add(QuizQuestionOrder(
        quiz_id=quiz.id,
        question_id=question.id,
        order=max_order + 1 if max_order is not None else 0
    ))
    db.session.commit()
    return jsonify({"success": True}), 201


@weekly_quiz_bp.route('/<int:quiz_id>/questions', methods=['DELETE'])
@role_required("admin")
def remove_quiz_question(quiz_id):
    db.get_or_404(WeeklyQuiz, quiz_id)
    data = request.get_json() or {}
    question_id = data.get("question_id")
    if not question_id:
        return jsonify({"error": "question_id is required"}), 400
    try:
        question_id = _int_id(question_id, "question_id")
    except QuizError as e:
        return jsonify({"error": e.message}), e.status_code

    QuizQuestionOrder.query.filter_by(quiz_id=quiz_id, question_id=question_id).delete()
    db.session.commit()
    return jsonify({"success": True}), 200


@weekly_quiz_bp.route('/<int:quiz_id>/questions/reorder', methods=['PUT'])
@role_required("admin")
def reorder_quiz_questions(quiz_id):
    db.get_or_404(WeeklyQuiz, quiz_id)
    data = request.get_json() or {}
    items = data.get("questions")
    if not isinstance(items, list):
        return jsonify({"error": "Invalid request"}), 400

    # Payload carries question ids; translate them to assignment rows
    assignments = {
        qo.question_id: qo.id
        for qo in QuizQuestionOrder.query.filter_by(quiz_id=quiz_id).all()
    }
    try:
        rows = [
            {"id": assignments[int(item["id"])], "order": item["order"]}
            for item in items
        ]
        apply_order(QuizQuestionOrder, rows, quiz_id=quiz_id)
    except (KeyError, TypeError, ValueError):
        return jsonify({"error": "Invalid request"}), 400
    return jsonify({"success": True}), 200
