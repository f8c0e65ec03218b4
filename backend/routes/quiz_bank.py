import json
from flask import Blueprint, jsonify, request, current_app
from sqlalchemy import func
from models import db, QuizCategory, QuestionType, Question
from utils.role_required import role_required
from utils.reorder import apply_order

quiz_bank_bp = Blueprint('quiz_bank_bp', __name__)


def _normalize_options(options):
    """Options arrive as a list or as the JSON string the admin UI sends."""
    if isinstance(options, str):
        try:
            options = json.loads(options)
        except ValueError:
            raise ValueError("options must be a JSON array")
    if not isinstance(options, list):
        raise ValueError("options must be a list")
    options = [str(o).strip() for o in options if str(o).strip()]
    if len(options) < 2:
        raise ValueError("At least two options are required")
    if len(set(options)) != len(options):
        raise ValueError("Options must be unique")
    return options


# CATEGORIES
@quiz_bank_bp.route('/categories', methods=['GET'])
@role_required("admin")
def get_categories():
    categories = QuizCategory.query.order_by(QuizCategory.name.asc()).all()
    return jsonify([c.to_dict() for c in categories]), 200


@quiz_bank_bp.route('/categories', methods=['POST'])
@role_required("admin")
def create_category():
    data = request.get_json() or {}
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"error": "Category name is required"}), 400

    category = QuizCategory(name=name, description=data.get("description"))
    db.session.add(category)
    db.session.commit()
    return jsonify(category.to_dict()), 201


@quiz_bank_bp.route('/categories/<int:category_id>', methods=['PUT'])
@role_required("admin")
def update_category(category_id):
    category = db.get_or_404(QuizCategory, category_id)
    data = request.get_json() or {}

    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            return jsonify({"error": "Category name is required"}), 400
        category.name = name
    if "description" in data:
        category.description = data.get("description")

    db.session.commit()
    return jsonify(category.to_dict()), 200


@quiz_bank_bp.route('/categories/<int:category_id>', methods=['DELETE'])
@role_required("admin")
def delete_category(category_id):
    category = db.get_or_404(QuizCategory, category_id)
    try:
        db.session.delete(category)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete category %s", category_id)
        return jsonify({"error": "Error deleting category"}), 500
    return jsonify({"message": "Category deleted successfully"}), 200


# QUESTION TYPES
@quiz_bank_bp.route('/types', methods=['GET'])
@role_required("admin")
def get_types():
    query = QuestionType.query
    category_id = request.args.get("category_id", type=int)
    if category_id:
        query = query.filter_by(category_id=category_id)
    types = query.order_by(QuestionType.name.asc()).all()
    return jsonify([t.to_dict() for t in types]), 200


@quiz_bank_bp.route('/types', methods=['POST'])
@role_required("admin")
def create_type():
    data = request.get_json() or {}
    name = (data.get("name") or "").strip()
    category_id = data.get("category_id")

    if not name or not category_id:
        return jsonify({"error": "Name and Category ID are required"}), 400
    if not db.session.get(QuizCategory, int(category_id)):
        return jsonify({"error": "Category not found"}), 404

    question_type = QuestionType(name=name, category_id=int(category_id))
    db.session.add(question_type)
    db.session.commit()
    return jsonify(question_type.to_dict()), 201


@quiz_bank_bp.route('/types/<int:type_id>', methods=['DELETE'])
@role_required("admin")
def delete_type(type_id):
    question_type = db.get_or_404(QuestionType, type_id)
    db.session.delete(question_type)
    db.session.commit()
    return jsonify({"message": "Type deleted successfully"}), 200


# QUESTIONS
@quiz_bank_bp.route('/questions', methods=['GET'])
@role_required("admin")
def get_questions():
    query = Question.query
    type_id = request.args.get("type_id", type=int)
    if type_id:
        query = query.filter_by(type_id=type_id)
    questions = query.order_by(Question.order.asc(), Question.created_at.desc(), Question.id.desc()).all()

    payload = []
    for q in questions:
        data = q.to_dict()
        data["type"] = {
            "id": q.type.id,
            "name": q.type.name,
            "category": {"id": q.type.category.id, "name": q.type.category.name},
        }
        payload.append(data)
    return jsonify(payload), 200


@quiz_bank_bp.route('/questions', methods=['POST'])
@role_required("admin")
def create_question():
    data = request.get_json() or {}
    content = (data.get("content") or "").strip()
    correct_answer = data.get("correct_answer")
    type_id = data.get("type_id")

    if not content or not data.get("options") or not correct_answer or not type_id:
        return jsonify({"error": "Content, options, correct answer, and type ID are required"}), 400

    try:
        options = _normalize_options(data["options"])
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    if correct_answer not in options:
        return jsonify({"error": "Correct answer must be one of the options"}), 400
    if not db.session.get(QuestionType, int(type_id)):
        return jsonify({"error": "Question type not found"}), 404

    try:
        last_order = (
            db.session.query(func.max(Question.order))
            .filter(Question.type_id == int(type_id))
            .scalar()
        )
        question = Question(
            content=content,
            options=options,
            correct_answer=correct_answer,
            explanation=data.get("explanation"),
            type_id=int(type_id),
            order=(last_order if last_order is not None else -1) + 1
        )
        db.session.add(question)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error creating question for type %s", type_id)
        return jsonify({"error": "Error creating question"}), 500

    return jsonify(question.to_dict()), 201


@quiz_bank_bp.route('/questions/<int:question_id>', methods=['PUT'])
@role_required("admin")
def update_question(question_id):
    question = db.get_or_404(Question, question_id)
    data = request.get_json() or {}

    options = question.options
    if "options" in data:
        try:
            options = _normalize_options(data["options"])
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
    correct_answer = data.get("correct_answer", question.correct_answer)
    if correct_answer not in options:
        return jsonify({"error": "Correct answer must be one of the options"}), 400

    if "content" in data:
        content = (data.get("content") or "").strip()
        if not content:
            return jsonify({"error": "Content is required"}), 400
        question.content = content
    if "explanation" in data:
        question.explanation = data.get("explanation")
    question.options = options
    question.correct_answer = correct_answer

    db.session.commit()
    return jsonify(question.to_dict()), 200


@quiz_bank_bp.route('/questions/<int:question_id>', methods=['DELETE'])
@role_required("admin")
def delete_question(question_id):
    question = db.get_or_404(Question, question_id)
    db.session.delete(question)
    db.session.commit()
    return jsonify({"message": "Question deleted successfully"}), 200


@quiz_bank_bp.route('/types/<int:type_id>/reorder', methods=['POST'])
@role_required("admin")
def reorder_questions(type_id):
    db.get_or_404(QuestionType, type_id)
    data = request.get_json() or {}
    try:
        apply_order(Question, data.get("questions"), type_id=type_id)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Error updating question order for type %s", type_id)
        return jsonify({"error": "Error updating order"}), 500
    return jsonify({"success": True}), 200
