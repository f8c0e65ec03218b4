from flask import Blueprint, jsonify, request, current_app
from flask_jwt_extended import jwt_required
from werkzeug.security import generate_password_hash, check_password_hash
from models import db, User, RoleEnum
from services.core_services import PointsService, LeaderboardService
from utils.role_required import role_required, load_current_user

user_bp = Blueprint("user", __name__)
admin_users_bp = Blueprint("admin_users", __name__)


# GET Current User Profile
@user_bp.route("/profile", methods=["GET"])
@jwt_required()
def get_profile():
    user = load_current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404

    data = user.to_dict()
    data["gamification"] = LeaderboardService.get_summary(user.id)
    data["certificates_count"] = user.certificates.count()
    return jsonify(data), 200


# UPDATE Profile
@user_bp.route("/profile", methods=["PUT"])
@jwt_required()
def update_profile():
    user = load_current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404
    data = request.get_json() or {}

    new_name = data.get("name")
    new_email = data.get("email")
    new_password = data.get("new_password")

    if new_name is not None:
        if len(new_name.strip()) < 2:
            return jsonify({"error": "Name must be at least 2 characters"}), 400
        user.name = new_name.strip()

    if new_email:
        new_email = new_email.strip().lower()
        if User.query.filter(User.email == new_email, User.id != user.id).first():
            return jsonify({"error": "Email already in use"}), 409
        try:
            user.email = new_email
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

    if "photo_url" in data:
        user.photo_url = data.get("photo_url") or None

    if new_password:
        if not check_password_hash(user.password_hash, data.get("current_password") or ""):
            return jsonify({"error": "Current password is incorrect"}), 400
        if len(new_password) < 8:
            return jsonify({"error": "Password must be at least 8 characters"}), 400
        user.password_hash = generate_password_hash(new_password)

    db.session.commit()
    return jsonify({"message": "Profile updated successfully", "user": user.to_dict()}), 200


# ADMIN: list learners
@admin_users_bp.route("", methods=["GET"])
@role_required("admin")
def get_all_users():
    users = User.query.filter_by(role=RoleEnum.user).order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify([u.to_dict() for u in users]), 200


# ADMIN: create an account
@admin_users_bp.route("", methods=["POST"])
@role_required("admin")
def create_user():
    data = request.get_json() or {}
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password")
    role_str = data.get("role") or "user"

    if not name or not email or not password:
        return jsonify({"error": "Missing required fields"}), 400

    try:
        role_enum = RoleEnum[role_str]
    except KeyError:
        return jsonify({"error": "Invalid role"}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({"error": "Email already exists"}), 409

    try:
        new_user = User(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role_enum
        )
        db.session.add(new_user)
        db.session.flush()
        PointsService.get_or_create_profile(new_user.id)
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create user %s", email)
        return jsonify({"error": "Error creating user"}), 500

    return jsonify({"message": "User created successfully", "user": new_user.to_dict()}), 201
