from flask import Blueprint, request, jsonify, current_app
from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import (
    create_access_token, jwt_required
)
from models import db, User, RoleEnum
from services.core_services import PointsService
from utils.role_required import load_current_user

auth_bp = Blueprint('auth', __name__)

MIN_PASSWORD_LENGTH = 8


@auth_bp.route('/register', methods=['POST'])
def register():
    data = request.get_json() or {}
    name = (data.get('name') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')

    if not name or not email or not password:
        return jsonify({'error': "Missing required fields"}), 400

    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({'error': f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({'error': "Email already registered"}), 409

    try:
        new_user = User(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=RoleEnum.user
        )
        db.session.add(new_user)
        db.session.flush()
        PointsService.get_or_create_profile(new_user.id)
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Registration failed for %s", email)
        return jsonify({'error': 'Registration failed'}), 500

    access_token = create_access_token(identity=str(new_user.id))
    return jsonify({
        'message': 'User registered successfully',
        'access_token': access_token,
        'user': new_user.to_dict()
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json() or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')

    if not email or not password:
        return jsonify({'error': 'Missing email or password'}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        return jsonify({'error': 'Invalid email or password'}), 401

    # First login of the day earns the daily bonus
    try:
        daily_bonus = PointsService.award_daily_login(user)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to award daily login for user %s", user.id)
        daily_bonus = None

    access_token = create_access_token(identity=str(user.id))

    return jsonify({
        'message': 'Login successful',
        'access_token': access_token,
        'daily_bonus': daily_bonus['points'] if daily_bonus else 0,
        'user': user.to_dict()
    }), 200


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_user():
    user = load_current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user.to_dict())


@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    return jsonify({'message': 'Logout successful'})
