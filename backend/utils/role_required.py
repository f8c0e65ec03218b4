from functools import wraps
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask import jsonify, g
from models import db, User

def role_required(*roles):
    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            verify_jwt_in_request()
            # get_jwt_identity() returns a string (user id)
            user_id = get_jwt_identity()
            if not user_id:
                return jsonify({"error": "Unauthorized"}), 401

            user = db.session.get(User, int(user_id))
            if not user:
                return jsonify({"error": "User not found"}), 404

            if user.role.value not in roles:
                return jsonify({"error": "Forbidden"}), 403

            g.current_user = user
            return fn(*args, **kwargs)
        return decorator
    return wrapper


def load_current_user():
    """Resolve the authenticated user and keep it on ``g``; None if the account is gone."""
    user = db.session.get(User, int(get_jwt_identity()))
    g.current_user = user
    return user


def user_required(fn):
    """Like ``jwt_required()`` but answers 404 when the token's user no longer exists."""
    @wraps(fn)
    def decorator(*args, **kwargs):
        verify_jwt_in_request()
        if load_current_user() is None:
            return jsonify({"error": "User not found"}), 404
        return fn(*args, **kwargs)
    return decorator
