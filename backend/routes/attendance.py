from datetime import datetime
import pytz
from flask import Blueprint, jsonify, request, current_app, g
from sqlalchemy.exc import IntegrityError
from models import db, AttendanceSession, AttendanceRecord
from utils.role_required import role_required

attendance_bp = Blueprint('attendance_bp', __name__)
admin_attendance_bp = Blueprint('admin_attendance_bp', __name__)


def local_now():
    """Current wall-clock time in the configured timezone, without tzinfo."""
    tz = pytz.timezone(current_app.config["TIMEZONE"])
    return datetime.now(tz).replace(tzinfo=None)


def expire_sessions(now=None):
    """Deactivate active sessions whose end time has passed."""
    now = now or local_now()
    expired = [
        s for s in AttendanceSession.query.filter_by(is_active=True).all()
        if s.ends_at() < now
    ]
    for session in expired:
        session.is_active = False
    if expired:
        db.session.commit()
        current_app.logger.info("Closed %s expired attendance session(s)", len(expired))
    return len(expired)


def _parse_schedule(data, session=None):
    """Return (date, start_time, end_time) or raise ValueError."""
    try:
        day = datetime.strptime(data["date"], "%Y-%m-%d").date() if data.get("date") else session.date
        start = datetime.strptime(data["start_time"], "%H:%M").time() if data.get("start_time") else session.start_time
        end = datetime.strptime(data["end_time"], "%H:%M").time() if data.get("end_time") else session.end_time
    except (TypeError, ValueError, AttributeError):
        raise ValueError("Use YYYY-MM-DD for date and HH:MM for times")
    if end <= start:
        raise ValueError("end_time must be after start_time")
    return day, start, end


# USER
@attendance_bp.route('', methods=['GET'])
@role_required("user", "admin")
def get_active_sessions():
    expire_sessions()
    sessions = (
        AttendanceSession.query.filter_by(is_active=True)
        .order_by(AttendanceSession.date.asc(), AttendanceSession.start_time.asc())
        .all()
    )
    return jsonify([s.to_dict() for s in sessions]), 200


@attendance_bp.route('/<int:session_id>/check-in', methods=['POST'])
@role_required("user", "admin")
def check_in(session_id):
    user = g.current_user
    expire_sessions()

    session = db.session.get(AttendanceSession, session_id)
    if not session or not session.is_active:
        return jsonify({"error": "Attendance session is not available"}), 400

    if AttendanceRecord.query.filter_by(session_id=session.id, user_id=user.id).first():
        return jsonify({"error": "You have already checked in to this session"}), 400

    record = AttendanceRecord(session_id=session.id, user_id=user.id)
    try:
        db.session.add(record)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "You have already checked in to this session"}), 400

    return jsonify({"message": "Checked in successfully", "record": record.to_dict()}), 201


# ADMIN
@admin_attendance_bp.route('', methods=['GET'])
@role_required("admin")
def admin_get_sessions():
    expire_sessions()
    sessions = AttendanceSession.query.order_by(
        AttendanceSession.date.desc(), AttendanceSession.start_time.desc()
    ).all()
    return jsonify([s.to_dict() for s in sessions]), 200


@admin_attendance_bp.route('', methods=['POST'])
@role_required("admin")
def create_session():
    data = request.get_json() or {}
    title = (data.get("title") or "").strip()
    if not title or not data.get("date") or not data.get("start_time") or not data.get("end_time"):
        return jsonify({"error": "title, date, start_time and end_time are required"}), 400

    try:
        day, start, end = _parse_schedule(data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    session = AttendanceSession(
        title=title,
        date=day,
        start_time=start,
        end_time=end,
        is_active=bool(data.get("is_active", True))
    )
    db.session.add(session)
    db.session.commit()
    return jsonify(session.to_dict()), 201


@admin_attendance_bp.route('/<int:session_id>', methods=['GET'])
@role_required("admin")
def admin_get_session(session_id):
    return jsonify(db.get_or_404(AttendanceSession, session_id).to_dict()), 200


@admin_attendance_bp.route('/<int:session_id>', methods=['PUT'])
@role_required("admin")
def update_session(session_id):
    session = db.get_or_404(AttendanceSession, session_id)
    data = request.get_json() or {}

    try:
        session.date, session.start_time, session.end_time = _parse_schedule(data, session)
    except ValueError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400

    if data.get("title"):
        session.title = data["title"].strip()
    if "is_active" in data:
        session.is_active = bool(data["is_active"])

    db.session.commit()
    return jsonify(session.to_dict()), 200


@admin_attendance_bp.route('/<int:session_id>', methods=['DELETE'])
@role_required("admin")
def delete_session(session_id):
    session = db.get_or_404(AttendanceSession, session_id)
    db.session.delete(session)
    db.session.commit()
    return jsonify({"message": "Attendance session deleted successfully"}), 200


@admin_attendance_bp.route('/<int:session_id>/records', methods=['GET'])
@role_required("admin")
def get_session_records(session_id):
    session = db.get_or_404(AttendanceSession, session_id)
    records = session.records.order_by(AttendanceRecord.check_in_time.asc()).all()
    return jsonify({
        "session": session.to_dict(),
        "records": [r.to_dict() for r in records]
    }), 200
