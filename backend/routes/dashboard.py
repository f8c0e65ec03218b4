from datetime import datetime
from flask import Blueprint, jsonify, current_app
from models import GamificationLog, WeeklyQuiz, QuizAttempt
from services.core_services import LeaderboardService, StreakService, recent_activities
from utils.constants import LEADERBOARD
from utils.role_required import user_required, load_current_user

dashboard_bp = Blueprint('dashboard_bp', __name__)


# GET points history with rank summary
@dashboard_bp.route('/gamification/history', methods=['GET'])
@user_required
def get_gamification_history():
    user = load_current_user()
    try:
        logs = (
            GamificationLog.query.filter_by(user_id=user.id)
            .order_by(GamificationLog.created_at.desc(), GamificationLog.id.desc())
            .limit(LEADERBOARD['history_limit'])
            .all()
        )
        return jsonify({
            "logs": [log.to_dict() for log in logs],
            "summary": LeaderboardService.get_summary(user.id)
        }), 200
    except Exception:
        current_app.logger.exception("Error fetching gamification history for user %s", user.id)
        return jsonify({"error": "Error fetching gamification history"}), 500


def _pending_quizzes(user_id, now):
    open_ids = {
        row.id for row in WeeklyQuiz.query.with_entities(WeeklyQuiz.id).filter(
            WeeklyQuiz.is_active.is_(True),
            WeeklyQuiz.start_date <= now,
            WeeklyQuiz.end_date >= now
        ).all()
    }
    if not open_ids:
        return 0
    attempted = {
        row.quiz_id for row in QuizAttempt.query.with_entities(QuizAttempt.quiz_id).filter(
            QuizAttempt.user_id == user_id,
            QuizAttempt.quiz_id.in_(open_ids)
        ).all()
    }
    return len(open_ids - attempted)


# GET dashboard overview
@dashboard_bp.route('/dashboard/stats', methods=['GET'])
@user_required
def get_dashboard_stats():
    user = load_current_user()
    try:
        summary = LeaderboardService.get_summary(user.id)
        streaks = StreakService.for_user(user.id)

        return jsonify({
            "totalXP": summary["total_points"],
            "level": summary["level"],
            "rank": summary["rank"],
            "totalUsers": summary["totalUsers"],
            "certificatesCount": user.certificates.count(),
            "pendingQuizzes": _pending_quizzes(user.id, datetime.utcnow()),
            "currentStreak": streaks["currentStreak"],
            "maxStreak": streaks["maxStreak"],
            "recentActivities": recent_activities(user.id, LEADERBOARD['recent_activities'])
        }), 200
    except Exception:
        current_app.logger.exception("Error fetching dashboard stats for user %s", user.id)
        return jsonify({"error": "Error fetching dashboard stats"}), 500
