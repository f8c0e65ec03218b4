from datetime import datetime, timedelta
from flask import current_app
from models import (
    db,
    User,
    GamificationProfile,
    GamificationLog,
)
from utils.constants import POINTS_CONFIG, LEVELING, ACTION_TYPES


class PointsService:
    """Handles awarding of points and level progression for user actions."""

    @staticmethod
    def level_for(total_points):
        return (max(total_points or 0, 0) // LEVELING['xp_per_level']) + 1

    @staticmethod
    def get_or_create_profile(user_id):
        profile = GamificationProfile.query.filter_by(user_id=user_id).first()
        if not profile:
            profile = GamificationProfile(user_id=user_id, total_points=0, level=1)
            db.session.add(profile)
            db.session.flush()
        return profile

    @staticmethod
    def award_points(user_id, action_type, points, action_id=None, commit=True):
        """Add points to a user's profile and log the transaction.

        Non-positive awards leave the profile and the log untouched, which is
        what a retake that does not beat the previous best produces.
        """
        profile = PointsService.get_or_create_profile(user_id)
        if points <= 0:
            if commit:
                db.session.commit()
            return {"points": 0, "total_points": profile.total_points, "level": profile.level}

        profile.total_points = (profile.total_points or 0) + points
        profile.level = PointsService.level_for(profile.total_points)

        db.session.add(GamificationLog(
            user_id=user_id,
            action_type=action_type,
            action_id=str(action_id) if action_id is not None else None,
            points=points
        ))

        if commit:
            db.session.commit()

        current_app.logger.info(
            "Awarded %s points to user %s for %s (%s)", points, user_id, action_type, action_id
        )
        return {"points": points, "total_points": profile.total_points, "level": profile.level}

    @staticmethod
    def has_logged(user_id, action_type, action_id):
        return GamificationLog.query.filter_by(
            user_id=user_id, action_type=action_type, action_id=str(action_id)
        ).first() is not None

    @staticmethod
    def award_once(user_id, action_type, action_id):
        """Award the configured points for an action at most once per action id."""
        if action_type not in POINTS_CONFIG:
            raise ValueError(f"Unknown action: {action_type}")

        if PointsService.has_logged(user_id, action_type, action_id):
            return None
        return PointsService.award_points(user_id, action_type, POINTS_CONFIG[action_type], action_id)

    @staticmethod
    def award_daily_login(user, today=None):
        today = today or datetime.utcnow().date()
        return PointsService.award_once(user.id, ACTION_TYPES['daily_login'], today.isoformat())


class LeaderboardService:
    @staticmethod
    def get_rank(total_points):
        higher = GamificationProfile.query.filter(
            GamificationProfile.total_points > (total_points or 0)
        ).count()
        return higher + 1

    @staticmethod
    def get_summary(user_id):
        profile = GamificationProfile.query.filter_by(user_id=user_id).first()
        total_points = profile.total_points if profile else 0
        return {
            "total_points": total_points,
            "level": profile.level if profile else 1,
            "rank": LeaderboardService.get_rank(total_points),
            "totalUsers": GamificationProfile.query.count(),
        }

    @staticmethod
    def get_top_users(limit=10):
        return (
            GamificationProfile.query.join(User)
            .order_by(GamificationProfile.total_points.desc(), GamificationProfile.id.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_leaderboard_page(page=1, per_page=20):
        return (
            GamificationProfile.query.join(User)
            .order_by(GamificationProfile.total_points.desc(), GamificationProfile.id.asc())
            .paginate(page=page, per_page=per_page, error_out=False)
        )


class StreakService:
    """Derives login streaks from the distinct dates of daily-login logs."""

    @staticmethod
    def login_dates(user_id):
        logs = (
            GamificationLog.query
            .filter_by(user_id=user_id, action_type=ACTION_TYPES['daily_login'])
            .order_by(GamificationLog.created_at.desc())
            .all()
        )
        return sorted({log.created_at.date() for log in logs}, reverse=True)

    @staticmethod
    def current_streak(dates, today=None):
        """Consecutive days ending today or yesterday; 0 once a day is missed."""
        if not dates:
            return 0
        today = today or datetime.utcnow().date()
        ordered = sorted(set(dates), reverse=True)
        if ordered[0] not in (today, today - timedelta(days=1)):
            return 0

        streak = 1
        for newer, older in zip(ordered, ordered[1:]):
            if newer - older != timedelta(days=1):
                break
            streak += 1
        return streak

    @staticmethod
    def max_streak(dates):
        if not dates:
            return 0
        ordered = sorted(set(dates))
        best = run = 1
        for older, newer in zip(ordered, ordered[1:]):
            if newer - older == timedelta(days=1):
                run += 1
            else:
                run = 1
            best = max(best, run)
        return best

    @staticmethod
    def for_user(user_id, today=None):
        dates = StreakService.login_dates(user_id)
        return {
            "currentStreak": StreakService.current_streak(dates, today),
            "maxStreak": StreakService.max_streak(dates),
        }


def recent_activities(user_id, limit):
    logs = (
        GamificationLog.query.filter_by(user_id=user_id)
        .order_by(GamificationLog.created_at.desc(), GamificationLog.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {"type": log.action_type, "points": log.points, "created_at": log.created_at.isoformat()}
        for log in logs
    ]
