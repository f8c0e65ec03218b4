from .auth import auth_bp
from .user import user_bp, admin_users_bp
from .quiz_bank import quiz_bank_bp
from .weekly_quiz import weekly_quiz_bp
from .quizzes import quizzes_bp
from .certificates import certificates_bp
from .leaderboard import leaderboard_bp
from .dashboard import dashboard_bp
from .content import content_bp, admin_content_bp
from .cms import cms_bp, admin_cms_bp
from .attendance import attendance_bp, admin_attendance_bp



def register_blueprints(app):
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(user_bp, url_prefix="/user")
    app.register_blueprint(admin_users_bp, url_prefix="/admin/users")
    app.register_blueprint(quiz_bank_bp, url_prefix="/admin/quiz-bank")
    app.register_blueprint(weekly_quiz_bp, url_prefix="/admin/weekly-quiz")
    app.register_blueprint(quizzes_bp, url_prefix="/user/quizzes")
    app.register_blueprint(certificates_bp)
    app.register_blueprint(leaderboard_bp)
    app.register_blueprint(dashboard_bp, url_prefix="/user")
    app.register_blueprint(content_bp, url_prefix="/content")
    app.register_blueprint(admin_content_bp, url_prefix="/admin/content")
    app.register_blueprint(cms_bp, url_prefix="/cms")
    app.register_blueprint(admin_cms_bp, url_prefix="/admin/cms")
    app.register_blueprint(attendance_bp, url_prefix="/attendance-sessions")
    app.register_blueprint(admin_attendance_bp, url_prefix="/admin/attendance-sessions")
