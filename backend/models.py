from datetime import datetime
import enum
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import validates

db = SQLAlchemy()


# Enums
class RoleEnum(enum.Enum):
    admin = "admin"
    user = "user"


class FolderTypeEnum(enum.Enum):
    ebook = "ebook"
    video = "video"


def _iso(value):
    return value.isoformat() if value else None


# Core Models
class User(db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(RoleEnum), nullable=False, default=RoleEnum.user)
    photo_url = db.Column(db.String(512), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    gamification_profile = db.relationship("GamificationProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    gamification_logs = db.relationship("GamificationLog", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    quiz_attempts = db.relationship("QuizAttempt", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    certificates = db.relationship("Certificate", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    attendance_records = db.relationship("AttendanceRecord", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")

    #  Methods
    def __repr__(self):
        return f"<User {self.email}>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "photo_url": self.photo_url,
            "created_at": _iso(self.created_at),
        }

    @validates("email")
    def validate_email(self, key, email):
        if not email or "@" not in email:
            raise ValueError("Invalid email format.")
        return email.strip().lower()


# Gamification
class GamificationProfile(db.Model):
    __tablename__ = "gamification_profile"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, unique=True)
    total_points = db.Column(db.Integer, default=0, nullable=False, index=True)
    level = db.Column(db.Integer, default=1, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", back_populates="gamification_profile")

    def __repr__(self):
        return f"<GamificationProfile user={self.user_id} points={self.total_points}>"


class GamificationLog(db.Model):
    __tablename__ = "gamification_log"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    action_type = db.Column(db.String(50), nullable=False)
    action_id = db.Column(db.String(100), nullable=True)
    points = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship("User", back_populates="gamification_logs")

    def __repr__(self):
        return f"<GamificationLog user={self.user_id} {self.action_type} +{self.points}>"

    def to_dict(self):
        return {
            "id": self.id,
            "action_type": self.action_type,
            "action_id": self.action_id,
            "points": self.points,
            "created_at": _iso(self.created_at),
        }


# Question Bank
class QuizCategory(db.Model):
    __tablename__ = "quiz_category"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    types = db.relationship("QuestionType", back_populates="category", lazy="dynamic", cascade="all, delete-orphan")
    weekly_quizzes = db.relationship("WeeklyQuiz", back_populates="category", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<QuizCategory {self.name}>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "types_count": self.types.count(),
        }


class QuestionType(db.Model):
    __tablename__ = "question_type"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("quiz_category.id"), nullable=False)

    category = db.relationship("QuizCategory", back_populates="types")
    questions = db.relationship("Question", back_populates="type", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<QuestionType {self.name}>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category_id": self.category_id,
            "questions_count": self.questions.count(),
        }


class Question(db.Model):
    __tablename__ = "question"

    id = db.Column(db.Integer, primary_key=True)
    type_id = db.Column(db.Integer, db.ForeignKey("question_type.id"), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    options = db.Column(db.JSON, nullable=False)
    correct_answer = db.Column(db.Text, nullable=False)
    explanation = db.Column(db.Text)
    order = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    type = db.relationship("QuestionType", back_populates="questions")
    quiz_orders = db.relationship("QuizQuestionOrder", back_populates="question", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Question {self.id}>"

    def to_dict(self, include_answer=True):
        data = {
            "id": self.id,
            "content": self.content,
            "options": self.options,
            "type_id": self.type_id,
        }
        if include_answer:
            data.update({
                "correct_answer": self.correct_answer,
                "explanation": self.explanation,
                "order": self.order,
                "created_at": _iso(self.created_at),
            })
        return data


class WeeklyQuiz(db.Model):
    __tablename__ = "weekly_quiz"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("quiz_category.id"), nullable=False)
    type_id = db.Column(db.Integer, db.ForeignKey("question_type.id"), nullable=True)
    question_count = db.Column(db.Integer, default=10, nullable=False)
    duration_minutes = db.Column(db.Integer, default=30, nullable=False)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    category = db.relationship("QuizCategory", back_populates="weekly_quizzes")
    question_type = db.relationship("QuestionType")
    question_orders = db.relationship(
        "QuizQuestionOrder", back_populates="quiz", lazy="dynamic",
        cascade="all, delete-orphan", order_by="QuizQuestionOrder.order"
    )
    attempts = db.relationship("QuizAttempt", back_populates="quiz", lazy="dynamic", cascade="all, delete-orphan")
    certificates = db.relationship("Certificate", back_populates="quiz", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<WeeklyQuiz {self.title}>"

    def is_open(self, now=None):
        now = now or datetime.utcnow()
        return self.is_active and self.start_date <= now <= self.end_date

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "category_id": self.category_id,
            "category": {"id": self.category.id, "name": self.category.name} if self.category else None,
            "config": {
                "type_id": self.type_id,
                "question_count": self.question_count,
                "duration": self.duration_minutes,
            },
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "is_active": self.is_active,
        }


class QuizQuestionOrder(db.Model):
    __tablename__ = "quiz_question_order"
    __table_args__ = (db.UniqueConstraint("quiz_id", "question_id", name="uq_quiz_question"),)

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("weekly_quiz.id"), nullable=False)
    question_id = db.Column(db.Integer, db.ForeignKey("question.id"), nullable=False)
    order = db.Column(db.Integer, default=0, nullable=False)

    quiz = db.relationship("WeeklyQuiz", back_populates="question_orders")
    question = db.relationship("Question", back_populates="quiz_orders")

    def __repr__(self):
        return f"<QuizQuestionOrder quiz={self.quiz_id} question={self.question_id} order={self.order}>"


class QuizAttempt(db.Model):
    __tablename__ = "quiz_attempt"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("weekly_quiz.id"), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False, default=0)
    answers = db.Column(db.JSON)
    started_at = db.Column(db.DateTime, default=datetime.utcnow)
    finished_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", back_populates="quiz_attempts")
    quiz = db.relationship("WeeklyQuiz", back_populates="attempts")

    def __repr__(self):
        return f"<QuizAttempt user={self.user_id} quiz={self.quiz_id} score={self.score}>"

    def to_dict(self):
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "quiz_title": self.quiz.title if self.quiz else None,
            "score": self.score,
            "started_at": _iso(self.started_at),
            "finished_at": _iso(self.finished_at),
        }


class Certificate(db.Model):
    __tablename__ = "certificate"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    quiz_id = db.Column(db.Integer, db.ForeignKey("weekly_quiz.id"), nullable=False)
    certificate_code = db.Column(db.String(50), unique=True, nullable=False)
    file_url = db.Column(db.String(512), nullable=False)
    issued_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", back_populates="certificates")
    quiz = db.relationship("WeeklyQuiz", back_populates="certificates")

    def __repr__(self):
        return f"<Certificate {self.certificate_code}>"

    def to_dict(self):
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "quiz_title": self.quiz.title if self.quiz else None,
            "certificate_code": self.certificate_code,
            "file_url": self.file_url,
            "issued_at": _iso(self.issued_at),
        }


# Content library
class ContentFolder(db.Model):
    __tablename__ = "content_folder"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.Enum(FolderTypeEnum), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    ebooks = db.relationship("Ebook", back_populates="folder", lazy="dynamic", cascade="all, delete-orphan")
    videos = db.relationship("Video", back_populates="folder", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<ContentFolder {self.name} ({self.type.value})>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "created_at": _iso(self.created_at),
            "_count": {"ebooks": self.ebooks.count(), "videos": self.videos.count()},
        }


class Ebook(db.Model):
    __tablename__ = "ebook"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    file_url = db.Column(db.String(512), nullable=False)
    cover_url = db.Column(db.String(512))
    folder_id = db.Column(db.Integer, db.ForeignKey("content_folder.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    folder = db.relationship("ContentFolder", back_populates="ebooks")

    def __repr__(self):
        return f"<Ebook {self.title}>"

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "file_url": self.file_url,
            "cover_url": self.cover_url,
            "folder_id": self.folder_id,
            "folder": {"name": self.folder.name} if self.folder else None,
            "created_at": _iso(self.created_at),
        }


class Video(db.Model):
    __tablename__ = "video"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    url = db.Column(db.String(512), nullable=False)
    duration = db.Column(db.Integer, default=0)  # seconds
    cover_url = db.Column(db.String(512))
    folder_id = db.Column(db.Integer, db.ForeignKey("content_folder.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    folder = db.relationship("ContentFolder", back_populates="videos")

    def __repr__(self):
        return f"<Video {self.title}>"

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "duration": self.duration,
            "cover_url": self.cover_url,
            "folder_id": self.folder_id,
            "folder": {"name": self.folder.name} if self.folder else None,
            "created_at": _iso(self.created_at),
        }


# CMS
class Testimonial(db.Model):
    __tablename__ = "cms_testimonial"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(120))
    content = db.Column(db.Text, nullable=False)
    avatar_url = db.Column(db.String(512))
    rating = db.Column(db.Integer, default=5)
    order = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @validates("rating")
    def validate_rating(self, key, rating):
        if rating is not None and not 1 <= int(rating) <= 5:
            raise ValueError("Rating must be between 1 and 5.")
        return rating

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "content": self.content,
            "avatar_url": self.avatar_url,
            "rating": self.rating,
            "order": self.order,
            "created_at": _iso(self.created_at),
        }


class Faq(db.Model):
    __tablename__ = "cms_faq"

    id = db.Column(db.Integer, primary_key=True)
    question = db.Column(db.Text, nullable=False)
    answer = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(100), index=True)
    order = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "question": self.question,
            "answer": self.answer,
            "category": self.category,
            "order": self.order,
        }


class Article(db.Model):
    __tablename__ = "cms_article"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    excerpt = db.Column(db.Text)
    content = db.Column(db.Text, nullable=False)
    cover_url = db.Column(db.String(512))
    is_published = db.Column(db.Boolean, default=False)
    published_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self, include_content=True):
        data = {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "cover_url": self.cover_url,
            "is_published": self.is_published,
            "published_at": _iso(self.published_at),
        }
        if include_content:
            data["content"] = self.content
        return data


class GalleryItem(db.Model):
    __tablename__ = "cms_gallery"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    image_url = db.Column(db.String(512), nullable=False)
    order = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "image_url": self.image_url,
            "order": self.order,
        }


# Attendance
class AttendanceSession(db.Model):
    __tablename__ = "attendance_session"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    records = db.relationship("AttendanceRecord", back_populates="session", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<AttendanceSession {self.title} {self.date}>"

    def ends_at(self):
        return datetime.combine(self.date, self.end_time)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "is_active": self.is_active,
            "records_count": self.records.count(),
            "created_at": _iso(self.created_at),
        }


class AttendanceRecord(db.Model):
    __tablename__ = "attendance_record"
    __table_args__ = (db.UniqueConstraint("session_id", "user_id", name="uq_attendance_session_user"),)

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("attendance_session.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    check_in_time = db.Column(db.DateTime, default=datetime.utcnow)

    session = db.relationship("AttendanceSession", back_populates="records")
    user = db.relationship("User", back_populates="attendance_records")

    def __repr__(self):
        return f"<AttendanceRecord session={self.session_id} user={self.user_id}>"

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "checked_in_at": _iso(self.check_in_time),
            "user": {
                "id": self.user.id,
                "name": self.user.name,
                "email": self.user.email,
            } if self.user else None,
        }
