import os
import sys
from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app
from config import TestingConfig
from models import (
    db, User, RoleEnum, QuizCategory, QuestionType, Question, WeeklyQuiz
)
from services.core_services import PointsService


@pytest.fixture
def app(tmp_path):
    app = create_app(TestingConfig)
    app.config["CERTIFICATE_FOLDER"] = str(tmp_path / "certificates")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(name, email, role=RoleEnum.user, password="password123"):
    user = User(
        name=name,
        email=email,
        password_hash=generate_password_hash(password),
        role=role
    )
    db.session.add(user)
    db.session.flush()
    PointsService.get_or_create_profile(user.id)
    db.session.commit()
    return user


def auth_headers(user):
    token = create_access_token(identity=str(user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(app):
    return make_user("Admin", "admin@example.com", RoleEnum.admin)


@pytest.fixture
def learner(app):
    return make_user("Learner", "learner@example.com")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def learner_headers(learner):
    return auth_headers(learner)


@pytest.fixture
def question_bank(app):
    category = QuizCategory(name="Python")
    db.session.add(category)
    db.session.flush()
    question_type = QuestionType(name="Basics", category_id=category.id)
    db.session.add(question_type)
    db.session.flush()

    questions = []
    for i in range(5):
        question = Question(
            type_id=question_type.id,
            content=f"Question {i}",
            options=[f"right {i}", f"wrong {i}", f"other {i}"],
            correct_answer=f"right {i}",
            order=i
        )
        questions.append(question)
    db.session.add_all(questions)
    db.session.commit()
    return category, question_type, questions


@pytest.fixture
def open_quiz(question_bank):
    category, question_type, _ = question_bank
    now = datetime.utcnow()
    quiz = WeeklyQuiz(
        title="Weekly Python",
        category_id=category.id,
        type_id=question_type.id,
        question_count=5,
        duration_minutes=20,
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=6)
    )
    db.session.add(quiz)
    db.session.commit()
    return quiz
