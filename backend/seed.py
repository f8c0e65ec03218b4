from datetime import datetime, timedelta, time
from app import create_app
from models import (
    db, User, RoleEnum, GamificationProfile, GamificationLog,
    QuizCategory, QuestionType, Question, WeeklyQuiz,
    ContentFolder, FolderTypeEnum, Ebook, Video,
    Testimonial, Faq, AttendanceSession
)
from services.core_services import PointsService
from werkzeug.security import generate_password_hash

app = create_app()

with app.app_context():
    # Drop and recreate all tables
    db.drop_all()
    db.create_all()
    now = datetime.utcnow()

    # USERS
    admin = User(
        name="Admin",
        email="admin@learncenter.com",
        password_hash=generate_password_hash("admin12345"),
        role=RoleEnum.admin
    )
    learner = User(
        name="Siti Learner",
        email="learner@learncenter.com",
        password_hash=generate_password_hash("learner12345"),
        role=RoleEnum.user
    )
    db.session.add_all([admin, learner])
    db.session.commit()

    # GAMIFICATION
    db.session.add_all([
        GamificationProfile(user_id=admin.id, total_points=0, level=1),
        GamificationProfile(user_id=learner.id, total_points=0, level=1)
    ])
    db.session.commit()

    PointsService.award_points(learner.id, "video_watch", 50, "1")
    PointsService.award_points(learner.id, "ebook_read", 30, "1")
    for days_ago in (2, 1, 0):
        db.session.add(GamificationLog(
            user_id=learner.id,
            action_type="daily_login",
            action_id=(now - timedelta(days=days_ago)).date().isoformat(),
            points=10,
            created_at=now - timedelta(days=days_ago)
        ))
    learner.gamification_profile.total_points += 30
    db.session.commit()

    # CONTENT LIBRARY
    ebook_folder = ContentFolder(name="Programming Books", type=FolderTypeEnum.ebook)
    video_folder = ContentFolder(name="Python Tutorials", type=FolderTypeEnum.video)
    db.session.add_all([ebook_folder, video_folder])
    db.session.commit()

    db.session.add_all([
        Ebook(
            title="Python for Beginners",
            description="An introduction to Python syntax and data types",
            file_url="https://example.com/ebooks/python-beginners.pdf",
            folder_id=ebook_folder.id
        ),
        Video(
            title="Variables and Types",
            description="Working with variables",
            url="https://example.com/videos/variables.mp4",
            duration=540,
            folder_id=video_folder.id
        )
    ])
    db.session.commit()

    # QUESTION BANK
    category = QuizCategory(name="Python", description="Core Python knowledge")
    db.session.add(category)
    db.session.commit()

    basics = QuestionType(name="Basics", category_id=category.id)
    db.session.add(basics)
    db.session.commit()

    questions = [
        ("Which keyword defines a function?", ["def", "function", "fn", "lambda"], "def"),
        ("What does len([1, 2, 3]) return?", ["2", "3", "4", "Error"], "3"),
        ("Which type is immutable?", ["list", "dict", "tuple", "set"], "tuple"),
        ("How do you start a comment?", ["//", "#", "--", "/*"], "#"),
        ("What is 7 // 2?", ["3", "3.5", "4", "2"], "3"),
    ]
    db.session.add_all([
        Question(
            type_id=basics.id,
            content=content,
            options=options,
            correct_answer=answer,
            order=index
        ) for index, (content, options, answer) in enumerate(questions)
    ])
    db.session.commit()

    # WEEKLY QUIZZES
    db.session.add_all([
        WeeklyQuiz(
            title="Python Weekly #1",
            category_id=category.id,
            type_id=basics.id,
            question_count=5,
            duration_minutes=15,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=6)
        ),
        WeeklyQuiz(
            title="Python Weekly #2",
            category_id=category.id,
            type_id=basics.id,
            question_count=5,
            duration_minutes=15,
            start_date=now + timedelta(days=7),
            end_date=now + timedelta(days=14)
        )
    ])
    db.session.commit()

    # CMS
    db.session.add_all([
        Testimonial(name="Budi", role="Student", content="The weekly quizzes keep me practicing.", rating=5, order=0),
        Faq(question="How are points earned?", answer="Watch videos, read e-books and pass quizzes.", category="general", order=0)
    ])

    # ATTENDANCE
    db.session.add(AttendanceSession(
        title="Monday Class",
        date=now.date() + timedelta(days=1),
        start_time=time(9, 0),
        end_time=time(11, 0)
    ))
    db.session.commit()

    print("Database seeded successfully!")
