import pytest
from unittest.mock import Mock, MagicMock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from app.database import get_db
from app.auth.dependencies import get_current_user
from app.models import (
    Base,
    User,
    UserRole,
    Class,
    Unit,
    Lesson,
    Enrollment,
    Test,
    TestQuestion,
    QuestionType,
)


@pytest.fixture
def mock_db():
    """Mock database session"""
    db = MagicMock()
    db.query.return_value = db
    db.filter.return_value = db
    db.first.return_value = None
    db.all.return_value = []
    db.count.return_value = 0
    return db


@pytest.fixture
def mock_learner():
    """Mock learner user"""
    user = Mock(spec=User)
    user.id = 2
    user.email = "learner@test.com"
    user.role = UserRole.LEARNER
    return user


@pytest.fixture
def mock_admin():
    """Mock admin user"""
    user = Mock(spec=User)
    user.id = 3
    user.email = "admin@test.com"
    user.role = UserRole.ADMIN
    return user


@pytest.fixture
def client_with_learner(mock_db, mock_learner):
    """TestClient with learner auth and mocked DB"""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: mock_learner
    client = TestClient(app)
    yield client, mock_db, mock_learner
    app.dependency_overrides.clear()


@pytest.fixture
def client_with_admin(mock_db, mock_admin):
    """TestClient with admin auth and mocked DB"""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: mock_admin
    client = TestClient(app)
    yield client, mock_db, mock_admin
    app.dependency_overrides.clear()


@pytest.fixture
def unauthenticated_client(mock_db):
    """TestClient with mocked DB but no auth"""
    app.dependency_overrides[get_db] = lambda: mock_db
    client = TestClient(app)
    yield client, mock_db
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Real session on an in-memory SQLite database"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def learner(db_session):
    user = User(email="ada@test.com", role=UserRole.LEARNER)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def course(db_session, learner):
    """
    A class the learner is enrolled in:
    unit 1 (two lessons), unit 2 (one lesson), and a quiz worth 1 + 3 points.
    """
    class_ = Class(title="Geography 101", description="Capitals and colours")
    db_session.add(class_)
    db_session.flush()

    unit_1 = Unit(class_id=class_.id, title="Europe", content="", order_index=0)
    unit_2 = Unit(class_id=class_.id, title="Asia", content="", order_index=1)
    db_session.add_all([unit_1, unit_2])
    db_session.flush()

    lessons = [
        Lesson(unit_id=unit_1.id, title="France", content="", order_index=0),
        Lesson(unit_id=unit_1.id, title="Spain", content="", order_index=1),
        Lesson(unit_id=unit_2.id, title="Japan", content="", order_index=0),
    ]
    db_session.add_all(lessons)

    quiz = Test(class_id=class_.id, unit_id=unit_1.id, title="Europe quiz")
    db_session.add(quiz)
    db_session.flush()

    capital = TestQuestion(
        test_id=quiz.id,
        question_type=QuestionType.MULTIPLE_CHOICE,
        question_text="Capital of France?",
        options=["Paris", "Lyon", "Nice"],
        correct_answer="Paris",
        points=1,
        order_index=0,
    )
    colour = TestQuestion(
        test_id=quiz.id,
        question_type=QuestionType.SHORT_ANSWER,
        question_text="Colour of the sky?",
        correct_answer="Blue",
        points=3,
        order_index=1,
    )
    db_session.add_all([capital, colour])
    db_session.add(Enrollment(user_id=learner.id, class_id=class_.id))
    db_session.commit()

    return {
        "class": class_,
        "units": [unit_1, unit_2],
        "lessons": lessons,
        "test": quiz,
        "questions": [capital, colour],
    }


@pytest.fixture
def client_with_db(db_session, learner):
    """TestClient backed by the SQLite session, authenticated as the learner"""
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_current_user] = lambda: learner
    client = TestClient(app)
    yield client, db_session, learner
    app.dependency_overrides.clear()
