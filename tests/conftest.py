import pytest
import os
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from faculty_review.database import Base, get_db
from faculty_review.main import app
from faculty_review.models.department import Department
from faculty_review.models.question import Question, QuestionType
from faculty_review.models.term import Term, TermStatus, TermType
from faculty_review.models.user import User, UserRole
from fastapi.testclient import TestClient

YEAR = 2025

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth(user):
    """Headers carrying the caller identity as forwarded by the session layer."""
    return {"X-User-Id": str(user.id)}


@pytest.fixture(scope="function")
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role, department=None, name=None, is_active=True):
        counter["n"] += 1
        user = User(
            name=name or f"{role.value.title()} {counter['n']}",
            email=f"{role.value.lower()}{counter['n']}@college.edu",
            role=role,
            department_id=department.id if department else None,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make_user


@pytest.fixture(scope="function")
def department(db_session):
    dept = Department(name="Computer Science")
    db_session.add(dept)
    db_session.commit()
    return dept


@pytest.fixture(scope="function")
def other_department(db_session):
    dept = Department(name="Mathematics")
    db_session.add(dept)
    db_session.commit()
    return dept


@pytest.fixture(scope="function")
def admin_user(make_user):
    return make_user(UserRole.ADMIN, name="System Admin")


@pytest.fixture(scope="function")
def dean(make_user):
    return make_user(UserRole.DEAN, name="Dean Rahman")


@pytest.fixture(scope="function")
def asst_dean(make_user):
    return make_user(UserRole.ASST_DEAN, name="Assistant Dean Noor")


@pytest.fixture(scope="function")
def hod(make_user, department):
    return make_user(UserRole.HOD, department, name="Head of CS")


@pytest.fixture(scope="function")
def teacher(make_user, department):
    return make_user(UserRole.TEACHER, department, name="Teacher Amina")


@pytest.fixture(scope="function")
def start_term(db_session, department):
    term = Term(
        name=f"Fall {YEAR}",
        year=YEAR,
        status=TermStatus.START,
        start_date=date(YEAR, 1, 15),
        end_date=date(YEAR, 6, 15),
        departments=[department],
    )
    db_session.add(term)
    db_session.commit()
    return term


@pytest.fixture(scope="function")
def questions(db_session, department):
    """One required text question and one required MCQ for the START term."""
    text_q = Question(
        text="Describe your teaching goals",
        type=QuestionType.TEXT,
        term=TermType.START,
        year=YEAR,
        department_id=department.id,
        required=True,
        order=1,
    )
    mcq_q = Question(
        text="How many courses did you teach?",
        type=QuestionType.MCQ,
        term=TermType.START,
        year=YEAR,
        department_id=department.id,
        options=["One", "Two", "Three or more"],
        option_scores=[1, 2, 3],
        required=True,
        order=2,
    )
    db_session.add_all([text_q, mcq_q])
    db_session.commit()
    return [text_q, mcq_q]


@pytest.fixture(scope="function")
def published_start(client, admin_user, department, start_term):
    """START teacher review published for the department."""
    resp = client.post(
        f"/api/departments/{department.id}/term-state/publish",
        headers=auth(admin_user),
        json={"term": "START", "stage": "teacherReview", "year": YEAR},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def submit_answers(client, teacher, questions, comment="Worked hard this term"):
    text_q, mcq_q = questions
    return client.post(
        "/api/teacher-evaluation/answers",
        headers=auth(teacher),
        json={
            "term": "START",
            "year": YEAR,
            "answers": [
                {"question_id": text_q.id, "answer": "Improve lab sessions"},
                {"question_id": mcq_q.id, "answer": "Two"},
            ],
            "self_comment": comment,
        },
    )


def submit_hod(client, hod, teacher, comment="Solid performance", score=8, rubric=None):
    return client.post(
        "/api/reviews/hod",
        headers=auth(hod),
        json={
            "teacher_id": teacher.id,
            "term": "START",
            "year": YEAR,
            "comment": comment,
            "score": score,
            "rubric_scores": rubric if rubric is not None else {
                "[Professionalism] Punctuality": 5,
                "[Professionalism] Compliance": 5,
                "[Engagement] Student feedback": 1,
            },
        },
    )


def submit_asst(client, asst_dean, teacher, score=7):
    return client.post(
        "/api/reviews/asst-dean",
        headers=auth(asst_dean),
        json={"teacher_id": teacher.id, "term": "START", "year": YEAR, "comment": "Agree with HOD", "score": score},
    )


def submit_dean(client, dean, teacher, promoted=True, status=None):
    payload = {
        "teacher_id": teacher.id,
        "term": "START",
        "year": YEAR,
        "comment": "Final decision recorded",
        "score": 85,
        "promoted": promoted,
    }
    if status is not None:
        payload["status"] = status
    return client.post("/api/reviews/dean", headers=auth(dean), json=payload)


def complete_chain(client, teacher, questions, hod, asst_dean, dean, promoted=True):
    assert submit_answers(client, teacher, questions).status_code == 200
    assert submit_hod(client, hod, teacher).status_code == 200
    assert submit_asst(client, asst_dean, teacher).status_code == 200
    resp = submit_dean(client, dean, teacher, promoted=promoted)
    assert resp.status_code == 200, resp.text
    return resp
