"""
Project Tracker - Test Configuration and Fixtures
"""
import os
from collections.abc import Callable, Generator

# Set testing environment before the application reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-testing"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_ID"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin-password"
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import project_tracker.models  # noqa: F401
from project_tracker.core.database import Base, get_db
from project_tracker.core.roles import Role
from project_tracker.core.security import create_access_token, hash_password
from project_tracker.main import app
from project_tracker.models import Project, ProjectStatus, Student, Teacher

PASSWORD = "password123"

# One in-memory database shared by every connection
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(
    bind=test_engine,
    expire_on_commit=False,
    autoflush=False,
)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create test client with database override"""

    def override_get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_student(db_session: Session) -> Callable[..., Student]:
    """Factory for persisted students"""

    def _make(roll_no: str, username: str | None = None, department: str = "CSE") -> Student:
        student = Student(
            roll_no=roll_no.upper(),
            username=username or f"Student {roll_no}",
            department=department,
            class_name="CSE-A",
            password_hash=hash_password(PASSWORD),
        )
        db_session.add(student)
        db_session.commit()
        return student

    return _make


@pytest.fixture
def make_teacher(db_session: Session) -> Callable[..., Teacher]:
    """Factory for persisted teachers"""

    def _make(email: str, username: str | None = None) -> Teacher:
        teacher = Teacher(
            username=username or email.split("@")[0].title(),
            email=email.lower(),
            password_hash=hash_password(PASSWORD),
        )
        db_session.add(teacher)
        db_session.commit()
        return teacher

    return _make


@pytest.fixture
def make_project(db_session: Session) -> Callable[..., Project]:
    """Factory for projects with members attached directly"""

    def _make(teacher: Teacher, *students: Student, name: str = "Line Follower") -> Project:
        project = Project(
            name=name,
            incharge=teacher,
            status=ProjectStatus.ACTIVE,
            progress=0,
        )
        db_session.add(project)
        for student in students:
            student.project = project
        db_session.commit()
        return project

    return _make


def headers_for(entity: Student | Teacher) -> dict[str, str]:
    """Authentication headers for a student or teacher"""
    role = Role.STUDENT if isinstance(entity, Student) else Role.TEACHER
    token = create_access_token(str(entity.id), role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[[Student | Teacher], dict[str, str]]:
    return headers_for


@pytest.fixture
def admin_headers() -> dict[str, str]:
    token = create_access_token("admin", Role.ADMIN.value)
    return {"Authorization": f"Bearer {token}"}
