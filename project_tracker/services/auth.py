"""Authentication service."""

import logging
import secrets

from sqlalchemy import select
from sqlalchemy.orm import Session

from project_tracker.core.config import settings
from project_tracker.core.exceptions import AuthenticationError, ValidationError
from project_tracker.core.roles import Role
from project_tracker.core.security import (
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
    verify_refresh_token,
)
from project_tracker.models.student import Student
from project_tracker.models.teacher import Teacher
from project_tracker.schemas.auth import (
    AdminLogin,
    AuthUser,
    StudentLogin,
    StudentRegister,
    TeacherLogin,
    TeacherRegister,
    TokenResponse,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Registration and login for students, teachers and the administrator."""

    def __init__(self, db: Session):
        self.db = db

    # Students

    def register_student(self, request: StudentRegister) -> TokenResponse:
        """Register a new student and sign them in."""
        existing = self.db.execute(
            select(Student).where(Student.roll_no == request.roll_no)
        ).scalar_one_or_none()
        if existing:
            raise ValidationError("Roll number already registered")

        student = Student(
            roll_no=request.roll_no,
            username=request.username,
            department=request.department,
            class_name=request.class_name,
            password_hash=hash_password(request.password),
        )
        self.db.add(student)
        self.db.flush()
        logger.info("Registered %r", student)

        return self._issue(Role.STUDENT, str(student.id), self.student_identity(student))

    def login_student(self, request: StudentLogin) -> TokenResponse:
        """Authenticate a student by roll number."""
        student = self.db.execute(
            select(Student).where(Student.roll_no == request.roll_no)
        ).scalar_one_or_none()

        if not student or not verify_password(request.password, student.password_hash):
            raise AuthenticationError("Invalid credentials")

        return self._issue(Role.STUDENT, str(student.id), self.student_identity(student))

    # Teachers

    def register_teacher(self, request: TeacherRegister) -> TokenResponse:
        """Register a new teacher and sign them in."""
        existing = self.db.execute(
            select(Teacher).where(Teacher.email == request.email)
        ).scalar_one_or_none()
        if existing:
            raise ValidationError("Email already registered")

        teacher = Teacher(
            username=request.username,
            email=request.email,
            password_hash=hash_password(request.password),
        )
        self.db.add(teacher)
        self.db.flush()
        logger.info("Registered %r", teacher)

        return self._issue(Role.TEACHER, str(teacher.id), self.teacher_identity(teacher))

    def login_teacher(self, request: TeacherLogin) -> TokenResponse:
        """Authenticate a teacher by email."""
        teacher = self.db.execute(
            select(Teacher).where(Teacher.email == request.email)
        ).scalar_one_or_none()

        if not teacher or not verify_password(request.password, teacher.password_hash):
            raise AuthenticationError("Invalid credentials")

        return self._issue(Role.TEACHER, str(teacher.id), self.teacher_identity(teacher))

    # Administrator

    def login_admin(self, request: AdminLogin) -> TokenResponse:
        """Authenticate the built-in administrator account."""
        id_ok = secrets.compare_digest(request.admin_id, settings.ADMIN_ID)
        password_ok = secrets.compare_digest(request.password, settings.ADMIN_PASSWORD)
        if not (id_ok and password_ok):
            logger.warning("Failed administrator login for %s", request.admin_id)
            raise AuthenticationError("Invalid credentials")

        return self._issue(Role.ADMIN, settings.ADMIN_ID, self.admin_identity())

    # Tokens

    def refresh_tokens(self, refresh_token: str) -> TokenResponse:
        """Refresh access token using refresh token."""
        payload = verify_refresh_token(refresh_token)

        if not payload:
            raise AuthenticationError("Invalid or expired refresh token")

        subject = payload.get("sub")
        try:
            role = Role(payload.get("role"))
        except ValueError:
            raise AuthenticationError("Invalid token payload")
        if not subject:
            raise AuthenticationError("Invalid token payload")

        if role == Role.ADMIN:
            if subject != settings.ADMIN_ID:
                raise AuthenticationError("Invalid token payload")
            return self._issue(role, subject, self.admin_identity())

        try:
            entity_id = int(subject)
        except ValueError:
            raise AuthenticationError("Invalid user ID in token")

        if role == Role.STUDENT:
            student = self.db.get(Student, entity_id)
            if not student:
                raise AuthenticationError("User not found")
            return self._issue(role, subject, self.student_identity(student))

        teacher = self.db.get(Teacher, entity_id)
        if not teacher:
            raise AuthenticationError("User not found")
        return self._issue(role, subject, self.teacher_identity(teacher))

    def _issue(self, role: Role, subject: str, user: AuthUser) -> TokenResponse:
        return TokenResponse(
            access_token=create_access_token(subject, role.value),
            refresh_token=create_refresh_token(subject, role.value),
            token_type="bearer",
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=user,
        )

    # Identities

    @staticmethod
    def student_identity(student: Student) -> AuthUser:
        return AuthUser(
            id=student.id,
            role=Role.STUDENT,
            username=student.username,
            roll_no=student.roll_no,
            department=student.department,
            class_name=student.class_name,
        )

    @staticmethod
    def teacher_identity(teacher: Teacher) -> AuthUser:
        return AuthUser(
            id=teacher.id,
            role=Role.TEACHER,
            username=teacher.username,
            email=teacher.email,
        )

    @staticmethod
    def admin_identity() -> AuthUser:
        return AuthUser(role=Role.ADMIN, username="Administrator", admin_id=settings.ADMIN_ID)
