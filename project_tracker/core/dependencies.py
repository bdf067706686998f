"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from project_tracker.core.config import settings
from project_tracker.core.database import get_db
from project_tracker.core.exceptions import AuthenticationError, PermissionDeniedError
from project_tracker.core.roles import Role
from project_tracker.core.security import verify_access_token
from project_tracker.models.student import Student
from project_tracker.models.teacher import Teacher


class Principal:
    """The authenticated caller: a role plus the account behind it."""

    def __init__(
        self,
        role: Role,
        subject: str,
        student: Student | None = None,
        teacher: Teacher | None = None,
    ):
        self.role = role
        self.subject = subject
        self.student = student
        self.teacher = teacher

    @property
    def entity(self) -> Student | Teacher | None:
        """The loaded account; None for the administrator."""
        return self.student or self.teacher

    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def get_current_principal(
    db: Annotated[Session, Depends(get_db)],
    authorization: str | None = Header(None, description="Bearer token"),
) -> Principal:
    """Extract and validate the caller from the JWT token."""
    if not authorization:
        raise AuthenticationError("Authentication required")
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")

    token = authorization[7:]  # Remove "Bearer " prefix
    payload = verify_access_token(token)

    if not payload:
        raise AuthenticationError("Invalid or expired token")

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
        return Principal(role=role, subject=subject)

    try:
        entity_id = int(subject)
    except ValueError:
        raise AuthenticationError("Invalid user ID in token")

    if role == Role.STUDENT:
        student = db.get(Student, entity_id)
        if not student:
            raise AuthenticationError("User not found")
        return Principal(role=role, subject=subject, student=student)

    teacher = db.get(Teacher, entity_id)
    if not teacher:
        raise AuthenticationError("User not found")
    return Principal(role=role, subject=subject, teacher=teacher)


def require_role(*roles: Role):
    """Dependency factory that requires one of the given roles."""

    def check_role(
        principal: Annotated[Principal, Depends(get_current_principal)],
    ) -> Principal:
        if principal.role not in roles:
            raise PermissionDeniedError(
                "Access denied for this role",
                required_role=", ".join(role.value for role in roles),
            )
        return principal

    return check_role


def get_current_student(
    principal: Annotated[Principal, Depends(require_role(Role.STUDENT))],
) -> Student:
    return principal.student


def get_current_teacher(
    principal: Annotated[Principal, Depends(require_role(Role.TEACHER))],
) -> Teacher:
    return principal.teacher


# Type aliases for dependency injection
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
CurrentStudent = Annotated[Student, Depends(get_current_student)]
CurrentTeacher = Annotated[Teacher, Depends(get_current_teacher)]
AdminPrincipal = Annotated[Principal, Depends(require_role(Role.ADMIN))]
