"""Authentication endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from project_tracker.core.database import get_db
from project_tracker.core.dependencies import CurrentPrincipal
from project_tracker.schemas.auth import (
    AdminLogin,
    AuthUser,
    RefreshTokenRequest,
    StudentLogin,
    StudentRegister,
    TeacherLogin,
    TeacherRegister,
    TokenResponse,
)
from project_tracker.services.auth import AuthService

router = APIRouter()


@router.post("/student/register", response_model=TokenResponse, status_code=201)
def register_student(
    request: StudentRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Register a student account and return tokens.
    """
    return AuthService(db).register_student(request)


@router.post("/student/login", response_model=TokenResponse)
def login_student(
    request: StudentLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Authenticate a student by roll number.
    """
    return AuthService(db).login_student(request)


@router.post("/teacher/register", response_model=TokenResponse, status_code=201)
def register_teacher(
    request: TeacherRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Register a teacher account and return tokens.
    """
    return AuthService(db).register_teacher(request)


@router.post("/teacher/login", response_model=TokenResponse)
def login_teacher(
    request: TeacherLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Authenticate a teacher by email.
    """
    return AuthService(db).login_teacher(request)


@router.post("/admin/login", response_model=TokenResponse)
def login_admin(
    request: AdminLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Authenticate the administrator against the configured credentials.
    """
    return AuthService(db).login_admin(request)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    request: RefreshTokenRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Refresh access token using a valid refresh token.
    """
    return AuthService(db).refresh_tokens(request.refresh_token)


@router.get("/me", response_model=AuthUser)
def get_current_user_info(principal: CurrentPrincipal):
    """
    Get the identity behind the current token.
    """
    if principal.student is not None:
        return AuthService.student_identity(principal.student)
    if principal.teacher is not None:
        return AuthService.teacher_identity(principal.teacher)
    return AuthService.admin_identity()
