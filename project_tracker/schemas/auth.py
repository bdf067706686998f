"""Authentication schemas."""

from pydantic import EmailStr, Field, field_validator

from project_tracker.core.roles import Role
from project_tracker.schemas.common import BaseSchema


class StudentRegister(BaseSchema):
    """Student registration schema."""

    roll_no: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=6)
    username: str = Field(..., min_length=2, max_length=255)
    department: str = Field(..., min_length=1, max_length=255)
    class_name: str = Field(..., min_length=1, max_length=50)

    @field_validator("roll_no")
    @classmethod
    def upper_roll_no(cls, v: str) -> str:
        return v.upper()


class StudentLogin(BaseSchema):
    """Student login schema."""

    roll_no: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("roll_no")
    @classmethod
    def upper_roll_no(cls, v: str) -> str:
        return v.upper()


class TeacherRegister(BaseSchema):
    """Teacher registration schema."""

    username: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class TeacherLogin(BaseSchema):
    """Teacher login schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class AdminLogin(BaseSchema):
    """Admin login schema."""

    admin_id: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AuthUser(BaseSchema):
    """Identity returned with tokens."""

    id: int | None = None
    role: Role
    username: str | None = None
    roll_no: str | None = None
    email: str | None = None
    department: str | None = None
    class_name: str | None = None
    admin_id: str | None = None


class TokenResponse(BaseSchema):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: AuthUser


class RefreshTokenRequest(BaseSchema):
    """Refresh token request schema."""

    refresh_token: str
