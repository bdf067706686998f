"""Teacher schemas."""

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from project_tracker.schemas.common import BaseSchema, PaginatedResponse


class TeacherBrief(BaseSchema):
    """Public teacher identity."""

    id: int
    username: str
    email: str


class TeacherListItem(TeacherBrief):
    """Teacher with the number of projects they supervise."""

    project_count: int
    created_at: datetime | None = None


class TeacherProfileUpdate(BaseSchema):
    """Teacher profile update schema."""

    username: str | None = Field(None, min_length=2, max_length=255)
    email: EmailStr | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class PaginatedTeacherResponse(PaginatedResponse):
    """Paginated teacher list."""

    items: list[TeacherListItem]
