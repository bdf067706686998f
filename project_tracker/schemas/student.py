"""Student schemas."""

from datetime import datetime

from project_tracker.schemas.common import BaseSchema, PaginatedResponse


class StudentBrief(BaseSchema):
    """Public student identity."""

    id: int
    roll_no: str
    username: str
    department: str
    class_name: str


class AvailableStudent(StudentBrief):
    """A student who can still take partners."""

    partner_count: int


class StudentListItem(StudentBrief):
    """Admin student list entry."""

    project_id: int | None
    project_name: str | None = None
    has_project: bool
    partner_count: int = 0
    created_at: datetime


class StudentFilter(BaseSchema):
    """Student filter options."""

    search: str | None = None  # Search by name or roll number
    department: str | None = None
    has_project: bool | None = None


class PaginatedStudentResponse(PaginatedResponse):
    """Paginated student list."""

    items: list[StudentListItem]
