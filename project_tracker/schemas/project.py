"""Project, target and update schemas."""

from datetime import datetime

from pydantic import Field

from project_tracker.models.project import ProjectStatus
from project_tracker.schemas.common import BaseSchema, PaginatedResponse
from project_tracker.schemas.student import StudentBrief
from project_tracker.schemas.teacher import TeacherBrief


# Targets

class TargetInput(BaseSchema):
    """A target as submitted by the incharge."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    completed: bool = False


class TargetsReplace(BaseSchema):
    """Full replacement of a project's targets."""

    targets: list[TargetInput]


class TargetToggle(BaseSchema):
    """Mark a single target completed or not."""

    completed: bool


class TargetResponse(BaseSchema):
    """Target response schema."""

    id: int
    title: str
    description: str
    completed: bool
    completed_at: datetime | None
    created_at: datetime


class TargetsResult(BaseSchema):
    """Targets after a mutation, with the recomputed progress."""

    message: str
    targets: list[TargetResponse]
    progress: int


# Updates

class UpdateCreate(BaseSchema):
    """A daily update posted by a student."""

    description: str = Field(..., min_length=1)
    report: str | None = None
    screenshots: list[str] = []
    name: str | None = Field(None, max_length=255, description="Optionally rename the project")


class UpdateEdit(BaseSchema):
    """Edit of a student's own update."""

    description: str | None = Field(None, min_length=1)
    report: str | None = None
    screenshots: list[str] | None = None


class UpdateResponse(BaseSchema):
    """Update response schema."""

    id: int
    student: StudentBrief | None
    description: str
    report: str | None
    screenshots: list[str]
    timestamp: datetime
    last_edited: datetime
    incharge_comment: str | None


class UpdateFeedItem(UpdateResponse):
    """Update with the project it belongs to."""

    project_id: int
    project_name: str


class PaginatedUpdateFeed(PaginatedResponse):
    """Paginated updates across projects."""

    items: list[UpdateFeedItem]


class CommentRequest(BaseSchema):
    """Incharge comment on an update."""

    comment: str = Field(..., min_length=1)


# Projects

class ProjectSummary(BaseSchema):
    """Short project view."""

    id: int
    name: str
    status: ProjectStatus
    progress: int
    incharge: TeacherBrief


class ProjectListItem(BaseSchema):
    """Project list entry with target and update counts."""

    id: int
    name: str
    incharge: TeacherBrief
    students: list[StudentBrief]
    progress: int
    status: ProjectStatus
    update_count: int
    target_count: int
    completed_targets: int
    created_at: datetime
    updated_at: datetime


class ProjectDetail(BaseSchema):
    """Full project view."""

    id: int
    name: str
    description: str | None
    incharge: TeacherBrief
    students: list[StudentBrief]
    targets: list[TargetResponse]
    updates: list[UpdateResponse]
    status: ProjectStatus
    progress: int
    created_at: datetime
    updated_at: datetime


class ProjectProgress(BaseSchema):
    """Progress view for a student."""

    id: int
    name: str
    progress: int
    targets: list[TargetResponse]
    incharge: TeacherBrief
    status: ProjectStatus


class ProjectCreate(BaseSchema):
    """Project created by a teacher, without students."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None


class ProjectUpdate(BaseSchema):
    """Project detail update."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus | None = None


class AdminProjectCreate(BaseSchema):
    """Project created by an administrator."""

    name: str = Field(..., min_length=1, max_length=255)
    teacher_id: int
    student_ids: list[int] = Field(..., min_length=1)
    description: str | None = None


class AssignIncharge(BaseSchema):
    """Assign a different incharge to a project."""

    teacher_id: int


class ProjectStudentsUpdate(BaseSchema):
    """Replace a project's members."""

    student_ids: list[int]


class PaginatedProjectResponse(PaginatedResponse):
    """Paginated project list."""

    items: list[ProjectListItem]


class TeacherStats(BaseSchema):
    """Teacher dashboard numbers."""

    total_projects: int
    completed_projects: int
    active_students: int
    recent_projects: list[ProjectSummary]


class DashboardStats(BaseSchema):
    """Administrator dashboard numbers."""

    total_students: int
    total_teachers: int
    total_projects: int
    students_with_project: int
    students_without_project: int
    projects_by_status: dict[str, int]
    average_progress: float
