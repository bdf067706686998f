"""Profile schemas combining identities with their projects."""

from project_tracker.schemas.project import ProjectListItem, ProjectSummary
from project_tracker.schemas.student import StudentBrief
from project_tracker.schemas.teacher import TeacherBrief


class StudentProfile(StudentBrief):
    """Student with project and partners."""

    project: ProjectSummary | None
    partners: list[StudentBrief]


class TeacherProfile(TeacherBrief):
    """Teacher with the projects they supervise."""

    assigned_projects: list[ProjectListItem]
