"""Database models package."""

from project_tracker.models.project import Project, ProjectStatus, ProjectTarget, ProjectUpdate
from project_tracker.models.request import (
    PartnerRequest,
    RequestDirection,
    RequestStatus,
    StudentInchargeRequest,
    TeacherInchargeRequest,
)
from project_tracker.models.student import Student, student_partners
from project_tracker.models.teacher import Teacher

__all__ = [
    # Student
    "Student",
    "student_partners",
    # Teacher
    "Teacher",
    # Project
    "Project",
    "ProjectStatus",
    "ProjectTarget",
    "ProjectUpdate",
    # Requests
    "PartnerRequest",
    "StudentInchargeRequest",
    "TeacherInchargeRequest",
    "RequestDirection",
    "RequestStatus",
]
