"""Administrator endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from project_tracker.core.database import get_db
from project_tracker.core.dependencies import AdminPrincipal
from project_tracker.models.project import ProjectStatus
from project_tracker.schemas.common import MessageResponse
from project_tracker.schemas.project import (
    AdminProjectCreate,
    AssignIncharge,
    DashboardStats,
    PaginatedProjectResponse,
    ProjectDetail,
    ProjectStudentsUpdate,
)
from project_tracker.schemas.student import PaginatedStudentResponse, StudentFilter
from project_tracker.schemas.teacher import PaginatedTeacherResponse
from project_tracker.services.admin import AdminService

router = APIRouter()


@router.get("/dashboard/stats", response_model=DashboardStats)
def get_dashboard_stats(
    admin: AdminPrincipal,
    db: Annotated[Session, Depends(get_db)],
):
    return AdminService(db).dashboard_stats()


# Projects

@router.get("/projects", response_model=PaginatedProjectResponse)
def list_projects(
    admin: AdminPrincipal,
    db: Annotated[Session, Depends(get_db)],
    search: str | None = Query(None),
    status: ProjectStatus | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
):
    """
    List all projects with search and status filter.
    """
    return AdminService(db).list_projects(search, status, page, page_size)


@router.post("/projects", response_model=ProjectDetail, status_code=201)
def create_project(
    request: AdminProjectCreate,
    admin: AdminPrincipal,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Create a project with an incharge and at least one student.
    """
    return AdminService(db).create_project(request)


@router.put("/projects/{project_id}/incharge", response_model=ProjectDetail)
def assign_incharge(
    project_id: int,
    request: AssignIncharge,
    admin: AdminPrincipal,
    db: Annotated[Session, Depends(get_db)],
):
    return AdminService(db).assign_incharge(project_id, request.teacher_id)


@router.put("/projects/{project_id}/students", response_model=ProjectDetail)
def update_project_students(
    project_id: int,
    request: ProjectStudentsUpdate,
    admin: AdminPrincipal,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Replace the members of a project.
    """
    return AdminService(db).update_project_students(project_id, request.student_ids)


@router.delete("/projects/{project_id}", response_model=MessageResponse)
def delete_project(
    project_id: int,
    admin: AdminPrincipal,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Delete a project and detach its students.
    """
    AdminService(db).delete_project(project_id)
    return MessageResponse(message="Project deleted successfully")


# People

@router.get("/teachers", response_model=PaginatedTeacherResponse)
def list_teachers(
    admin: AdminPrincipal,
    db: Annotated[Session, Depends(get_db)],
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
):
    return AdminService(db).list_teachers(search, page, page_size)


@router.get("/students", response_model=PaginatedStudentResponse)
def list_students(
    admin: AdminPrincipal,
    db: Annotated[Session, Depends(get_db)],
    search: str | None = Query(None),
    department: str | None = Query(None),
    has_project: bool | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
):
    """
    List students with search, department and project filters.
    """
    filters = StudentFilter(search=search, department=department, has_project=has_project)
    return AdminService(db).list_students(filters, page, page_size)
