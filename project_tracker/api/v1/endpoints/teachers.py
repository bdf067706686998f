"""Teacher (incharge) endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from project_tracker.core.database import get_db
from project_tracker.core.dependencies import CurrentTeacher
from project_tracker.schemas.profile import TeacherProfile
from project_tracker.schemas.project import (
    CommentRequest,
    PaginatedUpdateFeed,
    ProjectCreate,
    ProjectDetail,
    ProjectListItem,
    ProjectUpdate,
    TargetsReplace,
    TargetsResult,
    TargetToggle,
    TeacherStats,
    UpdateResponse,
)
from project_tracker.schemas.request import (
    InchargeRequestRespond,
    RequestOutcome,
    TeacherInchargeRequestResponse,
)
from project_tracker.schemas.teacher import TeacherProfileUpdate
from project_tracker.services.teacher import TeacherService

router = APIRouter()


@router.get("/profile", response_model=TeacherProfile)
def get_profile(
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get the teacher's profile with assigned projects.
    """
    return TeacherService(db).get_profile(teacher)


@router.put("/profile", response_model=TeacherProfile)
def update_profile(
    request: TeacherProfileUpdate,
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
):
    return TeacherService(db).update_profile(teacher, request)


@router.get("/stats", response_model=TeacherStats)
def get_stats(
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
):
    return TeacherService(db).stats(teacher)


# Projects

@router.get("/projects", response_model=list[ProjectListItem])
def list_projects(
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
    search: str | None = Query(None, description="Project or student name"),
):
    """
    List projects supervised by the teacher.
    """
    return TeacherService(db).list_projects(teacher, search)


@router.post("/projects", response_model=ProjectDetail, status_code=201)
def create_project(
    request: ProjectCreate,
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Create a project with the teacher as incharge.
    """
    return TeacherService(db).create_project(teacher, request)


@router.get("/projects/{project_id}", response_model=ProjectDetail)
def get_project(
    project_id: int,
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
):
    return TeacherService(db).get_project_details(teacher, project_id)


@router.put("/projects/{project_id}", response_model=ProjectDetail)
def update_project(
    project_id: int,
    request: ProjectUpdate,
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Update project name, description or status.
    """
    return TeacherService(db).update_project(teacher, project_id, request)


@router.get("/projects/{project_id}/updates", response_model=list[UpdateResponse])
def get_project_updates(
    project_id: int,
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
):
    return TeacherService(db).project_updates(teacher, project_id)


@router.put("/projects/{project_id}/targets", response_model=TargetsResult)
def replace_targets(
    project_id: int,
    request: TargetsReplace,
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Replace all targets of a project.
    Progress is recomputed from the new list.
    """
    return TeacherService(db).replace_targets(teacher, project_id, request.targets)


@router.patch("/projects/{project_id}/targets/{target_id}", response_model=TargetsResult)
def toggle_target(
    project_id: int,
    target_id: int,
    request: TargetToggle,
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Mark a single target completed or not completed.
    """
    return TeacherService(db).set_target_completed(teacher, project_id, target_id, request.completed)


@router.put("/projects/{project_id}/updates/{update_id}/comment", response_model=UpdateResponse)
def comment_on_update(
    project_id: int,
    update_id: int,
    request: CommentRequest,
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
):
    return TeacherService(db).comment_on_update(teacher, project_id, update_id, request.comment)


@router.get("/updates/latest", response_model=PaginatedUpdateFeed)
def get_latest_updates(
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
):
    """
    Latest updates across all of the teacher's projects.
    """
    return TeacherService(db).latest_updates(teacher, page, page_size)


# Incharge requests

@router.get("/incharge-requests", response_model=list[TeacherInchargeRequestResponse])
def list_incharge_requests(
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
    pending_only: bool = Query(False),
):
    return TeacherService(db).list_incharge_requests(teacher, pending_only)


@router.post("/incharge-requests/{request_id}/respond", response_model=RequestOutcome)
def respond_incharge_request(
    request_id: int,
    request: InchargeRequestRespond,
    teacher: CurrentTeacher,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Accept or reject an incharge request.
    Accepting attaches the student to the given project or a new one.
    """
    return TeacherService(db).respond_incharge_request(teacher, request_id, request)
