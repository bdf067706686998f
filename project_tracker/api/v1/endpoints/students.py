"""Student endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from project_tracker.core.database import get_db
from project_tracker.core.dependencies import CurrentStudent
from project_tracker.schemas.profile import StudentProfile
from project_tracker.schemas.project import ProjectProgress, UpdateCreate, UpdateEdit, UpdateResponse
from project_tracker.schemas.request import (
    InchargeRequestCreate,
    PartnerRequestCreate,
    PartnerRequestsView,
    RequestOutcome,
    RequestRespond,
    StudentInchargeRequestResponse,
)
from project_tracker.schemas.student import AvailableStudent
from project_tracker.schemas.teacher import TeacherListItem
from project_tracker.services.student import StudentService

router = APIRouter()


@router.get("/profile", response_model=StudentProfile)
def get_profile(
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get the student's profile with project and partners.
    """
    return StudentService(db).get_profile(student)


# Project work

@router.post("/project/updates", response_model=UpdateResponse, status_code=201)
def post_update(
    request: UpdateCreate,
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Post a daily update to the student's project.
    """
    return StudentService(db).post_update(student, request)


@router.put("/project/updates/{update_id}", response_model=UpdateResponse)
def edit_update(
    update_id: int,
    request: UpdateEdit,
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Edit one of the student's own updates.
    """
    return StudentService(db).edit_update(student, update_id, request)


@router.get("/project/progress", response_model=ProjectProgress)
def get_progress(
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
):
    return StudentService(db).get_progress(student)


@router.get("/daily-updates", response_model=list[UpdateResponse])
def get_daily_updates(
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
):
    """
    List updates on the student's project, newest first.
    """
    return StudentService(db).daily_updates(student)


# Lookups

@router.get("/teachers", response_model=list[TeacherListItem])
def list_teachers(
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
):
    return StudentService(db).list_teachers()


@router.get("/available-students", response_model=list[AvailableStudent])
def list_available_students(
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
    search: str | None = Query(None, description="Name or roll number"),
):
    """
    List students who can still take a partner.
    """
    return StudentService(db).available_students(student, search)


# Incharge requests

@router.post("/incharge-requests", response_model=RequestOutcome, status_code=201)
def send_incharge_request(
    request: InchargeRequestCreate,
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Ask a teacher to become the student's incharge.
    """
    return StudentService(db).send_incharge_request(student, request)


@router.get("/incharge-requests", response_model=list[StudentInchargeRequestResponse])
def list_incharge_requests(
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
):
    return StudentService(db).list_incharge_requests(student)


# Partner requests

@router.post("/partner-requests", response_model=RequestOutcome, status_code=201)
def send_partner_request(
    request: PartnerRequestCreate,
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Send a partner request by student id or roll number.
    """
    return StudentService(db).send_partner_request(student, request)


@router.get("/partner-requests", response_model=PartnerRequestsView)
def list_partner_requests(
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
):
    """
    List partner requests and current partners.
    """
    return StudentService(db).list_partner_requests(student)


@router.post("/partner-requests/{request_id}/respond", response_model=RequestOutcome)
def respond_partner_request(
    request_id: int,
    request: RequestRespond,
    student: CurrentStudent,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Accept or reject a received partner request.
    """
    return StudentService(db).respond_partner_request(student, request_id, request.action)
