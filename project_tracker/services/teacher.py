"""Teacher (incharge) service."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from project_tracker.core.exceptions import AlreadyResolvedError, NotFoundError, ValidationError
from project_tracker.models.base import as_utc
from project_tracker.models.project import Project, ProjectStatus
from project_tracker.models.request import RequestStatus
from project_tracker.models.student import Student
from project_tracker.models.teacher import Teacher
from project_tracker.schemas.profile import TeacherProfile
from project_tracker.schemas.project import (
    PaginatedUpdateFeed,
    ProjectCreate,
    ProjectDetail,
    ProjectListItem,
    ProjectUpdate,
    TargetInput,
    TargetsResult,
    TeacherStats,
    UpdateFeedItem,
    UpdateResponse,
)
from project_tracker.schemas.request import InchargeRequestRespond, RequestOutcome, TeacherInchargeRequestResponse
from project_tracker.schemas.teacher import TeacherProfileUpdate
from project_tracker.services.coordinator import DualWriteCoordinator, LedgerSide
from project_tracker.services.ledger import student_incharge_ledger, teacher_incharge_ledger
from project_tracker.services.materializer import ProjectMaterializer
from project_tracker.services.project import ProjectService
from project_tracker.services.store import DocumentStore

logger = logging.getLogger(__name__)


class TeacherService:
    """Operations performed by a signed-in teacher."""

    def __init__(self, db: Session):
        self.db = db
        self.store = DocumentStore(db)
        self.coordinator = DualWriteCoordinator(self.store)
        self.materializer = ProjectMaterializer(db)
        self.projects = ProjectService(db)

    # Profile

    def get_profile(self, teacher: Teacher) -> TeacherProfile:
        return TeacherProfile(
            id=teacher.id,
            username=teacher.username,
            email=teacher.email,
            assigned_projects=[self.projects.to_list_item(p) for p in teacher.assigned_projects],
        )

    def update_profile(self, teacher: Teacher, request: TeacherProfileUpdate) -> TeacherProfile:
        """Update username and email; email stays unique across teachers."""
        if request.email and request.email != teacher.email:
            taken = self.db.execute(
                select(Teacher).where(Teacher.email == request.email, Teacher.id != teacher.id)
            ).scalar_one_or_none()
            if taken:
                raise ValidationError("Email already taken by another teacher")
            teacher.email = request.email
        if request.username:
            teacher.username = request.username

        self.db.flush()
        return self.get_profile(teacher)

    # Projects

    def list_projects(self, teacher: Teacher, search: str | None = None) -> list[ProjectListItem]:
        """Projects under this teacher, most recently updated first."""
        projects = list(teacher.assigned_projects)
        if search:
            needle = search.lower()
            projects = [
                p
                for p in projects
                if needle in p.name.lower() or any(needle in s.username.lower() for s in p.students)
            ]
        projects.sort(key=lambda p: as_utc(p.updated_at), reverse=True)
        return [self.projects.to_list_item(p) for p in projects]

    def get_project_details(self, teacher: Teacher, project_id: int) -> ProjectDetail:
        project = self.projects.get_teacher_project(teacher, project_id)
        return self.projects.to_detail(project)

    def create_project(self, teacher: Teacher, request: ProjectCreate) -> ProjectDetail:
        """Create an empty project with this teacher as incharge."""
        project = Project(
            name=request.name,
            description=request.description,
            incharge=teacher,
            status=ProjectStatus.ACTIVE,
            progress=0,
        )
        self.db.add(project)
        self.db.flush()
        logger.info("%r created %r", teacher, project)
        return self.projects.to_detail(project)

    def update_project(self, teacher: Teacher, project_id: int, request: ProjectUpdate) -> ProjectDetail:
        project = self.projects.get_teacher_project(teacher, project_id)

        update_data = request.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in update_data.items():
            setattr(project, field, value)

        self.db.flush()
        return self.projects.to_detail(project)

    def project_updates(self, teacher: Teacher, project_id: int) -> list[UpdateResponse]:
        project = self.projects.get_teacher_project(teacher, project_id)
        return [UpdateResponse.model_validate(u) for u in self.projects.updates_newest_first(project)]

    def replace_targets(self, teacher: Teacher, project_id: int, targets: list[TargetInput]) -> TargetsResult:
        project = self.projects.get_teacher_project(teacher, project_id)
        return self.projects.replace_targets(project, targets)

    def set_target_completed(
        self,
        teacher: Teacher,
        project_id: int,
        target_id: int,
        completed: bool,
    ) -> TargetsResult:
        project = self.projects.get_teacher_project(teacher, project_id)
        return self.projects.set_target_completed(project, target_id, completed)

    def comment_on_update(self, teacher: Teacher, project_id: int, update_id: int, comment: str) -> UpdateResponse:
        project = self.projects.get_teacher_project(teacher, project_id)
        update = self.projects.comment_on_update(project, update_id, comment)
        return UpdateResponse.model_validate(update)

    def latest_updates(self, teacher: Teacher, page: int = 1, page_size: int = 10) -> PaginatedUpdateFeed:
        """Updates across all of the teacher's projects, newest first."""
        feed: list[UpdateFeedItem] = []
        for project in teacher.assigned_projects:
            for update in project.updates:
                feed.append(
                    UpdateFeedItem(
                        **UpdateResponse.model_validate(update).model_dump(),
                        project_id=project.id,
                        project_name=project.name,
                    )
                )
        feed.sort(key=lambda item: as_utc(item.timestamp), reverse=True)

        start = (page - 1) * page_size
        return PaginatedUpdateFeed.build(feed[start:start + page_size], len(feed), page, page_size)

    def stats(self, teacher: Teacher) -> TeacherStats:
        projects = list(teacher.assigned_projects)
        active_students = {s.id for p in projects for s in p.students}
        recent = sorted(projects, key=lambda p: as_utc(p.created_at), reverse=True)[:5]
        return TeacherStats(
            total_projects=len(projects),
            completed_projects=sum(1 for p in projects if p.status == ProjectStatus.COMPLETED),
            active_students=len(active_students),
            recent_projects=[self.projects.to_summary(p) for p in recent],
        )

    # Incharge requests

    def list_incharge_requests(
        self,
        teacher: Teacher,
        pending_only: bool = False,
    ) -> list[TeacherInchargeRequestResponse]:
        self.coordinator.repair(
            teacher,
            teacher_incharge_ledger,
            lambda student_id: self.store.find(Student, student_id),
            student_incharge_ledger,
        )
        entries = teacher.incharge_requests
        if pending_only:
            entries = [e for e in entries if e.is_pending]
        return [TeacherInchargeRequestResponse.model_validate(e) for e in entries]

    def respond_incharge_request(
        self,
        teacher: Teacher,
        request_id: int,
        request: InchargeRequestRespond,
    ) -> RequestOutcome:
        """Accept or reject an incharge request.

        Accepting attaches the student (and their partners) to the supplied
        project, or to a new project with this teacher as incharge.
        """
        entry = teacher_incharge_ledger.get(teacher, request_id)
        if not entry.is_pending:
            raise AlreadyResolvedError(entry.id, entry.status.value)

        student = self.store.find(Student, entry.counterpart_id)
        if student is None:
            raise NotFoundError("Student", str(entry.counterpart_id))

        outcome = request.action.status

        def record_response() -> None:
            entry.response = request.message
            if outcome == RequestStatus.ACCEPTED:
                entry.project = self.materializer.for_incharge_acceptance(
                    teacher, student, request.project_id
                )

        result = self.coordinator.resolve_pair(
            LedgerSide(teacher, teacher_incharge_ledger, student.id, apply=record_response),
            request_id,
            LedgerSide(student, student_incharge_ledger, teacher.id),
            outcome,
        )
        return RequestOutcome(
            message=f"Request {outcome.value} successfully",
            request_id=result.entry.id,
            status=result.entry.status,
            project_id=entry.project_id,
            warnings=result.warnings,
        )
