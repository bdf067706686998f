"""Student service: profile, project work and the student side of requests."""

import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from project_tracker.core.config import settings
from project_tracker.core.exceptions import (
    AlreadyResolvedError,
    CapacityExceededError,
    DuplicateRequestError,
    NotFoundError,
    ValidationError,
)
from project_tracker.models.request import RequestDirection, RequestStatus
from project_tracker.models.student import Student
from project_tracker.models.teacher import Teacher
from project_tracker.schemas.profile import StudentProfile
from project_tracker.schemas.project import ProjectProgress, UpdateCreate, UpdateEdit, UpdateResponse
from project_tracker.schemas.request import (
    InchargeRequestCreate,
    PartnerRequestCreate,
    PartnerRequestResponse,
    PartnerRequestsView,
    RequestDecision,
    RequestOutcome,
    StudentInchargeRequestResponse,
)
from project_tracker.schemas.student import AvailableStudent, StudentBrief
from project_tracker.schemas.teacher import TeacherListItem
from project_tracker.services.coordinator import DualWriteCoordinator, LedgerSide
from project_tracker.services.ledger import (
    partner_ledger,
    student_incharge_ledger,
    teacher_incharge_ledger,
)
from project_tracker.services.materializer import ProjectMaterializer
from project_tracker.services.project import ProjectService
from project_tracker.services.store import DocumentStore

logger = logging.getLogger(__name__)

AVAILABLE_STUDENTS_LIMIT = 20


class StudentService:
    """Operations performed by a signed-in student."""

    def __init__(self, db: Session):
        self.db = db
        self.store = DocumentStore(db)
        self.coordinator = DualWriteCoordinator(self.store)
        self.materializer = ProjectMaterializer(db)
        self.projects = ProjectService(db)

    # Profile and lookups

    def get_profile(self, student: Student) -> StudentProfile:
        return StudentProfile.model_validate(student)

    def list_teachers(self) -> list[TeacherListItem]:
        """All teachers with the number of projects they supervise."""
        teachers = self.store.query(Teacher, order_by=Teacher.username)
        return [
            TeacherListItem(
                id=teacher.id,
                username=teacher.username,
                email=teacher.email,
                project_count=len(teacher.assigned_projects),
                created_at=teacher.created_at,
            )
            for teacher in teachers
        ]

    def available_students(self, student: Student, search: str | None = None) -> list[AvailableStudent]:
        """Other students who can still take a partner."""
        stmt = select(Student).where(Student.id != student.id)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Student.username.ilike(pattern), Student.roll_no.ilike(pattern)))
        stmt = stmt.order_by(Student.username)

        available: list[AvailableStudent] = []
        for candidate in self.db.execute(stmt).scalars():
            if len(candidate.partners) >= settings.MAX_PARTNERS:
                continue
            available.append(
                AvailableStudent(
                    id=candidate.id,
                    roll_no=candidate.roll_no,
                    username=candidate.username,
                    department=candidate.department,
                    class_name=candidate.class_name,
                    partner_count=len(candidate.partners),
                )
            )
            if len(available) >= AVAILABLE_STUDENTS_LIMIT:
                break
        return available

    # Project work

    def get_progress(self, student: Student) -> ProjectProgress:
        project = self.projects.get_student_project(student)
        return self.projects.to_progress(project)

    def daily_updates(self, student: Student) -> list[UpdateResponse]:
        """Updates on the student's project, newest first."""
        project = self.projects.get_student_project(student)
        return [UpdateResponse.model_validate(u) for u in self.projects.updates_newest_first(project)]

    def post_update(self, student: Student, request: UpdateCreate) -> UpdateResponse:
        project = self.projects.get_student_project(student)
        update = self.projects.add_update(project, student, request)
        logger.info("%r posted update %s on %r", student, update.id, project)
        return UpdateResponse.model_validate(update)

    def edit_update(self, student: Student, update_id: int, request: UpdateEdit) -> UpdateResponse:
        project = self.projects.get_student_project(student)
        update = self.projects.edit_update(project, student, update_id, request)
        return UpdateResponse.model_validate(update)

    # Incharge requests

    def send_incharge_request(self, student: Student, request: InchargeRequestCreate) -> RequestOutcome:
        """Ask a teacher to become the student's incharge."""
        teacher = self.store.load(Teacher, request.teacher_id)
        if student.project_id is not None:
            raise ValidationError("You already have a project assigned")

        result = self.coordinator.create_pair(
            LedgerSide(student, student_incharge_ledger, teacher.id),
            LedgerSide(teacher, teacher_incharge_ledger, student.id),
        )
        return RequestOutcome(
            message="Incharge request sent successfully",
            request_id=result.entry.id,
            status=result.entry.status,
        )

    def list_incharge_requests(self, student: Student) -> list[StudentInchargeRequestResponse]:
        self.coordinator.repair(
            student,
            student_incharge_ledger,
            lambda teacher_id: self.store.find(Teacher, teacher_id),
            teacher_incharge_ledger,
        )
        return [StudentInchargeRequestResponse.model_validate(e) for e in student.incharge_requests]

    # Partner requests

    def send_partner_request(self, student: Student, request: PartnerRequestCreate) -> RequestOutcome:
        """Send a partner request by student id or roll number."""
        partner = self._find_student(request)
        if partner.id == student.id:
            raise ValidationError("You cannot send a partner request to yourself")
        if partner.id in student.partner_ids:
            raise ValidationError("Already partners with this student")
        self._check_capacity(student, "You already have the maximum number of partners")
        if (
            student.project_id is not None
            and partner.project_id is not None
            and student.project_id != partner.project_id
        ):
            raise ValidationError("Students in different projects cannot become partners")
        if partner_ledger.find_pending(student, partner.id, RequestDirection.RECEIVED):
            raise DuplicateRequestError("This student has already sent you a partner request")

        result = self.coordinator.create_pair(
            LedgerSide(student, partner_ledger, partner.id),
            LedgerSide(partner, partner_ledger, student.id),
            request.message,
        )
        return RequestOutcome(
            message="Partner request sent successfully",
            request_id=result.entry.id,
            status=result.entry.status,
        )

    def respond_partner_request(
        self,
        student: Student,
        request_id: int,
        decision: RequestDecision,
    ) -> RequestOutcome:
        """Accept or reject a partner request the student received."""
        entry = partner_ledger.get(student, request_id)
        if entry.direction != RequestDirection.RECEIVED:
            raise ValidationError("Only received requests can be answered")
        if not entry.is_pending:
            raise AlreadyResolvedError(entry.id, entry.status.value)

        partner = self.store.find(Student, entry.counterpart_id)
        if partner is None:
            raise NotFoundError("Student", str(entry.counterpart_id), message="Partner not found")

        outcome = decision.status
        link_primary = link_mirror = None
        if outcome == RequestStatus.ACCEPTED:
            # Counts may have changed since the request was sent
            self._check_capacity(student, "Cannot accept more partners. Maximum limit reached.")
            self._check_capacity(partner, "Partner already has the maximum number of partners")

            def link_primary() -> None:
                student.partners.append(partner)
                self.materializer.for_partner_acceptance(student, partner)

            def link_mirror() -> None:
                if student not in partner.partners:
                    partner.partners.append(student)

        result = self.coordinator.resolve_pair(
            LedgerSide(student, partner_ledger, partner.id, apply=link_primary),
            request_id,
            LedgerSide(partner, partner_ledger, student.id, apply=link_mirror),
            outcome,
        )
        return RequestOutcome(
            message=f"Partner request {decision.value}ed successfully",
            request_id=result.entry.id,
            status=result.entry.status,
            project_id=student.project_id,
            warnings=result.warnings,
        )

    def list_partner_requests(self, student: Student) -> PartnerRequestsView:
        self.coordinator.repair(
            student,
            partner_ledger,
            lambda partner_id: self.store.find(Student, partner_id),
            partner_ledger,
            on_accepted=self._restore_partner_link,
        )
        return PartnerRequestsView(
            requests=[PartnerRequestResponse.model_validate(e) for e in student.partner_requests],
            partners=[StudentBrief.model_validate(p) for p in student.partners],
        )

    def _find_student(self, request: PartnerRequestCreate) -> Student:
        if request.partner_id is not None:
            return self.store.load(Student, request.partner_id, resource="Student")
        partner = self.db.execute(
            select(Student).where(Student.roll_no == request.roll_no)
        ).scalar_one_or_none()
        if partner is None:
            raise NotFoundError("Student", request.roll_no)
        return partner

    @staticmethod
    def _check_capacity(student: Student, message: str) -> None:
        if len(student.partners) >= settings.MAX_PARTNERS:
            raise CapacityExceededError(message, student.id, settings.MAX_PARTNERS)

    @staticmethod
    def _restore_partner_link(student: Student, partner: Student) -> None:
        if partner not in student.partners:
            student.partners.append(partner)
            logger.info("Restored partner link %r -> %r", student, partner)
