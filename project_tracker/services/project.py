"""Project targets, updates and comments."""

import logging

from sqlalchemy.orm import Session

from project_tracker.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from project_tracker.models.base import as_utc, utcnow
from project_tracker.models.project import Project, ProjectTarget, ProjectUpdate
from project_tracker.models.student import Student
from project_tracker.models.teacher import Teacher
from project_tracker.schemas.project import (
    ProjectDetail,
    ProjectListItem,
    ProjectProgress,
    ProjectSummary,
    TargetInput,
    TargetResponse,
    TargetsResult,
    UpdateCreate,
    UpdateEdit,
    UpdateResponse,
)
from project_tracker.schemas.student import StudentBrief
from project_tracker.schemas.teacher import TeacherBrief
from project_tracker.services.progress import recompute
from project_tracker.services.store import DocumentStore

logger = logging.getLogger(__name__)


class ProjectService:
    """Project content management shared by students, teachers and admins."""

    def __init__(self, db: Session):
        self.db = db
        self.store = DocumentStore(db)

    def get_project(self, project_id: int) -> Project:
        """Get project by ID."""
        return self.store.load(Project, project_id)

    def get_teacher_project(self, teacher: Teacher, project_id: int) -> Project:
        """Get a project the teacher is incharge of."""
        project = self.store.find(Project, project_id)
        if project is None or project.incharge_id != teacher.id:
            raise NotFoundError(
                "Project",
                str(project_id),
                message="Project not found or not assigned to you",
            )
        return project

    def get_student_project(self, student: Student) -> Project:
        """Get the student's project."""
        if student.project is None:
            raise NotFoundError(
                "Project",
                message="No project assigned. Please request an incharge first.",
            )
        return student.project

    # Targets

    def replace_targets(self, project: Project, targets: list[TargetInput]) -> TargetsResult:
        """Replace all targets and recompute progress."""
        now = utcnow()
        project.targets = [
            ProjectTarget(
                position=position,
                title=target.title,
                description=target.description or "",
                completed=target.completed,
                completed_at=now if target.completed else None,
                created_at=now,
            )
            for position, target in enumerate(targets)
        ]
        recompute(project)
        self.db.flush()
        logger.info("Replaced targets on %r: %d targets, progress %d", project, len(targets), project.progress)
        return self.targets_result(project, "Targets updated successfully")

    def set_target_completed(self, project: Project, target_id: int, completed: bool) -> TargetsResult:
        """Toggle one target and recompute progress."""
        target = next((t for t in project.targets if t.id == target_id), None)
        if target is None:
            raise NotFoundError("Target", str(target_id))

        if completed and not target.completed:
            target.completed_at = utcnow()
        elif not completed:
            target.completed_at = None
        target.completed = completed

        recompute(project)
        self.db.flush()
        return self.targets_result(project, "Target updated successfully")

    # Updates

    def add_update(self, project: Project, student: Student, request: UpdateCreate) -> ProjectUpdate:
        """Post a daily update, optionally renaming the project."""
        if request.name:
            project.name = request.name

        now = utcnow()
        update = ProjectUpdate(
            student=student,
            description=request.description,
            report=request.report,
            screenshots=list(request.screenshots),
            timestamp=now,
            last_edited=now,
        )
        project.updates.append(update)
        self.db.flush()
        return update

    def edit_update(
        self,
        project: Project,
        student: Student,
        update_id: int,
        request: UpdateEdit,
    ) -> ProjectUpdate:
        """Edit an update; only its author may do so."""
        update = self._get_update(project, update_id)
        if update.student_id != student.id:
            raise PermissionDeniedError("You can only edit your own updates")

        update_data = request.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in update_data.items():
            setattr(update, field, value)
        update.last_edited = utcnow()

        self.db.flush()
        return update

    def comment_on_update(self, project: Project, update_id: int, comment: str) -> ProjectUpdate:
        """Set the incharge comment on an update."""
        comment = (comment or "").strip()
        if not comment:
            raise ValidationError("Comment cannot be empty")

        update = self._get_update(project, update_id)
        update.incharge_comment = comment
        update.last_edited = utcnow()
        self.db.flush()
        return update

    def updates_newest_first(self, project: Project) -> list[ProjectUpdate]:
        return sorted(project.updates, key=lambda u: as_utc(u.timestamp), reverse=True)

    def _get_update(self, project: Project, update_id: int) -> ProjectUpdate:
        update = next((u for u in project.updates if u.id == update_id), None)
        if update is None:
            raise NotFoundError("Update", str(update_id))
        return update

    # Response builders

    @staticmethod
    def to_summary(project: Project) -> ProjectSummary:
        return ProjectSummary.model_validate(project)

    @staticmethod
    def to_list_item(project: Project) -> ProjectListItem:
        return ProjectListItem(
            id=project.id,
            name=project.name,
            incharge=TeacherBrief.model_validate(project.incharge),
            students=[StudentBrief.model_validate(s) for s in project.students],
            progress=project.progress,
            status=project.status,
            update_count=len(project.updates),
            target_count=len(project.targets),
            completed_targets=project.completed_target_count,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )

    def to_detail(self, project: Project) -> ProjectDetail:
        return ProjectDetail(
            id=project.id,
            name=project.name,
            description=project.description,
            incharge=TeacherBrief.model_validate(project.incharge),
            students=[StudentBrief.model_validate(s) for s in project.students],
            targets=[TargetResponse.model_validate(t) for t in project.targets],
            updates=[UpdateResponse.model_validate(u) for u in self.updates_newest_first(project)],
            status=project.status,
            progress=project.progress,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )

    @staticmethod
    def to_progress(project: Project) -> ProjectProgress:
        return ProjectProgress.model_validate(project)

    @staticmethod
    def targets_result(project: Project, message: str) -> TargetsResult:
        return TargetsResult(
            message=message,
            targets=[TargetResponse.model_validate(t) for t in project.targets],
            progress=project.progress,
        )
