"""Administrator service: overview lists and explicit project management."""

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from project_tracker.core.exceptions import NotFoundError
from project_tracker.models.project import Project, ProjectStatus
from project_tracker.models.request import TeacherInchargeRequest
from project_tracker.models.student import Student
from project_tracker.models.teacher import Teacher
from project_tracker.schemas.project import (
    AdminProjectCreate,
    DashboardStats,
    PaginatedProjectResponse,
    ProjectDetail,
)
from project_tracker.schemas.student import PaginatedStudentResponse, StudentFilter, StudentListItem
from project_tracker.schemas.teacher import PaginatedTeacherResponse, TeacherListItem
from project_tracker.services.materializer import ProjectMaterializer, partner_group
from project_tracker.services.project import ProjectService
from project_tracker.services.store import DocumentStore

logger = logging.getLogger(__name__)


class AdminService:
    """Operations available to the administrator."""

    def __init__(self, db: Session):
        self.db = db
        self.store = DocumentStore(db)
        self.materializer = ProjectMaterializer(db)
        self.projects = ProjectService(db)

    def dashboard_stats(self) -> DashboardStats:
        total_students = self._count(select(Student))
        with_project = self._count(select(Student).where(Student.project_id.is_not(None)))

        status_rows = self.db.execute(
            select(Project.status, func.count(Project.id)).group_by(Project.status)
        ).all()
        projects_by_status = {status.value: 0 for status in ProjectStatus}
        for status, count in status_rows:
            projects_by_status[status.value] = count

        average = self.db.execute(select(func.avg(Project.progress))).scalar()

        return DashboardStats(
            total_students=total_students,
            total_teachers=self._count(select(Teacher)),
            total_projects=sum(projects_by_status.values()),
            students_with_project=with_project,
            students_without_project=total_students - with_project,
            projects_by_status=projects_by_status,
            average_progress=round(float(average or 0), 1),
        )

    # Lists

    def list_projects(
        self,
        search: str | None = None,
        status: ProjectStatus | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> PaginatedProjectResponse:
        """List projects with filtering and pagination."""
        query = select(Project)
        if search:
            search_term = f"%{search}%"
            member_match = select(Student.id).where(
                Student.project_id == Project.id,
                Student.username.ilike(search_term),
            )
            query = query.where(or_(Project.name.ilike(search_term), member_match.exists()))
        if status:
            query = query.where(Project.status == status)

        total = self._count(query)

        query = query.order_by(Project.updated_at.desc(), Project.id.desc())
        query = query.offset((page - 1) * page_size).limit(page_size)
        projects = self.db.execute(query).scalars().all()

        return PaginatedProjectResponse.build(
            [self.projects.to_list_item(p) for p in projects], total, page, page_size
        )

    def list_teachers(self, search: str | None = None, page: int = 1, page_size: int = 10) -> PaginatedTeacherResponse:
        query = select(Teacher)
        if search:
            search_term = f"%{search}%"
            query = query.where(or_(Teacher.username.ilike(search_term), Teacher.email.ilike(search_term)))

        total = self._count(query)

        query = query.order_by(Teacher.created_at.desc(), Teacher.id.desc())
        query = query.offset((page - 1) * page_size).limit(page_size)
        teachers = self.db.execute(query).scalars().all()

        items = [
            TeacherListItem(
                id=t.id,
                username=t.username,
                email=t.email,
                project_count=len(t.assigned_projects),
                created_at=t.created_at,
            )
            for t in teachers
        ]
        return PaginatedTeacherResponse.build(items, total, page, page_size)

    def list_students(
        self,
        filters: StudentFilter | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> PaginatedStudentResponse:
        """List students with filtering and pagination."""
        query = select(Student)

        if filters:
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        Student.roll_no.ilike(search_term),
                        Student.username.ilike(search_term),
                    )
                )
            if filters.department:
                query = query.where(Student.department == filters.department)
            if filters.has_project is True:
                query = query.where(Student.project_id.is_not(None))
            elif filters.has_project is False:
                query = query.where(Student.project_id.is_(None))

        total = self._count(query)

        query = query.order_by(Student.created_at.desc(), Student.id.desc())
        query = query.offset((page - 1) * page_size).limit(page_size)
        students = self.db.execute(query).scalars().all()

        items = [
            StudentListItem(
                id=s.id,
                roll_no=s.roll_no,
                username=s.username,
                department=s.department,
                class_name=s.class_name,
                project_id=s.project_id,
                project_name=s.project.name if s.project else None,
                has_project=s.project_id is not None,
                partner_count=len(s.partners),
                created_at=s.created_at,
            )
            for s in students
        ]
        return PaginatedStudentResponse.build(items, total, page, page_size)

    # Project management

    def create_project(self, request: AdminProjectCreate) -> ProjectDetail:
        """Create a project with an incharge and its first members.

        Listed students bring their whole partner group along.
        """
        teacher = self.store.load(Teacher, request.teacher_id)
        members = partner_group(*self._load_students(request.student_ids))
        self.materializer.ensure_attachable(members, project=None)

        project = Project(
            name=request.name,
            description=request.description,
            incharge=teacher,
            status=ProjectStatus.ACTIVE,
            progress=0,
        )
        self.db.add(project)
        self.materializer.attach(members, project)
        self.db.flush()

        logger.info("Administrator created %r with %d students", project, len(members))
        return self.projects.to_detail(project)

    def assign_incharge(self, project_id: int, teacher_id: int) -> ProjectDetail:
        teacher = self.store.load(Teacher, teacher_id)
        project = self.projects.get_project(project_id)

        previous = project.incharge
        project.incharge = teacher
        self.db.flush()

        logger.info("Incharge of %r changed from %r to %r", project, previous, teacher)
        return self.projects.to_detail(project)

    def update_project_students(self, project_id: int, student_ids: list[int]) -> ProjectDetail:
        """Replace the project's members, keeping partner groups together."""
        project = self.projects.get_project(project_id)
        members = partner_group(*self._load_students(student_ids))
        self.materializer.ensure_attachable(members, project)

        keep = {s.id for s in members}
        for current in list(project.students):
            if current.id not in keep:
                current.project = None
        self.materializer.attach(members, project)
        self.db.flush()

        return self.projects.to_detail(project)

    def delete_project(self, project_id: int) -> None:
        """Delete a project and detach everything that points at it."""
        project = self.projects.get_project(project_id)

        for member in list(project.students):
            member.project = None
        entries = self.store.query(TeacherInchargeRequest, TeacherInchargeRequest.project_id == project.id)
        for entry in entries:
            entry.project = None
        teacher = project.incharge

        self.db.delete(project)
        self.db.flush()
        self.db.expire(teacher, ["assigned_projects"])
        logger.info("Administrator deleted %r", project)

    def _load_students(self, student_ids: list[int]) -> list[Student]:
        unique_ids = list(dict.fromkeys(student_ids))
        students = self.store.query(Student, Student.id.in_(unique_ids)) if unique_ids else []
        if len(students) != len(unique_ids):
            raise NotFoundError("Student", message="One or more students not found")
        by_id = {s.id: s for s in students}
        return [by_id[i] for i in unique_ids]

    def _count(self, query) -> int:
        return self.db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0
