"""Project materializer: decides which project a relationship attaches to."""

import logging
from collections import deque
from collections.abc import Iterable

from sqlalchemy.orm import Session

from project_tracker.core.exceptions import AlreadyAssignedError, NotFoundError
from project_tracker.models.project import Project, ProjectStatus
from project_tracker.models.student import Student
from project_tracker.models.teacher import Teacher

logger = logging.getLogger(__name__)


def partner_group(*students: Student) -> list[Student]:
    """Every student reachable from the given ones through partner links.

    Partner links can chain (A-B, B-C), so the group is the transitive
    closure, walked breadth first. Order is discovery order.
    """
    seen: set[int] = set()
    group: list[Student] = []
    queue = deque(students)
    while queue:
        member = queue.popleft()
        key = id(member) if member.id is None else member.id
        if key in seen:
            continue
        seen.add(key)
        group.append(member)
        queue.extend(member.partners)
    return group


class ProjectMaterializer:
    """Creates projects and attaches students to them.

    Membership is stored on the student, so attaching a student also lists
    them in ``project.students``.
    """

    def __init__(self, db: Session):
        self.db = db

    def ensure_attachable(self, students: Iterable[Student], project: Project | None) -> None:
        for student in students:
            current = student.project
            if current is not None and current is not project:
                raise AlreadyAssignedError(student.id, current.id, student.roll_no)

    def attach(self, students: Iterable[Student], project: Project) -> None:
        """Attach every student or none of them."""
        students = list(students)
        self.ensure_attachable(students, project)
        for student in students:
            if student.project is not project:
                student.project = project
                logger.info("Attached %r to %r", student, project)

    def for_incharge_acceptance(
        self,
        teacher: Teacher,
        student: Student,
        project_id: int | None = None,
    ) -> Project:
        """Attach the student's whole partner group to an existing or a new project."""
        group = partner_group(student)
        if project_id is not None:
            project = self.db.get(Project, project_id)
            if project is None or project.incharge_id != teacher.id:
                raise NotFoundError(
                    "Project",
                    str(project_id),
                    message="Project not found or not assigned to you",
                )
        else:
            self.ensure_attachable(group, project=None)
            project = Project(
                name=f"Project for {student.username}",
                description="Project assigned after incharge request",
                incharge=teacher,
                status=ProjectStatus.ACTIVE,
                progress=0,
            )
            self.db.add(project)
            logger.info("Created project for %r with incharge %r", student, teacher)

        self.attach(group, project)
        return project

    def for_partner_acceptance(self, first: Student, second: Student) -> Project | None:
        """Share whichever project the joined group already has with all of it."""
        group = partner_group(first, second)
        project = None
        for member in group:
            if member.project is None or member.project is project:
                continue
            if project is not None:
                raise AlreadyAssignedError(member.id, member.project.id, member.roll_no)
            project = member.project

        if project is None:
            return None

        self.attach(group, project)
        return project
