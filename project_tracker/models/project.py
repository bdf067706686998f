"""Project, target and progress update models."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from project_tracker.core.database import Base
from project_tracker.models.base import IDMixin, TimestampMixin, utcnow

if TYPE_CHECKING:
    from project_tracker.models.student import Student
    from project_tracker.models.teacher import Teacher


class ProjectStatus(str, enum.Enum):
    """Project status enumeration."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"


class Project(Base, IDMixin, TimestampMixin):
    """A student project supervised by one incharge."""

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    incharge_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("teachers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus),
        default=ProjectStatus.ACTIVE,
        nullable=False,
    )
    # Derived from targets; only written by services.progress.recompute
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    incharge: Mapped["Teacher"] = relationship(
        "Teacher",
        back_populates="assigned_projects",
    )
    students: Mapped[list["Student"]] = relationship(
        "Student",
        back_populates="project",
        order_by="Student.id",
    )
    targets: Mapped[list["ProjectTarget"]] = relationship(
        "ProjectTarget",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectTarget.position",
        lazy="selectin",
    )
    updates: Mapped[list["ProjectUpdate"]] = relationship(
        "ProjectUpdate",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectUpdate.timestamp",
        lazy="selectin",
    )

    @property
    def student_ids(self) -> list[int]:
        return [student.id for student in self.students]

    @property
    def completed_target_count(self) -> int:
        return sum(1 for target in self.targets if target.completed)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name={self.name})>"


class ProjectTarget(Base, IDMixin):
    """A milestone on a project; completed targets drive progress."""

    __tablename__ = "project_targets"

    project_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    project: Mapped["Project"] = relationship("Project", back_populates="targets")

    def __repr__(self) -> str:
        return f"<ProjectTarget(id={self.id}, title={self.title}, completed={self.completed})>"


class ProjectUpdate(Base, IDMixin):
    """A daily progress update posted by a student."""

    __tablename__ = "project_updates"

    project_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    report: Mapped[str | None] = mapped_column(Text, nullable=True)
    screenshots: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
    last_edited: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    incharge_comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    project: Mapped["Project"] = relationship("Project", back_populates="updates")
    student: Mapped["Student | None"] = relationship("Student")

    def __repr__(self) -> str:
        return f"<ProjectUpdate(id={self.id}, project_id={self.project_id})>"
