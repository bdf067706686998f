"""Teacher (incharge) model."""

from typing import TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from project_tracker.core.database import Base
from project_tracker.models.base import IDMixin, TimestampMixin

if TYPE_CHECKING:
    from project_tracker.models.project import Project
    from project_tracker.models.request import TeacherInchargeRequest


class Teacher(Base, IDMixin, TimestampMixin):
    """Teacher account acting as incharge for student projects."""

    __tablename__ = "teachers"

    username: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    # Relationships
    assigned_projects: Mapped[list["Project"]] = relationship(
        "Project",
        back_populates="incharge",
        order_by="Project.id",
    )
    incharge_requests: Mapped[list["TeacherInchargeRequest"]] = relationship(
        "TeacherInchargeRequest",
        back_populates="teacher",
        cascade="all, delete-orphan",
        order_by="TeacherInchargeRequest.id",
    )

    def __repr__(self) -> str:
        return f"<Teacher(id={self.id}, email={self.email})>"
