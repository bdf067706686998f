"""Student model and the mirrored partner link table."""

from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from project_tracker.core.database import Base
from project_tracker.models.base import IDMixin, TimestampMixin, utcnow

if TYPE_CHECKING:
    from project_tracker.models.project import Project
    from project_tracker.models.request import PartnerRequest, StudentInchargeRequest


# One row per direction: (A, B) lives with A, (B, A) lives with B.
student_partners = Table(
    "student_partners",
    Base.metadata,
    Column(
        "student_id",
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "partner_id",
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("created_at", DateTime(timezone=True), default=utcnow, nullable=False),
)


class Student(Base, IDMixin, TimestampMixin):
    """Student account, project membership and request ledgers."""

    __tablename__ = "students"

    roll_no: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    class_name: Mapped[str] = mapped_column(String(50), nullable=False)  # 'class' is reserved keyword
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    project_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Relationships
    project: Mapped["Project | None"] = relationship(
        "Project",
        back_populates="students",
    )
    partners: Mapped[list["Student"]] = relationship(
        "Student",
        secondary=student_partners,
        primaryjoin=lambda: Student.id == student_partners.c.student_id,
        secondaryjoin=lambda: Student.id == student_partners.c.partner_id,
        order_by=lambda: student_partners.c.created_at,
    )
    partner_requests: Mapped[list["PartnerRequest"]] = relationship(
        "PartnerRequest",
        foreign_keys="PartnerRequest.student_id",
        back_populates="student",
        cascade="all, delete-orphan",
        order_by="PartnerRequest.id",
    )
    incharge_requests: Mapped[list["StudentInchargeRequest"]] = relationship(
        "StudentInchargeRequest",
        back_populates="student",
        cascade="all, delete-orphan",
        order_by="StudentInchargeRequest.id",
    )

    @property
    def partner_ids(self) -> list[int]:
        return [partner.id for partner in self.partners]

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, roll_no={self.roll_no})>"
