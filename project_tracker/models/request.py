"""Request ledger entries for partner and incharge requests.

Each side of a relationship keeps its own copy of a request. The two copies
have independent ids and are matched by counterpart and direction.
"""

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from project_tracker.core.database import Base
from project_tracker.models.base import IDMixin, utcnow

if TYPE_CHECKING:
    from project_tracker.models.project import Project
    from project_tracker.models.student import Student
    from project_tracker.models.teacher import Teacher


class RequestStatus(str, enum.Enum):
    """Request status. Moves from pending to a final state exactly once."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RequestDirection(str, enum.Enum):
    """Whether the holder of the entry sent or received the request."""

    SENT = "sent"
    RECEIVED = "received"

    @property
    def opposite(self) -> "RequestDirection":
        if self is RequestDirection.SENT:
            return RequestDirection.RECEIVED
        return RequestDirection.SENT


class RequestEntryMixin(IDMixin):
    """Columns shared by every ledger entry.

    Concrete entries also define ``counterpart_id`` pointing at the other party.
    """

    direction: Mapped[RequestDirection] = mapped_column(
        Enum(RequestDirection),
        nullable=False,
    )
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus),
        default=RequestStatus.PENDING,
        nullable=False,
        index=True,
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


class PartnerRequest(Base, RequestEntryMixin):
    """A partner request as recorded on one student."""

    __tablename__ = "partner_requests"

    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    counterpart_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    student: Mapped["Student"] = relationship(
        "Student",
        foreign_keys=[student_id],
        back_populates="partner_requests",
    )
    counterpart: Mapped["Student"] = relationship("Student", foreign_keys=[counterpart_id])

    def __repr__(self) -> str:
        return (
            f"<PartnerRequest(id={self.id}, student_id={self.student_id}, "
            f"counterpart_id={self.counterpart_id}, {self.direction.value}, {self.status.value})>"
        )


class StudentInchargeRequest(Base, RequestEntryMixin):
    """An incharge request as recorded on the requesting student."""

    __tablename__ = "student_incharge_requests"

    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    counterpart_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("teachers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    student: Mapped["Student"] = relationship("Student", back_populates="incharge_requests")
    counterpart: Mapped["Teacher"] = relationship("Teacher")

    def __repr__(self) -> str:
        return f"<StudentInchargeRequest(id={self.id}, teacher_id={self.counterpart_id}, {self.status.value})>"


class TeacherInchargeRequest(Base, RequestEntryMixin):
    """An incharge request as recorded on the teacher who received it."""

    __tablename__ = "teacher_incharge_requests"

    teacher_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("teachers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    counterpart_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    response: Mapped[str | None] = mapped_column(Text, nullable=True)
    project_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )

    teacher: Mapped["Teacher"] = relationship("Teacher", back_populates="incharge_requests")
    counterpart: Mapped["Student"] = relationship("Student")
    project: Mapped["Project | None"] = relationship("Project")

    def __repr__(self) -> str:
        return f"<TeacherInchargeRequest(id={self.id}, student_id={self.counterpart_id}, {self.status.value})>"
