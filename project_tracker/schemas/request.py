"""Partner and incharge request schemas."""

import enum
from datetime import datetime

from pydantic import Field, model_validator

from project_tracker.models.request import RequestDirection, RequestStatus
from project_tracker.schemas.common import BaseSchema
from project_tracker.schemas.student import StudentBrief
from project_tracker.schemas.teacher import TeacherBrief


class RequestDecision(str, enum.Enum):
    """Answer to a pending request."""

    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def status(self) -> RequestStatus:
        if self is RequestDecision.ACCEPT:
            return RequestStatus.ACCEPTED
        return RequestStatus.REJECTED


class PartnerRequestCreate(BaseSchema):
    """Partner request addressed by student id or roll number."""

    partner_id: int | None = None
    roll_no: str | None = None
    message: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_recipient(self) -> "PartnerRequestCreate":
        if self.partner_id is None and not self.roll_no:
            raise ValueError("Either partner_id or roll_no is required")
        if self.roll_no:
            self.roll_no = self.roll_no.upper()
        return self


class InchargeRequestCreate(BaseSchema):
    """Incharge request addressed to a teacher."""

    teacher_id: int


class RequestRespond(BaseSchema):
    """Accept or reject a partner request."""

    action: RequestDecision


class InchargeRequestRespond(BaseSchema):
    """Accept or reject an incharge request."""

    action: RequestDecision
    project_id: int | None = None
    message: str | None = Field(None, max_length=1000)


class PartnerRequestResponse(BaseSchema):
    """Partner request as seen by its holder."""

    id: int
    counterpart: StudentBrief
    direction: RequestDirection
    status: RequestStatus
    message: str | None
    created_at: datetime
    responded_at: datetime | None


class StudentInchargeRequestResponse(BaseSchema):
    """Incharge request as seen by the student."""

    id: int
    teacher: TeacherBrief = Field(validation_alias="counterpart")
    direction: RequestDirection
    status: RequestStatus
    created_at: datetime
    responded_at: datetime | None


class TeacherInchargeRequestResponse(BaseSchema):
    """Incharge request as seen by the teacher."""

    id: int
    student: StudentBrief = Field(validation_alias="counterpart")
    direction: RequestDirection
    status: RequestStatus
    response: str | None
    project_id: int | None
    created_at: datetime
    responded_at: datetime | None


class PartnerRequestsView(BaseSchema):
    """A student's partner requests and current partners."""

    requests: list[PartnerRequestResponse]
    partners: list[StudentBrief]


class RequestOutcome(BaseSchema):
    """Result of sending or answering a request."""

    message: str
    request_id: int
    status: RequestStatus
    project_id: int | None = None
    warnings: list[str] = []
