"""Request ledger: per-entity lists of outstanding and historical requests."""

import logging
from typing import Any

from project_tracker.core.exceptions import (
    AlreadyResolvedError,
    DuplicateRequestError,
    NotFoundError,
    ValidationError,
)
from project_tracker.models.base import as_utc, utcnow
from project_tracker.models.request import (
    PartnerRequest,
    RequestDirection,
    RequestStatus,
    StudentInchargeRequest,
    TeacherInchargeRequest,
)

logger = logging.getLogger(__name__)

RequestEntry = PartnerRequest | StudentInchargeRequest | TeacherInchargeRequest


class RequestLedger:
    """Operations on one request list held by an entity.

    The ledger only touches the entity's own list. Keeping the counterpart's
    copy in step is the job of the dual-write coordinator.
    """

    def __init__(self, collection: str, entry_model: type[RequestEntry], label: str):
        self.collection = collection
        self.entry_model = entry_model
        self.label = label

    def entries(self, entity: Any) -> list[RequestEntry]:
        return getattr(entity, self.collection)

    def get(self, entity: Any, request_id: int) -> RequestEntry:
        for entry in self.entries(entity):
            if entry.id == request_id:
                return entry
        raise NotFoundError(self.label, str(request_id), message=f"{self.label} not found")

    def find_pending(
        self,
        entity: Any,
        counterpart_id: int,
        direction: RequestDirection | None = None,
    ) -> RequestEntry | None:
        """Return the pending entry with this counterpart, if any."""
        for entry in self.entries(entity):
            if entry.counterpart_id != counterpart_id or not entry.is_pending:
                continue
            if direction is not None and entry.direction != direction:
                continue
            return entry
        return None

    def latest(self, entity: Any, counterpart_id: int, direction: RequestDirection) -> RequestEntry | None:
        """Return the most recently created entry with this counterpart and direction."""
        matches = [
            entry
            for entry in self.entries(entity)
            if entry.counterpart_id == counterpart_id and entry.direction == direction
        ]
        if not matches:
            return None
        return max(matches, key=lambda entry: (as_utc(entry.created_at), entry.id or 0))

    def add_request(
        self,
        entity: Any,
        counterpart_id: int,
        direction: RequestDirection,
        message: str | None = None,
    ) -> RequestEntry:
        """Append a pending entry; refuses a second pending one in the same direction."""
        if self.find_pending(entity, counterpart_id, direction) is not None:
            raise DuplicateRequestError(f"{self.label} already sent to this recipient")

        entry = self.entry_model(
            counterpart_id=counterpart_id,
            direction=direction,
            status=RequestStatus.PENDING,
            message=message,
            created_at=utcnow(),
        )
        self.entries(entity).append(entry)
        logger.info(
            "%s added on %r: counterpart=%s direction=%s",
            self.label,
            entity,
            counterpart_id,
            direction.value,
        )
        return entry

    def resolve(self, entity: Any, request_id: int, outcome: RequestStatus) -> RequestEntry:
        """Move a pending entry to accepted or rejected."""
        if outcome == RequestStatus.PENDING:
            raise ValidationError("A request can only be accepted or rejected")

        entry = self.get(entity, request_id)
        if not entry.is_pending:
            raise AlreadyResolvedError(entry.id, entry.status.value)

        entry.status = outcome
        entry.responded_at = utcnow()
        logger.info("%s %s resolved on %r: %s", self.label, entry.id, entity, outcome.value)
        return entry


partner_ledger = RequestLedger("partner_requests", PartnerRequest, "Partner request")
student_incharge_ledger = RequestLedger("incharge_requests", StudentInchargeRequest, "Incharge request")
teacher_incharge_ledger = RequestLedger("incharge_requests", TeacherInchargeRequest, "Incharge request")
