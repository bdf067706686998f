"""Dual-write coordinator for two-party requests.

A request lives twice: once on the party that sent it and once on the party
that received it. The store has no cross-document transaction, so every
transition is applied as two separate writes:

1. the primary side (the party acting now) is mutated and saved;
2. the mirror side is mutated and saved.

If the second write fails the first is kept and ``PartialWriteError`` is
raised. ``repair`` closes such gaps the next time an entity's requests are
read.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from project_tracker.core.exceptions import AppException, DuplicateRequestError, PartialWriteError
from project_tracker.models.base import as_utc
from project_tracker.models.request import RequestDirection, RequestStatus
from project_tracker.services.ledger import RequestEntry, RequestLedger
from project_tracker.services.store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class LedgerSide:
    """One party of a request: the entity, its ledger and who it is talking to."""

    entity: Any
    ledger: RequestLedger
    counterpart_id: int
    apply: Callable[[], None] | None = None


@dataclass
class PairResult:
    entry: RequestEntry
    mirror: RequestEntry | None
    warnings: list[str] = field(default_factory=list)


class DualWriteCoordinator:
    """Applies request creation and resolution to both parties."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def create_pair(
        self,
        sender: LedgerSide,
        receiver: LedgerSide,
        message: str | None = None,
    ) -> PairResult:
        """Record a new pending request on the sender, then on the receiver.

        Resending a request whose receiver copy was never written adds only
        the missing copy.
        """
        received = receiver.ledger.find_pending(
            receiver.entity, receiver.counterpart_id, RequestDirection.RECEIVED
        )
        entry = sender.ledger.find_pending(sender.entity, sender.counterpart_id, RequestDirection.SENT)
        if entry is not None:
            if received is not None:
                raise DuplicateRequestError(f"{sender.ledger.label} already sent to this recipient")
            logger.warning(
                "Resending %s %s on %r: receiver copy missing",
                sender.ledger.label,
                entry.id,
                sender.entity,
            )
            message = entry.message
        else:
            if received is not None:
                raise DuplicateRequestError(f"{receiver.ledger.label} already pending for this recipient")
            entry = sender.ledger.add_request(
                sender.entity, sender.counterpart_id, RequestDirection.SENT, message
            )
            self._write_primary(sender)

        try:
            mirror = self._add_mirror(receiver, message)
        except SQLAlchemyError as exc:
            raise self._partial_write(sender, receiver, exc) from exc

        return PairResult(entry=entry, mirror=mirror)

    def resolve_pair(
        self,
        primary: LedgerSide,
        request_id: int,
        mirror: LedgerSide,
        outcome: RequestStatus,
    ) -> PairResult:
        """Resolve ``request_id`` on the primary side and its mirrored copy.

        The mirrored copy has its own id; it is found by counterpart, opposite
        direction and pending status. A missing mirror is logged and reported
        as a warning without aborting the primary resolution.
        """
        entry = primary.ledger.get(primary.entity, request_id)
        mirror_entry = mirror.ledger.find_pending(
            mirror.entity, mirror.counterpart_id, entry.direction.opposite
        )
        warnings: list[str] = []
        if mirror_entry is None:
            logger.warning(
                "No pending mirror for %s %s on %r; resolving one side only",
                primary.ledger.label,
                request_id,
                mirror.entity,
            )
            warnings.append("Counterpart has no matching pending request; only this side was updated")

        try:
            primary.ledger.resolve(primary.entity, request_id, outcome)
            if primary.apply is not None:
                primary.apply()
        except AppException:
            self.store.rollback()
            raise
        self._write_primary(primary)

        try:
            if mirror_entry is not None:
                mirror.ledger.resolve(mirror.entity, mirror_entry.id, outcome)
            if mirror.apply is not None:
                mirror.apply()
            self._write_mirror(mirror)
        except SQLAlchemyError as exc:
            raise self._partial_write(primary, mirror, exc) from exc

        return PairResult(entry=entry, mirror=mirror_entry, warnings=warnings)

    def repair(
        self,
        entity: Any,
        ledger: RequestLedger,
        load_counterpart: Callable[[int], Any | None],
        counterpart_ledger: RequestLedger,
        on_accepted: Callable[[Any, Any], None] | None = None,
    ) -> int:
        """Bring our pending entries in line with the counterpart's copies.

        A resolution the counterpart already has is copied onto our entry. A
        sent entry whose receiver copy was never written gets that copy
        re-created on the counterpart.
        """
        repaired = 0
        for entry in list(ledger.entries(entity)):
            if not entry.is_pending:
                continue
            counterpart = load_counterpart(entry.counterpart_id)
            if counterpart is None:
                continue
            mirror = counterpart_ledger.latest(counterpart, entity.id, entry.direction.opposite)
            # An older, already-resolved exchange is not this entry's copy
            stale = (
                mirror is not None
                and not mirror.is_pending
                and as_utc(mirror.created_at) < as_utc(entry.created_at)
            )
            if mirror is None or stale:
                if entry.direction == RequestDirection.SENT:
                    side = LedgerSide(counterpart, counterpart_ledger, entity.id)
                    self._add_mirror(side, entry.message)
                    logger.info(
                        "Read-repair: re-created receiver copy of %s %s on %r",
                        ledger.label,
                        entry.id,
                        counterpart,
                    )
                    repaired += 1
                continue
            if mirror.is_pending:
                continue

            ledger.resolve(entity, entry.id, mirror.status)
            if mirror.status == RequestStatus.ACCEPTED and on_accepted is not None:
                on_accepted(entity, counterpart)
            logger.info(
                "Read-repair: %s %s on %r set to %s",
                ledger.label,
                entry.id,
                entity,
                mirror.status.value,
            )
            repaired += 1

        if repaired:
            self.store.save(entity)
        return repaired

    def _add_mirror(self, receiver: LedgerSide, message: str | None) -> RequestEntry:
        mirror = receiver.ledger.add_request(
            receiver.entity, receiver.counterpart_id, RequestDirection.RECEIVED, message
        )
        self._write_mirror(receiver)
        return mirror

    def _write_primary(self, side: LedgerSide) -> None:
        self.store.save(side.entity)

    def _write_mirror(self, side: LedgerSide) -> None:
        self.store.save(side.entity)

    def _partial_write(self, committed: LedgerSide, pending: LedgerSide, exc: Exception) -> PartialWriteError:
        committed_repr, pending_repr = repr(committed.entity), repr(pending.entity)
        logger.warning("Partial write: %s saved, %s not saved (%s)", committed_repr, pending_repr, exc)
        self.store.rollback()
        return PartialWriteError(
            committed=committed_repr,
            pending=pending_repr,
            reason=type(exc).__name__,
        )
