"""Dual-write coordinator tests."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from project_tracker.core.exceptions import AlreadyResolvedError, DuplicateRequestError, PartialWriteError
from project_tracker.models import PartnerRequest, RequestDirection, RequestStatus, Student
from project_tracker.services.coordinator import DualWriteCoordinator, LedgerSide
from project_tracker.services.ledger import partner_ledger
from project_tracker.services.store import DocumentStore


@pytest.fixture
def coordinator(db_session):
    return DualWriteCoordinator(DocumentStore(db_session))


@pytest.fixture
def pair(make_student):
    return make_student("21CS001"), make_student("21CS002")


def _sides(sender, receiver):
    return (
        LedgerSide(sender, partner_ledger, receiver.id),
        LedgerSide(receiver, partner_ledger, sender.id),
    )


def _fail_mirror_write(monkeypatch):
    def broken(self, side):
        raise OperationalError("UPDATE students", {}, Exception("connection lost"))

    monkeypatch.setattr(DualWriteCoordinator, "_write_mirror", broken)


def _stored_entries(db_session, student):
    return db_session.execute(
        select(PartnerRequest).where(PartnerRequest.student_id == student.id)
    ).scalars().all()


def test_create_pair_writes_both_sides(db_session, coordinator, pair):
    alice, bob = pair

    result = coordinator.create_pair(*_sides(alice, bob), message="Hi")

    assert result.entry.direction == RequestDirection.SENT
    assert result.mirror.direction == RequestDirection.RECEIVED
    assert result.entry.id != result.mirror.id
    assert [e.counterpart_id for e in _stored_entries(db_session, alice)] == [bob.id]
    assert [e.counterpart_id for e in _stored_entries(db_session, bob)] == [alice.id]


def test_create_pair_rejects_duplicate(coordinator, pair):
    alice, bob = pair
    coordinator.create_pair(*_sides(alice, bob))

    with pytest.raises(DuplicateRequestError):
        coordinator.create_pair(*_sides(alice, bob))


def test_resolve_pair_resolves_mirror_by_counterpart(coordinator, pair):
    alice, bob = pair
    created = coordinator.create_pair(*_sides(alice, bob))
    bob_side, alice_side = _sides(bob, alice)

    result = coordinator.resolve_pair(bob_side, created.mirror.id, alice_side, RequestStatus.ACCEPTED)

    assert result.warnings == []
    assert result.entry.status == RequestStatus.ACCEPTED
    assert result.mirror is created.entry
    assert created.entry.status == RequestStatus.ACCEPTED


def test_resolve_pair_twice_fails(coordinator, pair):
    alice, bob = pair
    created = coordinator.create_pair(*_sides(alice, bob))
    bob_side, alice_side = _sides(bob, alice)
    coordinator.resolve_pair(bob_side, created.mirror.id, alice_side, RequestStatus.REJECTED)

    with pytest.raises(AlreadyResolvedError):
        coordinator.resolve_pair(bob_side, created.mirror.id, alice_side, RequestStatus.ACCEPTED)
    assert created.mirror.status == RequestStatus.REJECTED
    assert created.entry.status == RequestStatus.REJECTED


def test_resolve_pair_with_missing_mirror_warns(db_session, coordinator, pair):
    alice, bob = pair
    created = coordinator.create_pair(*_sides(alice, bob))
    alice.partner_requests.remove(created.entry)
    db_session.commit()
    bob_side, alice_side = _sides(bob, alice)

    result = coordinator.resolve_pair(bob_side, created.mirror.id, alice_side, RequestStatus.ACCEPTED)

    assert result.mirror is None
    assert len(result.warnings) == 1
    assert created.mirror.status == RequestStatus.ACCEPTED


def test_partial_write_keeps_first_write(db_session, coordinator, pair, monkeypatch):
    alice, bob = pair
    created = coordinator.create_pair(*_sides(alice, bob))
    bob_side, alice_side = _sides(bob, alice)
    _fail_mirror_write(monkeypatch)

    with pytest.raises(PartialWriteError) as exc_info:
        coordinator.resolve_pair(bob_side, created.mirror.id, alice_side, RequestStatus.ACCEPTED)

    assert exc_info.value.status_code == 500
    assert [e.status for e in _stored_entries(db_session, bob)] == [RequestStatus.ACCEPTED]
    assert [e.status for e in _stored_entries(db_session, alice)] == [RequestStatus.PENDING]


def test_partial_create_leaves_only_sender_copy(db_session, coordinator, pair, monkeypatch):
    alice, bob = pair
    _fail_mirror_write(monkeypatch)

    with pytest.raises(PartialWriteError):
        coordinator.create_pair(*_sides(alice, bob))

    assert len(_stored_entries(db_session, alice)) == 1
    assert _stored_entries(db_session, bob) == []


def test_resend_after_partial_create_adds_missing_copy(db_session, coordinator, pair, monkeypatch):
    alice, bob = pair
    with monkeypatch.context() as patch:
        _fail_mirror_write(patch)
        with pytest.raises(PartialWriteError):
            coordinator.create_pair(*_sides(alice, bob), message="Team up?")

    result = coordinator.create_pair(*_sides(alice, bob))

    assert [e.id for e in _stored_entries(db_session, alice)] == [result.entry.id]
    received = _stored_entries(db_session, bob)
    assert [e.id for e in received] == [result.mirror.id]
    assert received[0].direction == RequestDirection.RECEIVED
    assert received[0].message == "Team up?"

    with pytest.raises(DuplicateRequestError):
        coordinator.create_pair(*_sides(alice, bob))


def test_repair_recreates_missing_receiver_copy(db_session, coordinator, pair, monkeypatch):
    alice, bob = pair
    with monkeypatch.context() as patch:
        _fail_mirror_write(patch)
        with pytest.raises(PartialWriteError):
            coordinator.create_pair(*_sides(alice, bob))

    repaired = coordinator.repair(
        alice, partner_ledger, lambda student_id: db_session.get(Student, student_id), partner_ledger
    )

    assert repaired == 1
    received = _stored_entries(db_session, bob)
    assert [(e.counterpart_id, e.direction, e.status) for e in received] == [
        (alice.id, RequestDirection.RECEIVED, RequestStatus.PENDING)
    ]

    # The receiver can now answer it
    bob_side, alice_side = _sides(bob, alice)
    coordinator.resolve_pair(bob_side, received[0].id, alice_side, RequestStatus.REJECTED)
    assert [e.status for e in _stored_entries(db_session, alice)] == [RequestStatus.REJECTED]


def test_repair_copies_counterpart_resolution(db_session, coordinator, pair, monkeypatch):
    alice, bob = pair
    created = coordinator.create_pair(*_sides(alice, bob))
    bob_side, alice_side = _sides(bob, alice)
    with monkeypatch.context() as patch:
        _fail_mirror_write(patch)
        with pytest.raises(PartialWriteError):
            coordinator.resolve_pair(bob_side, created.mirror.id, alice_side, RequestStatus.ACCEPTED)

    linked = []
    repaired = coordinator.repair(
        alice,
        partner_ledger,
        lambda student_id: db_session.get(Student, student_id),
        partner_ledger,
        on_accepted=lambda entity, counterpart: linked.append((entity.id, counterpart.id)),
    )

    assert repaired == 1
    assert [e.status for e in _stored_entries(db_session, alice)] == [RequestStatus.ACCEPTED]
    assert linked == [(alice.id, bob.id)]

    # Nothing left to repair
    assert coordinator.repair(
        alice, partner_ledger, lambda student_id: db_session.get(Student, student_id), partner_ledger
    ) == 0


def test_repair_ignores_pending_counterpart(db_session, coordinator, pair):
    alice, bob = pair
    coordinator.create_pair(*_sides(alice, bob))

    repaired = coordinator.repair(
        alice, partner_ledger, lambda student_id: db_session.get(Student, student_id), partner_ledger
    )

    assert repaired == 0
    assert alice.partner_requests[0].is_pending
