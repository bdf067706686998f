"""End-to-end partner and incharge workflows through the HTTP API."""

import pytest
from sqlalchemy.exc import OperationalError

from project_tracker.models import Project
from project_tracker.services.coordinator import DualWriteCoordinator

API = "/api/v1"


def _received_request_id(client, headers, sender_id):
    view = client.get(f"{API}/student/partner-requests", headers=headers).json()
    for entry in view["requests"]:
        if entry["counterpart"]["id"] == sender_id and entry["direction"] == "received":
            return entry["id"]
    raise AssertionError("no received partner request")


def _send_partner_request(client, headers, roll_no, message=None):
    return client.post(
        f"{API}/student/partner-requests",
        json={"roll_no": roll_no, "message": message},
        headers=headers,
    )


def _accept_incharge(client, student, teacher, auth_headers, project_id=None):
    response = client.post(
        f"{API}/student/incharge-requests",
        json={"teacher_id": teacher.id},
        headers=auth_headers(student),
    )
    assert response.status_code == 201

    pending = client.get(
        f"{API}/teacher/incharge-requests",
        params={"pending_only": True},
        headers=auth_headers(teacher),
    ).json()
    entry = next(e for e in pending if e["student"]["id"] == student.id)

    return client.post(
        f"{API}/teacher/incharge-requests/{entry['id']}/respond",
        json={"action": "accept", "project_id": project_id},
        headers=auth_headers(teacher),
    )


class TestPartnerRequests:
    """Partner pairing between students."""

    def test_accepted_request_links_both_without_project(self, client, make_student, auth_headers):
        alice, bob = make_student("21CS001"), make_student("21CS002")

        sent = _send_partner_request(client, auth_headers(alice), "21cs002", "Robotics?")
        assert sent.status_code == 201
        assert sent.json()["status"] == "pending"

        request_id = _received_request_id(client, auth_headers(bob), alice.id)
        response = client.post(
            f"{API}/student/partner-requests/{request_id}/respond",
            json={"action": "accept"},
            headers=auth_headers(bob),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "accepted"
        assert response.json()["project_id"] is None

        alice_view = client.get(f"{API}/student/partner-requests", headers=auth_headers(alice)).json()
        bob_view = client.get(f"{API}/student/partner-requests", headers=auth_headers(bob)).json()
        assert [p["id"] for p in alice_view["partners"]] == [bob.id]
        assert [p["id"] for p in bob_view["partners"]] == [alice.id]
        assert alice_view["requests"][0]["status"] == "accepted"
        assert alice_view["requests"][0]["direction"] == "sent"

        for student in (alice, bob):
            profile = client.get(f"{API}/student/profile", headers=auth_headers(student)).json()
            assert profile["project"] is None

    def test_partner_joins_existing_project(self, client, make_student, make_teacher, auth_headers):
        alice, bob = make_student("21CS001"), make_student("21CS002")
        teacher = make_teacher("guide@college.edu")
        accepted = _accept_incharge(client, alice, teacher, auth_headers)
        project_id = accepted.json()["project_id"]

        _send_partner_request(client, auth_headers(alice), bob.roll_no)
        request_id = _received_request_id(client, auth_headers(bob), alice.id)
        response = client.post(
            f"{API}/student/partner-requests/{request_id}/respond",
            json={"action": "accept"},
            headers=auth_headers(bob),
        )

        assert response.json()["project_id"] == project_id
        bob_profile = client.get(f"{API}/student/profile", headers=auth_headers(bob)).json()
        assert bob_profile["project"]["id"] == project_id

        detail = client.get(f"{API}/teacher/projects/{project_id}", headers=auth_headers(teacher)).json()
        assert {s["id"] for s in detail["students"]} == {alice.id, bob.id}

    def test_partner_chain_joins_existing_project(
        self, client, db_session, make_student, make_teacher, auth_headers
    ):
        alice, bob = make_student("21CS001"), make_student("21CS002")
        carol, dev = make_student("21CS003"), make_student("21CS004")
        for first, second in ((bob, carol), (carol, dev)):
            first.partners.append(second)
            second.partners.append(first)
        db_session.commit()
        teacher = make_teacher("guide@college.edu")
        project_id = _accept_incharge(client, alice, teacher, auth_headers).json()["project_id"]

        _send_partner_request(client, auth_headers(alice), bob.roll_no)
        request_id = _received_request_id(client, auth_headers(bob), alice.id)
        response = client.post(
            f"{API}/student/partner-requests/{request_id}/respond",
            json={"action": "accept"},
            headers=auth_headers(bob),
        )

        assert response.status_code == 200
        for student in (bob, carol, dev):
            profile = client.get(f"{API}/student/profile", headers=auth_headers(student)).json()
            assert profile["project"]["id"] == project_id

    def test_accept_at_capacity_fails_and_keeps_request_pending(
        self, client, db_session, make_student, auth_headers
    ):
        alice = make_student("21CS001")
        for i in range(4):
            other = make_student(f"21CS10{i}")
            alice.partners.append(other)
            other.partners.append(alice)
        db_session.commit()
        carol = make_student("21CS200")

        sent = _send_partner_request(client, auth_headers(carol), alice.roll_no)
        assert sent.status_code == 201

        request_id = _received_request_id(client, auth_headers(alice), carol.id)
        response = client.post(
            f"{API}/student/partner-requests/{request_id}/respond",
            json={"action": "accept"},
            headers=auth_headers(alice),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CAPACITY_EXCEEDED"
        view = client.get(f"{API}/student/partner-requests", headers=auth_headers(alice)).json()
        assert len(view["partners"]) == 4
        assert carol.id not in [p["id"] for p in view["partners"]]
        entry = next(e for e in view["requests"] if e["id"] == request_id)
        assert entry["status"] == "pending"

    def test_sender_at_capacity_cannot_send(self, client, db_session, make_student, auth_headers):
        alice = make_student("21CS001")
        for i in range(4):
            other = make_student(f"21CS10{i}")
            alice.partners.append(other)
            other.partners.append(alice)
        db_session.commit()
        make_student("21CS200")

        response = _send_partner_request(client, auth_headers(alice), "21CS200")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CAPACITY_EXCEEDED"

    def test_responding_twice_fails(self, client, make_student, auth_headers):
        alice, bob = make_student("21CS001"), make_student("21CS002")
        _send_partner_request(client, auth_headers(alice), bob.roll_no)
        request_id = _received_request_id(client, auth_headers(bob), alice.id)
        url = f"{API}/student/partner-requests/{request_id}/respond"

        first = client.post(url, json={"action": "reject"}, headers=auth_headers(bob))
        second = client.post(url, json={"action": "accept"}, headers=auth_headers(bob))

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["error"]["code"] == "ALREADY_RESOLVED"
        view = client.get(f"{API}/student/partner-requests", headers=auth_headers(alice)).json()
        assert view["requests"][0]["status"] == "rejected"
        assert view["partners"] == []

    def test_sender_cannot_answer_own_request(self, client, make_student, auth_headers):
        alice, bob = make_student("21CS001"), make_student("21CS002")
        sent = _send_partner_request(client, auth_headers(alice), bob.roll_no).json()

        response = client.post(
            f"{API}/student/partner-requests/{sent['request_id']}/respond",
            json={"action": "accept"},
            headers=auth_headers(alice),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("direction", ["same", "reverse"])
    def test_duplicate_pending_request(self, client, make_student, auth_headers, direction):
        alice, bob = make_student("21CS001"), make_student("21CS002")
        _send_partner_request(client, auth_headers(alice), bob.roll_no)

        if direction == "same":
            response = _send_partner_request(client, auth_headers(alice), bob.roll_no)
        else:
            response = _send_partner_request(client, auth_headers(bob), alice.roll_no)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "DUPLICATE_REQUEST"

    def test_request_to_self_or_unknown(self, client, make_student, auth_headers):
        alice = make_student("21CS001")

        to_self = _send_partner_request(client, auth_headers(alice), alice.roll_no)
        unknown = _send_partner_request(client, auth_headers(alice), "NOPE")
        empty = client.post(f"{API}/student/partner-requests", json={}, headers=auth_headers(alice))

        assert to_self.status_code == 400
        assert unknown.status_code == 404
        assert empty.status_code == 400

    def test_partial_write_is_repaired_on_next_read(self, client, make_student, auth_headers, monkeypatch):
        alice, bob = make_student("21CS001"), make_student("21CS002")
        _send_partner_request(client, auth_headers(alice), bob.roll_no)
        request_id = _received_request_id(client, auth_headers(bob), alice.id)

        def broken(self, side):
            raise OperationalError("UPDATE students", {}, Exception("connection lost"))

        with monkeypatch.context() as patch:
            patch.setattr(DualWriteCoordinator, "_write_mirror", broken)
            response = client.post(
                f"{API}/student/partner-requests/{request_id}/respond",
                json={"action": "accept"},
                headers=auth_headers(bob),
            )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "PARTIAL_WRITE"

        # Bob's side was written; Alice catches up when she reads her requests
        bob_view = client.get(f"{API}/student/partner-requests", headers=auth_headers(bob)).json()
        assert [p["id"] for p in bob_view["partners"]] == [alice.id]

        alice_view = client.get(f"{API}/student/partner-requests", headers=auth_headers(alice)).json()
        assert alice_view["requests"][0]["status"] == "accepted"
        assert [p["id"] for p in alice_view["partners"]] == [bob.id]

    def test_partial_send_is_repaired_when_sender_reads(self, client, make_student, auth_headers, monkeypatch):
        alice, bob = make_student("21CS001"), make_student("21CS002")

        def broken(self, side):
            raise OperationalError("UPDATE students", {}, Exception("connection lost"))

        with monkeypatch.context() as patch:
            patch.setattr(DualWriteCoordinator, "_write_mirror", broken)
            response = _send_partner_request(client, auth_headers(alice), bob.roll_no)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "PARTIAL_WRITE"
        bob_view = client.get(f"{API}/student/partner-requests", headers=auth_headers(bob)).json()
        assert bob_view["requests"] == []

        client.get(f"{API}/student/partner-requests", headers=auth_headers(alice))

        request_id = _received_request_id(client, auth_headers(bob), alice.id)
        answered = client.post(
            f"{API}/student/partner-requests/{request_id}/respond",
            json={"action": "accept"},
            headers=auth_headers(bob),
        )
        assert answered.status_code == 200
        alice_view = client.get(f"{API}/student/partner-requests", headers=auth_headers(alice)).json()
        assert [p["id"] for p in alice_view["partners"]] == [bob.id]

    def test_partial_send_can_be_resent(self, client, make_student, auth_headers, monkeypatch):
        alice, bob = make_student("21CS001"), make_student("21CS002")

        def broken(self, side):
            raise OperationalError("UPDATE students", {}, Exception("connection lost"))

        with monkeypatch.context() as patch:
            patch.setattr(DualWriteCoordinator, "_write_mirror", broken)
            assert _send_partner_request(client, auth_headers(alice), bob.roll_no).status_code == 500

        resent = _send_partner_request(client, auth_headers(alice), bob.roll_no)

        assert resent.status_code == 201
        assert _received_request_id(client, auth_headers(bob), alice.id)

    def test_available_students_excludes_self_and_full(self, client, db_session, make_student, auth_headers):
        alice = make_student("21CS001", username="Alice")
        full = make_student("21CS002", username="Busy")
        for i in range(4):
            other = make_student(f"21CS10{i}", username=f"Peer {i}")
            full.partners.append(other)
            other.partners.append(full)
        db_session.commit()

        everyone = client.get(f"{API}/student/available-students", headers=auth_headers(alice)).json()
        searched = client.get(
            f"{API}/student/available-students",
            params={"search": "peer 1"},
            headers=auth_headers(alice),
        ).json()

        roll_numbers = {s["roll_no"] for s in everyone}
        assert "21CS001" not in roll_numbers
        assert "21CS002" not in roll_numbers
        assert len(roll_numbers) == 4
        assert [s["roll_no"] for s in searched] == ["21CS101"]
        assert searched[0]["partner_count"] == 1


class TestInchargeRequests:
    """Incharge assignment between students and teachers."""

    def test_acceptance_creates_project(self, client, db_session, make_student, make_teacher, auth_headers):
        alice = make_student("21CS001", username="Alice")
        teacher = make_teacher("guide@college.edu")

        response = _accept_incharge(client, alice, teacher, auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "accepted"
        project = db_session.get(Project, body["project_id"])
        assert project.incharge_id == teacher.id
        assert project.student_ids == [alice.id]
        assert project.progress == 0
        assert project.status.value == "active"
        assert project.name == "Project for Alice"

        own = client.get(f"{API}/student/incharge-requests", headers=auth_headers(alice)).json()
        assert own[0]["status"] == "accepted"
        assert own[0]["teacher"]["id"] == teacher.id

        theirs = client.get(f"{API}/teacher/incharge-requests", headers=auth_headers(teacher)).json()
        assert theirs[0]["project_id"] == project.id

    def test_acceptance_into_existing_project(self, client, make_student, make_teacher, auth_headers):
        alice, bob = make_student("21CS001"), make_student("21CS002")
        teacher = make_teacher("guide@college.edu")
        project_id = _accept_incharge(client, alice, teacher, auth_headers).json()["project_id"]

        response = _accept_incharge(client, bob, teacher, auth_headers, project_id=project_id)

        assert response.json()["project_id"] == project_id
        detail = client.get(f"{API}/teacher/projects/{project_id}", headers=auth_headers(teacher)).json()
        assert {s["id"] for s in detail["students"]} == {alice.id, bob.id}

    def test_rejection_updates_both_sides(self, client, make_student, make_teacher, auth_headers):
        alice = make_student("21CS001")
        teacher = make_teacher("guide@college.edu")
        client.post(f"{API}/student/incharge-requests", json={"teacher_id": teacher.id}, headers=auth_headers(alice))
        entry = client.get(f"{API}/teacher/incharge-requests", headers=auth_headers(teacher)).json()[0]

        response = client.post(
            f"{API}/teacher/incharge-requests/{entry['id']}/respond",
            json={"action": "reject", "message": "Fully booked this term"},
            headers=auth_headers(teacher),
        )

        assert response.json()["status"] == "rejected"
        theirs = client.get(f"{API}/teacher/incharge-requests", headers=auth_headers(teacher)).json()
        assert theirs[0]["response"] == "Fully booked this term"
        own = client.get(f"{API}/student/incharge-requests", headers=auth_headers(alice)).json()
        assert own[0]["status"] == "rejected"

    def test_student_with_project_cannot_request(self, client, make_student, make_teacher, auth_headers):
        alice = make_student("21CS001")
        teacher = make_teacher("guide@college.edu")
        _accept_incharge(client, alice, teacher, auth_headers)

        response = client.post(
            f"{API}/student/incharge-requests",
            json={"teacher_id": teacher.id},
            headers=auth_headers(alice),
        )

        assert response.status_code == 400

    def test_duplicate_incharge_request(self, client, make_student, make_teacher, auth_headers):
        alice = make_student("21CS001")
        teacher = make_teacher("guide@college.edu")
        url = f"{API}/student/incharge-requests"

        client.post(url, json={"teacher_id": teacher.id}, headers=auth_headers(alice))
        response = client.post(url, json={"teacher_id": teacher.id}, headers=auth_headers(alice))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "DUPLICATE_REQUEST"

    def test_request_to_unknown_teacher(self, client, make_student, auth_headers):
        alice = make_student("21CS001")

        response = client.post(
            f"{API}/student/incharge-requests",
            json={"teacher_id": 404},
            headers=auth_headers(alice),
        )

        assert response.status_code == 404
