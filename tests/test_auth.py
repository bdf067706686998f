"""Authentication and role checks."""

from datetime import timedelta

import pytest

from project_tracker.core.security import create_access_token, create_refresh_token, decode_token

from conftest import PASSWORD

API = "/api/v1"


class TestStudentAuth:
    def test_register_returns_tokens(self, client, db_session):
        response = client.post(
            f"{API}/auth/student/register",
            json={
                "roll_no": "21cs042",
                "password": "secret-pass",
                "username": "Meera",
                "department": "CSE",
                "class_name": "CSE-B",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["role"] == "student"
        assert body["user"]["roll_no"] == "21CS042"
        assert decode_token(body["access_token"])["role"] == "student"

    def test_register_duplicate_roll_no(self, client, make_student):
        make_student("21CS042")

        response = client.post(
            f"{API}/auth/student/register",
            json={
                "roll_no": "21CS042",
                "password": "secret-pass",
                "username": "Meera",
                "department": "CSE",
                "class_name": "CSE-B",
            },
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Roll number already registered"

    def test_login(self, client, make_student):
        student = make_student("21CS042")

        response = client.post(
            f"{API}/auth/student/login",
            json={"roll_no": "21cs042", "password": PASSWORD},
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == student.id

    @pytest.mark.parametrize(
        ("roll_no", "password"),
        [("21CS042", "wrong-password"), ("21CS999", PASSWORD)],
    )
    def test_login_invalid_credentials(self, client, make_student, roll_no, password):
        make_student("21CS042")

        response = client.post(
            f"{API}/auth/student/login",
            json={"roll_no": roll_no, "password": password},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_FAILED"
        assert response.json()["error"]["message"] == "Invalid credentials"


class TestTeacherAuth:
    def test_register_and_login(self, client, db_session):
        registered = client.post(
            f"{API}/auth/teacher/register",
            json={"username": "Dr. Rao", "email": "Rao@College.edu", "password": "secret-pass"},
        )
        assert registered.status_code == 201
        assert registered.json()["user"]["email"] == "rao@college.edu"

        login = client.post(
            f"{API}/auth/teacher/login",
            json={"email": "rao@college.edu", "password": "secret-pass"},
        )
        assert login.status_code == 200
        assert login.json()["user"]["role"] == "teacher"

    def test_register_duplicate_email(self, client, make_teacher):
        make_teacher("rao@college.edu")

        response = client.post(
            f"{API}/auth/teacher/register",
            json={"username": "Dr. Rao", "email": "rao@college.edu", "password": "secret-pass"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Email already registered"

    def test_register_invalid_email(self, client, db_session):
        response = client.post(
            f"{API}/auth/teacher/register",
            json={"username": "Dr. Rao", "email": "not-an-email", "password": "secret-pass"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestAdminAuth:
    def test_login(self, client, db_session):
        response = client.post(
            f"{API}/auth/admin/login",
            json={"admin_id": "admin", "password": "admin-password"},
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["role"] == "admin"
        assert user["admin_id"] == "admin"

    def test_login_wrong_password(self, client, db_session):
        response = client.post(
            f"{API}/auth/admin/login",
            json={"admin_id": "admin", "password": "guess"},
        )

        assert response.status_code == 401

    def test_token_for_other_admin_subject_rejected(self, client, db_session):
        token = create_access_token("someone-else", "admin")

        response = client.get(f"{API}/admin/dashboard/stats", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401


class TestTokens:
    def test_me_for_each_role(self, client, make_student, make_teacher, auth_headers, admin_headers):
        student = make_student("21CS042", username="Meera")
        teacher = make_teacher("rao@college.edu")

        as_student = client.get(f"{API}/auth/me", headers=auth_headers(student)).json()
        as_teacher = client.get(f"{API}/auth/me", headers=auth_headers(teacher)).json()
        as_admin = client.get(f"{API}/auth/me", headers=admin_headers).json()

        assert (as_student["role"], as_student["username"]) == ("student", "Meera")
        assert (as_teacher["role"], as_teacher["email"]) == ("teacher", "rao@college.edu")
        assert (as_admin["role"], as_admin["admin_id"]) == ("admin", "admin")

    def test_refresh(self, client, make_teacher):
        teacher = make_teacher("rao@college.edu")
        refresh = create_refresh_token(str(teacher.id), "teacher")

        response = client.post(f"{API}/auth/refresh", json={"refresh_token": refresh})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == teacher.id

    def test_access_token_cannot_refresh(self, client, make_teacher):
        teacher = make_teacher("rao@college.edu")
        access = create_access_token(str(teacher.id), "teacher")

        response = client.post(f"{API}/auth/refresh", json={"refresh_token": access})

        assert response.status_code == 401

    @pytest.mark.parametrize(
        "authorization",
        [None, "Token abc", "Bearer not-a-jwt"],
    )
    def test_missing_or_malformed_token(self, client, db_session, authorization):
        headers = {"Authorization": authorization} if authorization else {}

        response = client.get(f"{API}/student/profile", headers=headers)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_FAILED"

    def test_expired_token(self, client, make_student):
        student = make_student("21CS042")
        token = create_access_token(str(student.id), "student", expires_delta=timedelta(seconds=-1))

        response = client.get(f"{API}/student/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_token_for_deleted_user(self, client, db_session, make_student):
        student = make_student("21CS042")
        token = create_access_token(str(student.id), "student")
        db_session.delete(student)
        db_session.commit()

        response = client.get(f"{API}/student/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401


class TestRoleChecks:
    def test_student_cannot_use_teacher_routes(self, client, make_student, auth_headers):
        student = make_student("21CS042")

        response = client.get(f"{API}/teacher/projects", headers=auth_headers(student))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    def test_teacher_cannot_use_admin_routes(self, client, make_teacher, auth_headers):
        teacher = make_teacher("rao@college.edu")

        response = client.get(f"{API}/admin/projects", headers=auth_headers(teacher))

        assert response.status_code == 403

    def test_admin_cannot_use_student_routes(self, client, db_session, admin_headers):
        response = client.get(f"{API}/student/profile", headers=admin_headers)

        assert response.status_code == 403

    def test_health_is_public(self, client):
        response = client.get("/health")

        assert response.status_code == 200
