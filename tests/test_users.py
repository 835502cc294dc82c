"""Tests for authentication and privileged user management."""

import uuid

import pytest

from app.core.security import verify_password
from app.models import BookmarkedMcq, User


class TestAuth:
    def test_register_login_me(self, client):
        registered = client.post(
            "/auth/register",
            json={"email": "nurse@example.com", "password": "s3cret-pass", "first_name": "Sara"},
        )
        assert registered.status_code == 201
        assert registered.json()["is_admin"] is False

        login = client.post("/auth/login", json={"email": "nurse@example.com", "password": "s3cret-pass"})
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["first_name"] == "Sara"
        assert me.json()["trial_taken"] is False

    def test_duplicate_registration(self, client):
        payload = {"email": "nurse@example.com", "password": "s3cret-pass"}
        client.post("/auth/register", json=payload)

        response = client.post("/auth/register", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Email already registered"}

    def test_wrong_password(self, client):
        client.post("/auth/register", json={"email": "nurse@example.com", "password": "s3cret-pass"})

        response = client.post("/auth/login", json={"email": "nurse@example.com", "password": "nope"})

        assert response.status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert "error" in response.json()

    def test_missing_token(self, client):
        assert client.get("/auth/me").status_code in (401, 403)


class TestAdminCreateUser:
    URL = "/functions/v1/admin-create-user"

    def test_creates_user_with_hashed_password(self, client, db_session, admin_headers):
        response = client.post(
            self.URL,
            json={"email": "pharma@example.com", "password": "pw-12345", "first_name": "Omar"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User created successfully."
        user = db_session.get(User, uuid.UUID(body["userId"]))
        assert user.first_name == "Omar"
        assert verify_password("pw-12345", user.password_hash)

    def test_missing_fields(self, client, admin_headers):
        response = client.post(self.URL, json={"email": "pharma@example.com"}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields: email or password."}

    def test_duplicate_email_is_server_error(self, client, user, admin_headers):
        response = client.post(self.URL, json={"email": user.email, "password": "pw"}, headers=admin_headers)

        assert response.status_code == 500
        assert response.json()["error"].startswith("Failed to create user:")

    def test_requires_admin(self, client, user_headers):
        response = client.post(self.URL, json={"email": "x@example.com", "password": "pw"}, headers=user_headers)

        assert response.status_code == 403
        assert response.json() == {"error": "Admin privileges required"}


class TestAdminDeleteUser:
    URL = "/functions/v1/admin-delete-user"

    def test_deletes_user_and_dependents(self, client, db_session, user, admin_headers, make_mcq):
        mcq = make_mcq("Which vitamin prevents scurvy?")
        db_session.add(BookmarkedMcq(user_id=user.id, mcq_id=mcq.id))
        db_session.commit()
        user_id = user.id

        response = client.post(self.URL, json={"user_id": str(user_id)}, headers=admin_headers)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(User, user_id) is None
        assert db_session.query(BookmarkedMcq).count() == 0

    def test_unknown_user(self, client, admin_headers):
        response = client.post(self.URL, json={"user_id": str(uuid.uuid4())}, headers=admin_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to delete user: User not found"}


class TestAdminUpdateUserProfile:
    URL = "/functions/v1/admin-update-user-profile"

    def test_only_given_fields_change(self, client, db_session, make_user, admin_headers):
        user = make_user(first_name="Sara", last_name="Ali")

        response = client.post(
            self.URL, json={"user_id": str(user.id), "last_name": "Hassan", "is_admin": True}, headers=admin_headers
        )

        assert response.status_code == 200
        db_session.expire_all()
        assert user.first_name == "Sara"
        assert user.last_name == "Hassan"
        assert user.is_admin is True

    def test_password_is_rehashed(self, client, db_session, user, admin_headers):
        client.post(self.URL, json={"user_id": str(user.id), "password": "new-pass"}, headers=admin_headers)

        db_session.expire_all()
        assert verify_password("new-pass", user.password_hash)

    @pytest.mark.parametrize("payload", [{}, {"last_name": "Hassan"}])
    def test_user_id_required(self, client, admin_headers, payload):
        response = client.post(self.URL, json=payload, headers=admin_headers)

        assert response.status_code == 400
