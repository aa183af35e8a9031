"""
Tests for the admin-only /users routes.
"""

import pytest
from sqlalchemy.exc import OperationalError

from common.enum import RoleEnum
from models import Movement, User


class TestCreateUser:

    def test_missing_name_or_email(self, admin_client):
        response = admin_client.post("/users", json={"name": "Ana"})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing name or email"}

        response = admin_client.post("/users", json={"name": "", "email": "ana@finance.io"})
        assert response.json() == {"error": "Missing name or email"}

    def test_defaults_to_user_role(self, admin_client):
        response = admin_client.post("/users", json={"name": "Ana", "email": "ana@finance.io"})
        assert response.status_code == 201
        data = response.json()
        assert data["role"] == "USER"
        assert data["phone"] is None
        assert data["id"]

    def test_explicit_role_and_phone(self, admin_client):
        response = admin_client.post(
            "/users", json={"name": "Bo", "email": "bo@finance.io", "phone": "555-0101", "role": "ADMIN"}
        )
        assert response.status_code == 201
        assert response.json()["role"] == "ADMIN"
        assert response.json()["phone"] == "555-0101"

    def test_duplicate_email(self, admin_client, make_user):
        make_user(email="taken@finance.io")
        response = admin_client.post("/users", json={"name": "Ana", "email": "taken@finance.io"})
        assert response.status_code == 400
        assert response.json() == {"error": "Email already registered"}

    def test_invalid_email(self, admin_client):
        response = admin_client.post("/users", json={"name": "Ana", "email": "not-an-email"})
        assert response.status_code == 400


class TestReadUsers:

    def test_list(self, admin_client, make_user):
        make_user(name="Ana")
        response = admin_client.get("/users")
        assert response.status_code == 200
        names = {u["name"] for u in response.json()}
        assert names == {"Admin", "Ana"}

    def test_get_one(self, admin_client, make_user):
        user = make_user(name="Ana")
        response = admin_client.get(f"/users/{user.id}")
        assert response.status_code == 200
        assert response.json()["email"] == user.email

    def test_not_found(self, admin_client):
        response = admin_client.get("/users/missing")
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_user_role_is_forbidden(self, user_client, make_user):
        user = make_user()
        assert user_client.get(f"/users/{user.id}").status_code == 403


class TestUpdateUser:

    def test_partial_update(self, admin_client, make_user):
        user = make_user(name="Ana")
        response = admin_client.put(f"/users/{user.id}", json={"role": "ADMIN"})
        assert response.status_code == 200
        assert response.json()["role"] == "ADMIN"
        assert response.json()["name"] == "Ana"

    def test_null_role_is_rejected(self, admin_client, make_user):
        user = make_user()
        response = admin_client.put(f"/users/{user.id}", json={"role": None})
        assert response.status_code == 400

    def test_not_found(self, admin_client):
        assert admin_client.put("/users/missing", json={"name": "x"}).status_code == 404


class TestDeleteUser:

    def test_removes_user_and_movements(self, admin_client, make_user, make_movement, db_session):
        user = make_user()
        make_movement(user)

        response = admin_client.delete(f"/users/{user.id}")
        assert response.status_code == 204
        assert db_session.query(User).filter(User.role == RoleEnum.USER).count() == 0
        assert db_session.query(Movement).count() == 0

    def test_not_found(self, admin_client):
        assert admin_client.delete("/users/missing").status_code == 404


class TestMethodNotAllowed:

    def test_item(self, admin_client, make_user):
        user = make_user()
        response = admin_client.patch(f"/users/{user.id}")
        assert response.status_code == 405
        assert set(response.headers["allow"].split(", ")) == {"GET", "PUT", "DELETE"}


class TestStoreFailure:

    @pytest.fixture
    def failing_commit(self, monkeypatch, db_session):
        def commit():
            raise OperationalError("INSERT INTO users", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", commit)

    def test_store_message_is_passed_through(self, admin_client, failing_commit, caplog):
        with caplog.at_level("ERROR", logger="routers.users"):
            response = admin_client.post("/users", json={"name": "Ana", "email": "ana@finance.io"})

        assert response.status_code == 500
        assert response.json() == {"error": "disk I/O error"}
        assert "User store operation failed" in caplog.text
