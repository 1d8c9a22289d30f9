import pytest
from datetime import timedelta
from decimal import Decimal
from fastapi.testclient import TestClient
from jose import jwt

from src.food_ledger.common.config import settings
from src.food_ledger.database.db_enums import UserRole
from src.food_ledger.services.security import JWTHandler
from tests.constants import (
    TEST_ADMIN_ID,
    TEST_ADMIN_NAME,
    TEST_GUARDIAN_NAME,
    TEST_PASSWORD_ADMIN,
    TEST_PASSWORD_GUARDIAN,
    TEST_STUDENT_ID,
    TEST_STUDENT_WITH_PAYMENTS_ID,
    TEST_STUDENT_WITH_PAYMENTS_CODE,
    TEST_STUDENT_WITH_PAYMENTS_BALANCE,
    TEST_NONEXISTENT_STUDENT_CODE,
)


class TestAuthAPI:
    """
    Tests for the login endpoints and for how the API treats bad tokens.
    """

    # --- Password Logins ---

    def test_login_admin_success(self, client: TestClient):
        response = client.post(
            "/api/admin/login",
            json={"full_name": TEST_ADMIN_NAME, "password": TEST_PASSWORD_ADMIN}
        )

        assert response.status_code == 200, response.json()
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "admin"
        assert data["user"]["full_name"] == TEST_ADMIN_NAME
        print("Admin login successful.")

    def test_login_guardian_success(self, client: TestClient):
        response = client.post(
            "/api/parent/login",
            json={"full_name": TEST_GUARDIAN_NAME, "password": TEST_PASSWORD_GUARDIAN}
        )

        assert response.status_code == 200, response.json()
        assert response.json()["user"]["role"] == "guardian"

    def test_admin_token_works_on_admin_endpoint(self, client: TestClient):
        login = client.post(
            "/api/admin/login",
            json={"full_name": TEST_ADMIN_NAME, "password": TEST_PASSWORD_ADMIN}
        )
        token = login.json()["access_token"]

        response = client.get("/api/students", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200, response.json()

    def test_wrong_password_and_unknown_name_are_indistinguishable(self, client: TestClient):
        wrong_password = client.post(
            "/api/admin/login",
            json={"full_name": TEST_ADMIN_NAME, "password": "not-the-password"}
        )
        unknown_name = client.post(
            "/api/admin/login",
            json={"full_name": "Nobody At All", "password": "not-the-password"}
        )

        assert wrong_password.status_code == 401
        assert unknown_name.status_code == 401
        assert wrong_password.json() == unknown_name.json()
        assert wrong_password.json()["kind"] == "InvalidCredentials"

    def test_guardian_credentials_rejected_by_admin_login(self, client: TestClient):
        response = client.post(
            "/api/admin/login",
            json={"full_name": TEST_GUARDIAN_NAME, "password": TEST_PASSWORD_GUARDIAN}
        )
        assert response.status_code == 401

    def test_login_missing_fields(self, client: TestClient):
        response = client.post("/api/admin/login", json={"full_name": TEST_ADMIN_NAME})

        assert response.status_code == 422
        assert response.json()["kind"] == "ValidationError"

    # --- Student Login ---

    def test_student_login_by_code(self, client: TestClient):
        response = client.get(f"/api/student/login/{TEST_STUDENT_WITH_PAYMENTS_CODE}")

        assert response.status_code == 200, response.json()
        user = response.json()["user"]
        assert user["id"] == TEST_STUDENT_WITH_PAYMENTS_ID
        assert user["role"] == "student"
        assert user["guardian_name"] == TEST_GUARDIAN_NAME
        assert Decimal(user["balance"]) == TEST_STUDENT_WITH_PAYMENTS_BALANCE

    def test_student_login_unknown_code(self, client: TestClient):
        response = client.get(f"/api/student/login/{TEST_NONEXISTENT_STUDENT_CODE}")

        assert response.status_code == 404
        assert response.json()["kind"] == "NotFound"

    def test_student_token_reads_own_balance_only(self, client: TestClient):
        login = client.get(f"/api/student/login/{TEST_STUDENT_WITH_PAYMENTS_CODE}")
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        own = client.get(f"/api/students/{TEST_STUDENT_WITH_PAYMENTS_ID}/balance", headers=headers)
        other = client.get(f"/api/students/{TEST_STUDENT_ID}/balance", headers=headers)

        assert own.status_code == 200
        assert other.status_code == 403

    # --- Token Handling ---

    def test_missing_token(self, client: TestClient):
        response = client.get("/api/students")

        assert response.status_code == 401
        assert response.json()["kind"] == "Unauthorized"

    def test_expired_token(self, client: TestClient):
        token = JWTHandler.create_access_token(UserRole.ADMIN, TEST_ADMIN_ID, expires_delta=timedelta(minutes=-1))
        response = client.get("/api/students", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["kind"] == "Unauthorized"

    def test_tampered_token(self, client: TestClient):
        """Re-signing an elevated claim with a different key must not work."""
        guardian_token = JWTHandler.create_access_token(UserRole.GUARDIAN, 1)
        claims = jwt.get_unverified_claims(guardian_token)
        claims["role"] = UserRole.ADMIN.value
        forged = jwt.encode(claims, "some-other-key", algorithm=settings.ALGORITHM)

        response = client.get("/api/students", headers={"Authorization": f"Bearer {forged}"})
        assert response.status_code == 401

    def test_garbage_token(self, client: TestClient):
        response = client.get("/api/students", headers={"Authorization": "Bearer not.a.jwt"})
        assert response.status_code == 401

    def test_token_for_deleted_subject(self, client: TestClient):
        token = JWTHandler.create_access_token(UserRole.ADMIN, 424242)
        response = client.get("/api/students", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.parametrize("role", [UserRole.GUARDIAN, UserRole.STUDENT])
    def test_non_admin_cannot_list_all_students(self, client: TestClient, role: UserRole):
        token = JWTHandler.create_access_token(role, 1)
        response = client.get("/api/students", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["kind"] == "Forbidden"
