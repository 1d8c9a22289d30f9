import pytest

from src.food_ledger.common.exceptions import ForbiddenError
from src.food_ledger.database.db_enums import UserRole
from src.food_ledger.models.token import Principal
from src.food_ledger.services.access_control import AccessGate

from tests.constants import (
    TEST_STUDENT_ID,
    TEST_STUDENT_WITH_PAYMENTS_ID,
    TEST_UNRELATED_STUDENT_ID,
    TEST_ORPHAN_STUDENT_ID,
    TEST_NONEXISTENT_STUDENT_ID,
)


@pytest.mark.anyio
class TestAccessGate:

    async def test_admin_reads_any_student(self, access_gate: AccessGate, admin_principal: Principal):
        for student_id in (TEST_STUDENT_ID, TEST_UNRELATED_STUDENT_ID, TEST_ORPHAN_STUDENT_ID):
            await access_gate.authorize_student_read(admin_principal, student_id)

    async def test_admin_passes_for_unknown_student(self, access_gate: AccessGate, admin_principal: Principal):
        """Admins get past the gate; the caller then reports the missing student as 404."""
        await access_gate.authorize_student_read(admin_principal, TEST_NONEXISTENT_STUDENT_ID)

    async def test_guardian_reads_own_students(self, access_gate: AccessGate, guardian_principal: Principal):
        await access_gate.authorize_student_read(guardian_principal, TEST_STUDENT_ID)
        await access_gate.authorize_student_read(guardian_principal, TEST_STUDENT_WITH_PAYMENTS_ID)

    @pytest.mark.parametrize("student_id", [
        TEST_UNRELATED_STUDENT_ID,
        TEST_ORPHAN_STUDENT_ID,
        TEST_NONEXISTENT_STUDENT_ID,
    ])
    async def test_guardian_denied_other_students(
        self,
        access_gate: AccessGate,
        guardian_principal: Principal,
        student_id: int
    ):
        with pytest.raises(ForbiddenError) as e:
            await access_gate.authorize_student_read(guardian_principal, student_id)
        assert e.value.status_code == 403

    async def test_student_reads_self(self, access_gate: AccessGate, student_principal: Principal):
        await access_gate.authorize_student_read(student_principal, TEST_STUDENT_ID)

    @pytest.mark.parametrize("student_id", [
        TEST_STUDENT_WITH_PAYMENTS_ID,
        TEST_NONEXISTENT_STUDENT_ID,
    ])
    async def test_student_denied_other_students(
        self,
        access_gate: AccessGate,
        student_principal: Principal,
        student_id: int
    ):
        with pytest.raises(ForbiddenError):
            await access_gate.authorize_student_read(student_principal, student_id)

    async def test_unrelated_guardian_denied(
        self,
        access_gate: AccessGate,
        unrelated_guardian_principal: Principal
    ):
        with pytest.raises(ForbiddenError):
            await access_gate.authorize_student_read(unrelated_guardian_principal, TEST_STUDENT_ID)
        await access_gate.authorize_student_read(unrelated_guardian_principal, TEST_UNRELATED_STUDENT_ID)

    async def test_require_role(self, access_gate: AccessGate, admin_principal: Principal, guardian_principal: Principal):
        access_gate.require_role(admin_principal, [UserRole.ADMIN])
        with pytest.raises(ForbiddenError):
            access_gate.require_role(guardian_principal, [UserRole.ADMIN])
