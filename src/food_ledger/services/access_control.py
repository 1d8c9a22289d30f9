'''
Per-request access checks.

| resource                    | admin | guardian           | student        |
|-----------------------------|-------|--------------------|----------------|
| list all students           | yes   | no                 | no             |
| list own students           | no    | yes                | no             |
| read a student's ledger     | yes   | own students only  | self only      |
| create payments / students  | yes   | no                 | no             |
'''
from typing import Annotated
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..common.exceptions import ForbiddenError
from ..common.logger import log
from ..database import models as db_models
from ..database.db_enums import UserRole
from ..database.engine import get_db_session
from ..models.token import Principal


class AccessGate:
    """
    Decides whether a verified principal may touch a resource.
    Raises ForbiddenError (403) on denial.
    """
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    def require_role(self, principal: Principal, allowed_roles: list[UserRole]) -> None:
        """Helper to check general role permissions."""
        if principal.role not in allowed_roles:
            allowed_role_values = [role.value for role in allowed_roles]
            log.warning(f"Unauthorized action by {principal.role.value} {principal.subject_id}. Required one of: {allowed_role_values}")
            raise ForbiddenError()

    async def authorize_student_read(self, principal: Principal, student_id: int) -> None:
        """
        Checks that the principal may read one student's balance and payments.

        For guardians and students an unknown student id is reported exactly like
        somebody else's student, so the answer never reveals whether it exists.
        """
        if principal.role == UserRole.ADMIN:
            return

        if principal.role == UserRole.STUDENT:
            if student_id != principal.subject_id:
                log.warning(f"SECURITY: Student {principal.subject_id} tried to read student {student_id}.")
                raise ForbiddenError()
            return

        if principal.role == UserRole.GUARDIAN:
            stmt = select(db_models.Students.id).filter(
                db_models.Students.id == student_id,
                db_models.Students.guardian_id == principal.subject_id
            ).limit(1)
            result = await self.db.execute(stmt)
            if result.scalars().first() is None:
                log.warning(f"SECURITY: Guardian {principal.subject_id} tried to read student {student_id} they do not own.")
                raise ForbiddenError()
            return

        raise ForbiddenError("Unauthorized role.")
