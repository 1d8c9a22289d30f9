'''

'''
from typing import Annotated
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .security import JWTHandler
from .ledger_service import LedgerService
from .student_service import StudentService
from ..common.exceptions import InvalidCredentialsError, NotFoundError
from ..common.security_utils import HashedPassword
from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole
from ..models import user as user_models
from ..common.logger import log

class LoginService:
    """
    Resolves the three login shapes (admin, guardian, student code)
    to a role-bound access token and a profile.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        ledger_service: Annotated[LedgerService, Depends(LedgerService)],
        student_service: Annotated[StudentService, Depends(StudentService)]
    ):
        self.db = db
        self.ledger_service = ledger_service
        self.student_service = student_service

    async def _login_with_password(self, model, role: UserRole, credentials: user_models.LoginRequest) -> user_models.LoginResponse:
        log.info(f"Attempting {role.value} login for: {credentials.full_name}")

        stmt = select(model).filter(model.full_name == credentials.full_name)
        result = await self.db.execute(stmt)
        account = result.scalars().first()

        if account is None:
            HashedPassword.dummy_verify()
            log.warning(f"{role.value} login failed for '{credentials.full_name}' - name not found")
            raise InvalidCredentialsError()

        is_valid, new_hash = HashedPassword.verify_and_update(credentials.password, account.password)
        if not is_valid:
            log.warning(f"{role.value} login failed for '{credentials.full_name}' - wrong password")
            raise InvalidCredentialsError()

        if new_hash is not None:
            account.password = new_hash
            await self.db.commit()
            log.info(f"Upgraded the password hash of {role.value} {account.id}.")

        access_token = JWTHandler.create_access_token(role=role, subject_id=account.id)
        log.info(f"{role.value} login successful for: {credentials.full_name}")

        return user_models.LoginResponse(
            access_token=access_token,
            user=user_models.UserProfile(id=account.id, full_name=account.full_name, role=role)
        )

    async def login_admin(self, credentials: user_models.LoginRequest) -> user_models.LoginResponse:
        return await self._login_with_password(db_models.Admins, UserRole.ADMIN, credentials)

    async def login_guardian(self, credentials: user_models.LoginRequest) -> user_models.LoginResponse:
        return await self._login_with_password(db_models.Guardians, UserRole.GUARDIAN, credentials)

    async def login_student(self, student_code: str) -> user_models.LoginResponse:
        """
        Passwordless login by external student code. This identifies the student,
        it does not authenticate them, so the token only grants read access to their own ledger.
        """
        log.info(f"Attempting student login for code: {student_code}")
        student = await self.student_service.get_student_by_code(student_code)
        if student is None:
            log.warning(f"Student login failed - no student with code {student_code}")
            raise NotFoundError("No student with this code was found.")

        balance = await self.ledger_service.get_balance(student.id)
        access_token = JWTHandler.create_access_token(role=UserRole.STUDENT, subject_id=student.id)
        log.info(f"Student login successful for student {student.id}")

        return user_models.LoginResponse(
            access_token=access_token,
            user=user_models.StudentProfile(
                id=student.id,
                full_name=student.display_name,
                student_code=student.student_code,
                balance=balance,
                guardian_name=student.guardian.full_name if student.guardian else None
            )
        )
