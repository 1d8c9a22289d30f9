'''

'''
from typing import Annotated
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core import ledger
from ..common.exceptions import ConflictError, NotFoundError
from ..common.logger import log
from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole
from ..models import user as user_models
from ..models.token import Principal
from .access_control import AccessGate


class StudentService:
    """
    Lookup and creation of student records.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        access_gate: Annotated[AccessGate, Depends(AccessGate)]
    ):
        self.db = db
        self.access_gate = access_gate

    async def get_student_by_code(self, student_code: str) -> db_models.Students | None:
        """
        Fetches a student by their external code (exact match), with the guardian eagerly loaded.
        """
        log.info(f"Fetching student by code: {student_code}")
        stmt = select(db_models.Students).options(
            selectinload(db_models.Students.guardian)
        ).filter(db_models.Students.student_code == student_code)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_student(self, student_data: user_models.StudentCreate, principal: Principal) -> user_models.StudentRead:
        """
        Creates a new student. Restricted to administrators.
        The student code must be unique since it doubles as the passwordless login key.
        """
        self.access_gate.require_role(principal, [UserRole.ADMIN])

        if await self.get_student_by_code(student_data.student_code) is not None:
            log.warning(f"Attempted to create a student with duplicate code {student_data.student_code}.")
            raise ConflictError("A student with this code already exists.")

        guardian = None
        if student_data.guardian_id is not None:
            guardian = await self.db.get(db_models.Guardians, student_data.guardian_id)
            if guardian is None:
                raise NotFoundError("Guardian not found.")

        new_student = db_models.Students(
            display_name=student_data.display_name.strip(),
            student_code=student_data.student_code,
            guardian_id=student_data.guardian_id
        )
        self.db.add(new_student)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # Another request inserted the same code after the check above
            log.warning(f"Student insert rejected by a constraint: {e}")
            raise ConflictError("A student with this code already exists.")
        log.info(f"Student {new_student.id} ({new_student.student_code}) created by admin {principal.subject_id}.")
        await self.db.commit()

        return user_models.StudentRead(
            id=new_student.id,
            display_name=new_student.display_name,
            student_code=new_student.student_code,
            guardian_id=new_student.guardian_id,
            guardian_name=guardian.full_name if guardian else None,
            balance=ledger.ZERO
        )
