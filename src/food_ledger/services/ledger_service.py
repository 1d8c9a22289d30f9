'''
Services for reading the ledger (balances, history, student listings) and
appending to it (payments, reversals).
'''
from datetime import date
from decimal import Decimal
from typing import Optional, Annotated
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core import ledger
from ..common.exceptions import NotFoundError, PaymentValidationError, ConflictError, ForbiddenError
from ..common.logger import log
from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole
from ..models import ledger as ledger_models
from ..models import user as user_models
from ..models.token import Principal
from .access_control import AccessGate

# --- Service 1: Ledger Queries ---

class LedgerService:
    """
    Read side of the ledger. Every call runs a fresh query; nothing is cached.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        access_gate: Annotated[AccessGate, Depends(AccessGate)]
    ):
        self.db = db
        self.access_gate = access_gate

    # --- Private Data-Fetching Helpers (No Auth) ---

    async def _get_student_internal(self, student_id: int) -> db_models.Students:
        """
        Internal helper to fetch a student by ID *without* authorization.
        Raises 404 if not found.
        """
        stmt = select(db_models.Students).options(
            selectinload(db_models.Students.guardian)
        ).filter(db_models.Students.id == student_id)
        result = await self.db.execute(stmt)
        student = result.scalars().first()
        if not student:
            raise NotFoundError("Student not found.")
        return student

    async def get_balance(self, student_id: int, as_of_date: Optional[date] = None) -> Decimal:
        """
        Sum of the student's signed payment amounts dated on or before `as_of_date` (default: today).
        Returns 0.00 when there is no history.
        """
        as_of_date = as_of_date or date.today()
        stmt = select(
            db_models.Payments.payment_date,
            db_models.Payments.amount
        ).filter(
            db_models.Payments.student_id == student_id,
            db_models.Payments.payment_date <= as_of_date
        )
        result = await self.db.execute(stmt)
        return ledger.balance_as_of(result.all(), as_of_date)

    async def get_balances(self, student_ids: Optional[list[int]] = None, as_of_date: Optional[date] = None) -> dict[int, Decimal]:
        """
        Balances for many students in one query. `None` means every student.
        """
        as_of_date = as_of_date or date.today()
        stmt = select(
            db_models.Payments.student_id,
            db_models.Payments.payment_date,
            db_models.Payments.amount
        ).filter(db_models.Payments.payment_date <= as_of_date)
        if student_ids is not None:
            if not student_ids:
                return {}
            stmt = stmt.filter(db_models.Payments.student_id.in_(student_ids))

        result = await self.db.execute(stmt)
        return ledger.balances_by_student(result.all(), as_of_date)

    async def list_payments(self, student_id: int) -> list[db_models.Payments]:
        """
        The student's payments, newest first: payment date, then creation time, then id.
        """
        stmt = select(db_models.Payments).filter(
            db_models.Payments.student_id == student_id
        ).order_by(
            db_models.Payments.payment_date.desc(),
            db_models.Payments.created_at.desc(),
            db_models.Payments.id.desc()
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_students(self, principal: Principal) -> list[user_models.StudentRead]:
        """
        Admins get every student; guardians get only their own. Ordered by display name.
        """
        stmt = select(db_models.Students).options(
            selectinload(db_models.Students.guardian)
        ).order_by(db_models.Students.display_name, db_models.Students.id)

        if principal.role == UserRole.GUARDIAN:
            stmt = stmt.filter(db_models.Students.guardian_id == principal.subject_id)
        elif principal.role != UserRole.ADMIN:
            log.warning(f"{principal.role.value} {principal.subject_id} is not authorized to list students.")
            raise ForbiddenError(f"User with role '{principal.role.value}' is not authorized to list students.")

        result = await self.db.execute(stmt)
        students = list(result.scalars().all())

        if principal.role == UserRole.ADMIN:
            balances = await self.get_balances()
        else:
            balances = await self.get_balances([student.id for student in students])

        return [self._format_student_for_api(student, balances.get(student.id, ledger.ZERO)) for student in students]

    # --- Public API-Facing Read Methods (With Auth) ---

    async def get_all_students_for_api(self, principal: Principal) -> list[user_models.StudentRead]:
        self.access_gate.require_role(principal, [UserRole.ADMIN])
        return await self.list_students(principal)

    async def get_own_students_for_api(self, principal: Principal) -> list[user_models.StudentRead]:
        self.access_gate.require_role(principal, [UserRole.GUARDIAN])
        return await self.list_students(principal)

    async def get_payments_for_api(self, student_id: int, principal: Principal) -> list[ledger_models.PaymentRead]:
        await self.access_gate.authorize_student_read(principal, student_id)
        await self._get_student_internal(student_id)

        payments = await self.list_payments(student_id)
        return [ledger_models.PaymentRead.model_validate(payment) for payment in payments]

    async def get_balance_for_api(self, student_id: int, principal: Principal, as_of_date: Optional[date] = None) -> ledger_models.BalanceRead:
        await self.access_gate.authorize_student_read(principal, student_id)
        await self._get_student_internal(student_id)

        as_of_date = as_of_date or date.today()
        balance = await self.get_balance(student_id, as_of_date)
        return ledger_models.BalanceRead(student_id=student_id, as_of=as_of_date, balance=balance)

    # --- API Formatting Method ---

    def _format_student_for_api(self, student: db_models.Students, balance: Decimal) -> user_models.StudentRead:
        return user_models.StudentRead(
            id=student.id,
            display_name=student.display_name,
            student_code=student.student_code,
            guardian_id=student.guardian_id,
            guardian_name=student.guardian.full_name if student.guardian else None,
            balance=balance
        )


# --- Service 2: Payment Mutation ---

class PaymentService:
    """
    Write side of the ledger. Payments are only ever inserted; a mistake is
    fixed by appending a reversal, never by editing or deleting a row.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        access_gate: Annotated[AccessGate, Depends(AccessGate)]
    ):
        self.db = db
        self.access_gate = access_gate

    def _validate_payment_fields(self, payment_date, amount, description) -> tuple[date, Decimal, str]:
        """
        Checks the raw fields and returns them normalized.
        Raises PaymentValidationError (422).
        """
        if isinstance(payment_date, str):
            try:
                payment_date = date.fromisoformat(payment_date)
            except ValueError:
                raise PaymentValidationError(f"'{payment_date}' is not a valid calendar date.")
        if not isinstance(payment_date, date):
            raise PaymentValidationError("Payment date must be a calendar date.")

        try:
            amount = ledger.to_money(amount)
        except ValueError as e:
            raise PaymentValidationError(str(e))
        if amount == 0:
            raise PaymentValidationError("Amount must not be zero.")

        description = (description or "").strip()
        if not description:
            raise PaymentValidationError("Description must not be empty.")

        return payment_date, amount, description

    async def add_payment(
        self,
        student_id: int,
        payment_date,
        amount,
        description: str,
        created_by: int,
        reversal_of_id: Optional[int] = None
    ) -> db_models.Payments:
        """
        Appends one payment row and returns it with its server-assigned id and timestamp.
        Only flushes; the `_for_api` callers commit before they respond.
        """
        payment_date, amount, description = self._validate_payment_fields(payment_date, amount, description)

        student = await self.db.get(db_models.Students, student_id)
        if student is None:
            log.warning(f"Attempted to add a payment for non-existent student {student_id}.")
            raise NotFoundError("Student not found.")

        new_payment = db_models.Payments(
            student_id=student_id,
            payment_date=payment_date,
            amount=amount,
            description=description,
            created_by=created_by,
            reversal_of_id=reversal_of_id
        )
        self.db.add(new_payment)
        try:
            await self.db.flush()
        except IntegrityError as e:
            log.warning(f"Payment insert rejected by a constraint: {e}")
            raise ConflictError("The payment conflicts with an existing ledger entry.")
        # Load server defaults (id, created_at)
        await self.db.refresh(new_payment)

        log.info(f"Payment {new_payment.id} of {amount} added for student {student_id} by admin {created_by}.")
        return new_payment

    async def _get_payment_internal(self, payment_id: int) -> db_models.Payments:
        payment = await self.db.get(db_models.Payments, payment_id)
        if payment is None:
            raise NotFoundError("Payment not found.")
        return payment

    async def reverse_payment(self, payment_id: int, created_by: int, description: Optional[str] = None) -> db_models.Payments:
        """
        Cancels a payment's effect by appending an entry with the negated amount, dated today.
        A payment can be reversed once, and a reversal cannot itself be reversed.
        """
        original = await self._get_payment_internal(payment_id)
        if original.reversal_of_id is not None:
            raise ConflictError("A reversal entry cannot be reversed.")

        stmt = select(db_models.Payments.id).filter(
            db_models.Payments.reversal_of_id == payment_id
        ).limit(1)
        result = await self.db.execute(stmt)
        if result.scalars().first() is not None:
            raise ConflictError(f"Payment {payment_id} has already been reversed.")

        return await self.add_payment(
            student_id=original.student_id,
            payment_date=date.today(),
            amount=-original.amount,
            description=description or f"Reversal of payment #{original.id}: {original.description}",
            created_by=created_by,
            reversal_of_id=original.id
        )

    # --- Public Write Methods (With Auth) ---

    async def create_payment_for_api(self, payment_data: ledger_models.PaymentCreate, principal: Principal) -> ledger_models.PaymentRead:
        log.info(f"Attempting to create payment by {principal.role.value} {principal.subject_id}")
        self.access_gate.require_role(principal, [UserRole.ADMIN])

        payment = await self.add_payment(
            student_id=payment_data.student_id,
            payment_date=payment_data.payment_date,
            amount=payment_data.amount,
            description=payment_data.description,
            created_by=principal.subject_id
        )
        # The row is durable before the response is built
        await self.db.commit()
        return ledger_models.PaymentRead.model_validate(payment)

    async def reverse_payment_for_api(self, payment_id: int, description: Optional[str], principal: Principal) -> ledger_models.PaymentRead:
        log.info(f"Attempting to reverse payment {payment_id} by {principal.role.value} {principal.subject_id}")
        self.access_gate.require_role(principal, [UserRole.ADMIN])

        payment = await self.reverse_payment(payment_id, principal.subject_id, description)
        await self.db.commit()
        return ledger_models.PaymentRead.model_validate(payment)
