'''
API endpoints for students and their ledgers.
'''
from datetime import date
from typing import Annotated, Any, Optional
from fastapi import APIRouter, Depends, Query, status

from ..models import ledger as ledger_models
from ..models import user as user_models
from ..models.token import Principal
from ..services.security import get_current_principal
from ..services.ledger_service import LedgerService
from ..services.student_service import StudentService

class StudentsAPI:
    """
    A class to encapsulate endpoints for students, their payments and balances.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/api",
            tags=["Students"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
                "/students",
                self.list_students,
                methods=["GET"],
                response_model=list[user_models.StudentRead])
        self.router.add_api_route(
                "/students",
                self.create_student,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=user_models.StudentRead)
        self.router.add_api_route(
                "/parent/students",
                self.list_own_students,
                methods=["GET"],
                response_model=list[user_models.StudentRead])
        self.router.add_api_route(
                "/students/{student_id}/payments",
                self.list_payments,
                methods=["GET"],
                response_model=list[ledger_models.PaymentRead])
        self.router.add_api_route(
                "/students/{student_id}/balance",
                self.get_balance,
                methods=["GET"],
                response_model=ledger_models.BalanceRead)

    async def list_students(
        self,
        principal: Annotated[Principal, Depends(get_current_principal)],
        ledger_service: Annotated[LedgerService, Depends(LedgerService)]
    ) -> list[Any]:
        """
        Lists every student with guardian name and balance. Restricted to administrators.
        """
        return await ledger_service.get_all_students_for_api(principal)

    async def create_student(
        self,
        student_data: user_models.StudentCreate,
        principal: Annotated[Principal, Depends(get_current_principal)],
        student_service: Annotated[StudentService, Depends(StudentService)]
    ) -> Any:
        """
        Creates a student. Restricted to administrators.
        """
        return await student_service.create_student(student_data, principal)

    async def list_own_students(
        self,
        principal: Annotated[Principal, Depends(get_current_principal)],
        ledger_service: Annotated[LedgerService, Depends(LedgerService)]
    ) -> list[Any]:
        """
        Lists the students linked to the calling guardian.
        """
        return await ledger_service.get_own_students_for_api(principal)

    async def list_payments(
        self,
        student_id: int,
        principal: Annotated[Principal, Depends(get_current_principal)],
        ledger_service: Annotated[LedgerService, Depends(LedgerService)]
    ) -> list[Any]:
        """
        Retrieves a student's payment history, newest first.
        """
        return await ledger_service.get_payments_for_api(student_id, principal)

    async def get_balance(
        self,
        student_id: int,
        principal: Annotated[Principal, Depends(get_current_principal)],
        ledger_service: Annotated[LedgerService, Depends(LedgerService)],
        as_of: Annotated[Optional[date], Query(description="Balance as of this date (default: today)")] = None
    ) -> Any:
        """
        Retrieves a student's balance as of a date.
        """
        return await ledger_service.get_balance_for_api(student_id, principal, as_of)

# Instantiate the class and export its router
students_api = StudentsAPI()
router = students_api.router
