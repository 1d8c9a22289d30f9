'''
API endpoints for appending payments to the ledger.
'''
from typing import Annotated, Any
from fastapi import APIRouter, Depends, status

from ..models import ledger as ledger_models
from ..models.token import Principal
from ..services.security import get_current_principal
from ..services.ledger_service import PaymentService

class PaymentsAPI:
    """
    A class to encapsulate endpoints for Payments.
    No update or delete endpoints: the ledger is append-only.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/api/payments",
            tags=["Payments"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
                "",
                self.create_payment,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=ledger_models.PaymentRead)
        self.router.add_api_route(
                "/{payment_id}/reversal",
                self.reverse_payment,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=ledger_models.PaymentRead)

    async def create_payment(
        self,
        payment_data: ledger_models.PaymentCreate,
        principal: Annotated[Principal, Depends(get_current_principal)],
        payment_service: Annotated[PaymentService, Depends(PaymentService)]
    ) -> Any:
        """
        Appends a signed payment to a student's ledger. Restricted to administrators.
        """
        return await payment_service.create_payment_for_api(payment_data, principal)

    async def reverse_payment(
        self,
        payment_id: int,
        principal: Annotated[Principal, Depends(get_current_principal)],
        payment_service: Annotated[PaymentService, Depends(PaymentService)],
        reversal_data: ledger_models.PaymentReversalCreate | None = None
    ) -> Any:
        """
        Appends an entry that cancels an earlier payment. Restricted to administrators.
        """
        description = reversal_data.description if reversal_data else None
        return await payment_service.reverse_payment_for_api(payment_id, description, principal)

# Instantiate the class and export its router
payments_api = PaymentsAPI()
router = payments_api.router
