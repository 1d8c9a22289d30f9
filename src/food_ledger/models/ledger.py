'''
Pydantic models for payments and balances.
'''
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- 1. API Input Models (for POST) ---

class PaymentCreate(BaseModel):
    """
    Validates the request body for appending a payment to a student's ledger.
    Positive amounts are top-ups, negative amounts are deductions.
    """
    student_id: int
    payment_date: date
    amount: Decimal = Field(..., max_digits=10, decimal_places=2)
    description: str = Field(..., max_length=1000)

    @field_validator("amount")
    @classmethod
    def amount_not_zero(cls, value: Decimal) -> Decimal:
        if value == 0:
            raise ValueError("Amount must not be zero.")
        return value

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Description must not be empty.")
        return value

class PaymentReversalCreate(BaseModel):
    """
    Optional explanation attached to a reversal entry.
    """
    description: Optional[str] = Field(None, max_length=1000)


# --- 2. API Output Models (for GET) ---

class PaymentRead(BaseModel):
    """
    The API model for a single ledger entry.
    """
    id: int
    student_id: int
    payment_date: date
    amount: Decimal
    description: str
    created_at: datetime
    created_by: int
    reversal_of_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

class BalanceRead(BaseModel):
    student_id: int
    as_of: date
    balance: Decimal
