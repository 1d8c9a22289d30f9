'''
Pydantic models for login requests and the user/student payloads returned by the API.
'''
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..database.db_enums import UserRole

# --- 1. API Input Models ---

class LoginRequest(BaseModel):
    """
    Request body for administrator and guardian login.
    """
    full_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)

class StudentCreate(BaseModel):
    """
    Validates the request body for creating a new student.
    """
    display_name: str = Field(..., min_length=1, max_length=100)
    student_code: str = Field(..., pattern=r"^\d{1,32}$", description="Human-facing numeric student code")
    guardian_id: Optional[int] = None


# --- 2. API Output Models ---

class UserProfile(BaseModel):
    """
    Profile returned for an administrator or guardian after login.
    """
    id: int
    full_name: str
    role: UserRole

    model_config = ConfigDict(from_attributes=True)

class StudentProfile(BaseModel):
    """
    Profile returned for a student after passwordless login.
    """
    id: int
    full_name: str
    role: UserRole = UserRole.STUDENT
    student_code: str
    balance: Decimal
    guardian_name: Optional[str] = None

class StudentRead(BaseModel):
    """
    A student as listed for an administrator or guardian, with the derived balance.
    """
    id: int
    display_name: str
    student_code: str
    guardian_id: Optional[int] = None
    guardian_name: Optional[str] = None
    balance: Decimal


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Union[StudentProfile, UserProfile]
