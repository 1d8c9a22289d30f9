'''

'''
from datetime import datetime
from pydantic import BaseModel

from ..database.db_enums import UserRole

class TokenPayload(BaseModel):
    sub: int # 'sub' is the standard JWT claim for subject (the row id for the role)
    role: UserRole
    iat: datetime
    exp: datetime

class Principal(BaseModel):
    """The verified identity behind a request. Only produced by the token decoder."""
    role: UserRole
    subject_id: int
