'''
Token issuing and verification.

Tokens are signed, time-bound JWT claims binding a role to a subject id.
The role a request acts under only ever comes out of `JWTHandler.decode_token`.
'''
from datetime import datetime, timedelta, timezone
from typing import Optional, Annotated
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..common.config import settings
from ..common.exceptions import UnauthorizedError
from ..common.logger import log
from ..database import models as db_models
from ..database.db_enums import UserRole
from ..database.engine import get_db_session
from ..models.token import TokenPayload, Principal

# --- JWT Handling ---
class JWTHandler:
    @staticmethod
    def create_access_token(
        role: UserRole,
        subject_id: int,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        issued_at = datetime.now(timezone.utc)
        to_encode = {
            "sub": str(subject_id),
            "role": UserRole(role).value,
            "iat": issued_at,
            "exp": issued_at + expires_delta,
        }
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> TokenPayload | None:
        """
        Verifies signature and expiry. Returns None for anything that is not a valid claim.
        """
        try:
            payload = jwt.decode(
                token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
            )
            return TokenPayload(**payload)
        except (JWTError, ValidationError, ValueError) as e:
            log.warning(f"JWT decode/validation error: {e}")
            return None


# --- Verification Dependency ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/admin/login", auto_error=False)

_SUBJECT_MODELS = {
    UserRole.ADMIN: db_models.Admins,
    UserRole.GUARDIAN: db_models.Guardians,
    UserRole.STUDENT: db_models.Students,
}

async def get_current_principal(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db_session)]
) -> Principal:
    """
    Dependency that verifies the bearer token and checks its subject still exists.
    Raises UnauthorizedError (401) otherwise.
    """
    if not token:
        log.warning("Request without a bearer token.")
        raise UnauthorizedError("Not authenticated.")

    token_data = JWTHandler.decode_token(token)
    if token_data is None:
        raise UnauthorizedError()

    subject = await db.get(_SUBJECT_MODELS[token_data.role], token_data.sub)
    if subject is None:
        log.warning(f"Token subject {token_data.role.value}:{token_data.sub} no longer exists.")
        raise UnauthorizedError()

    return Principal(role=token_data.role, subject_id=token_data.sub)
