'''
Password hashing for admin and guardian accounts.

Kept apart from the token code so the seeding script can hash passwords
without importing FastAPI.
'''
from passlib.context import CryptContext


class HashedPassword:
    """Thin wrapper over a bcrypt CryptContext. Plain passwords are never stored."""
    pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    @classmethod
    def get_hash(cls, password: str) -> str:
        return cls.pwd_context.hash(password)

    @classmethod
    def verify_and_update(cls, plain_password: str, hashed_password: str) -> tuple[bool, str | None]:
        """
        Checks the password and, when the stored hash uses outdated parameters,
        also returns a fresh hash for the caller to store. The second item is None otherwise.
        """
        return cls.pwd_context.verify_and_update(plain_password, hashed_password)

    @classmethod
    def dummy_verify(cls) -> None:
        """Takes as long as a real check; called when the account name is unknown."""
        cls.pwd_context.dummy_verify()
