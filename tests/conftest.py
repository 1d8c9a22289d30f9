'''
Pytest configuration for the FastAPI application.

This file sets up fixtures for:
1. Forcing the application into TEST_MODE before any code is imported.
2. Seeding a fresh SQLite database file for each test.
3. Providing a FastAPI TestClient for endpoint testing.
4. Providing instances of all service classes, pre-injected with a test db session.
'''

import os

# Must happen before the settings object is created on first import
os.environ["TEST_MODE"] = "True"
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

import pytest
from typing import AsyncGenerator

# --- FastAPI & Testing Imports ---
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# --- Constant Imports ----
from tests.constants import (
    TEST_ADMIN_ID,
    TEST_GUARDIAN_ID,
    TEST_UNRELATED_GUARDIAN_ID,
    TEST_STUDENT_ID,
)
from tests.database.seed_test_db import seed_database

# --- Application Imports ---
from src.food_ledger.main import app
from src.food_ledger.common.config import settings
from src.food_ledger.database.db_enums import UserRole
from src.food_ledger.models.token import Principal
from src.food_ledger.services.access_control import AccessGate
from src.food_ledger.services.ledger_service import LedgerService, PaymentService
from src.food_ledger.services.student_service import StudentService
from src.food_ledger.services.auth_service import LoginService


@pytest.fixture(scope="session")
def anyio_backend():
    """
    Override the default 'anyio_backend' fixture.
    1. Forces the backend to 'asyncio' (aiosqlite has no trio support).
    2. Promotes the scope to 'session' (solves 'ScopeMismatch').
    """
    return "asyncio"


# --- 1. Per-Test Database ---

@pytest.fixture(scope="function")
def database_path(tmp_path) -> str:
    """Seeds a brand new SQLite file for the test and returns its path."""
    path = str(tmp_path / "food_ledger_test.db")
    seed_database(path)
    return path


# --- 2. App Client (For API Tests) ---

@pytest.fixture(scope="function")
def client(database_path: str, monkeypatch) -> TestClient:
    """
    The core fixture for endpoint tests.

    1. Verifies TEST_MODE so the production database is never touched.
    2. Points the test database URL at this test's seeded file.
    3. Runs the app's lifespan, which creates the *real* database engine.
    The real `get_db_session` is used, so commits behave as in production.
    """
    assert settings.TEST_MODE is True, \
        "TEST_MODE was not set to True! Check your .env file or environment."

    monkeypatch.setattr(settings, "DATABASE_URL_TEST", f"sqlite+aiosqlite:///{database_path}")

    # This 'with' block runs the app's startup lifespan,
    # which creates the engine and session factory.
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# --- 3. Function-Scoped Session Fixture (For Service Tests) ---

@pytest.fixture(scope="function")
async def db_session(database_path: str) -> AsyncGenerator[AsyncSession, None]:
    """
    Provides a single database session on this test's seeded file for
    service-level tests. Only the write methods that commit persist anything.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{database_path}", echo=False)
    AsyncSessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    session = AsyncSessionLocal()
    try:
        yield session
    finally:
        await session.rollback()
        await session.close()
        await engine.dispose()


# --- 4. SERVICE FIXTURES ---

@pytest.fixture(scope="function")
def access_gate(db_session: AsyncSession) -> AccessGate:
    return AccessGate(db=db_session)

@pytest.fixture(scope="function")
def ledger_service(db_session: AsyncSession, access_gate: AccessGate) -> LedgerService:
    return LedgerService(db=db_session, access_gate=access_gate)

@pytest.fixture(scope="function")
def payment_service(db_session: AsyncSession, access_gate: AccessGate) -> PaymentService:
    return PaymentService(db=db_session, access_gate=access_gate)

@pytest.fixture(scope="function")
def student_service(db_session: AsyncSession, access_gate: AccessGate) -> StudentService:
    return StudentService(db=db_session, access_gate=access_gate)

@pytest.fixture(scope="function")
def login_service(
    db_session: AsyncSession,
    ledger_service: LedgerService,
    student_service: StudentService
) -> LoginService:
    return LoginService(db=db_session, ledger_service=ledger_service, student_service=student_service)


# --- 5. PRINCIPAL FIXTURES ---

@pytest.fixture(scope="function")
def admin_principal() -> Principal:
    return Principal(role=UserRole.ADMIN, subject_id=TEST_ADMIN_ID)

@pytest.fixture(scope="function")
def guardian_principal() -> Principal:
    return Principal(role=UserRole.GUARDIAN, subject_id=TEST_GUARDIAN_ID)

@pytest.fixture(scope="function")
def unrelated_guardian_principal() -> Principal:
    return Principal(role=UserRole.GUARDIAN, subject_id=TEST_UNRELATED_GUARDIAN_ID)

@pytest.fixture(scope="function")
def student_principal() -> Principal:
    return Principal(role=UserRole.STUDENT, subject_id=TEST_STUDENT_ID)
