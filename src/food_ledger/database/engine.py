'''
Async engine and session lifecycle.

The engine and session factory live for the lifetime of the app (created and
disposed by the lifespan); sessions live for one request.
'''
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, AsyncEngine, async_sessionmaker
from typing import AsyncGenerator, Any
from ..common.config import settings
from ..common.exceptions import AppError
from ..common.logger import log

# We define them as None. They will be created by the app's lifespan.
engine: AsyncEngine | None = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None

def _engine_options(database_url: str) -> dict[str, Any]:
    """
    Builds the engine keyword arguments for the given backend.
    SQLite has no server pool, so the pool/timeout settings only apply to PostgreSQL.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return {"echo": False, "connect_args": {"timeout": settings.DB_CONNECT_TIMEOUT_SECONDS}}

    return {
        "echo": False,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT_SECONDS,
        "pool_recycle": -1,
        "pool_pre_ping": True,
        "connect_args": {
            "connect_timeout": settings.DB_CONNECT_TIMEOUT_SECONDS,
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}",
        },
    }

def create_db_engine_and_session_factory():
    """
    Creates the engine and session factory.
    This is called by the app's lifespan event.
    """
    global engine, AsyncSessionLocal

    log.info("Creating database engine...")
    try:
        # 1. Create the asynchronous engine
        engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

        # 2. Create the AsyncSessionLocal factory
        AsyncSessionLocal = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
        log.info("Async database engine and session factory created successfully.")
    except Exception as e:
        log.critical(f"Failed to create async database engine: {e}", exc_info=True)
        raise

async def dispose_db_engine():
    """Disposes of the engine. Called by the app's lifespan."""
    global engine, AsyncSessionLocal
    if engine:
        await engine.dispose()
        log.info("Database engine disposed.")
    engine = None
    AsyncSessionLocal = None

async def check_db_connection() -> bool:
    """Runs a trivial query to find out whether the database answers."""
    if engine is None:
        return False
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        log.error(f"Database connectivity check failed: {e}", exc_info=True)
        return False

async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Per-request session. One request is one transaction: write services commit
    before the response is built, anything left is committed on exit, and it
    rolls back when anything raises.
    """
    if AsyncSessionLocal is None:
        log.error("AsyncSessionLocal is not initialized. App lifespan may not have run.")
        raise RuntimeError("Database session factory is not available.")

    session = AsyncSessionLocal()
    try:
        yield session
        await session.commit()
    except AppError as e:
        # Rejected request (bad input, denied access); nothing to write
        await session.rollback()
        log.info(f"Request rejected with {e.kind}, session rolled back.")
        raise
    except Exception as e:
        await session.rollback()
        log.error(f"Database session rolled back due to error: {e}")
        raise
    finally:
        await session.close()
