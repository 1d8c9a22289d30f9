'''

'''
import asyncio

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager

from .database import engine as db_engine
from .common.exceptions import AppError, ServiceUnavailableError
from .common.logger import log
from .common.config import settings
from .api import auth, students, payments

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles application startup and shutdown events.
    """
    # --- On App Startup ---
    log.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}...")
    db_engine.create_db_engine_and_session_factory()

    yield # --- Application is now running ---

    # --- On App Shutdown ---
    log.info("Application lifespan shutdown...")
    await db_engine.dispose_db_engine()


# ---- CREATING THE APP ----
app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# --- Add CORS Middleware ---
origins = [
    # URLs of local frontends (CRA and Vite dev servers)
    "http://localhost:3000",
    "http://localhost:5173",
]

# Extend with environment-specific origins
origins.extend(settings.BACKEND_CORS_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],)
# --- End of CORS Middleware ---


# --- Error Handlers ---

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": exc.kind, "detail": exc.detail},
        headers=exc.headers,
    )

@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"kind": "ValidationError", "detail": jsonable_encoder(exc.errors())},
    )

@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    # Full detail stays in the server log; the client only learns the kind.
    log.error(f"Storage error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    error = ServiceUnavailableError()
    return JSONResponse(
        status_code=error.status_code,
        content={"kind": error.kind, "detail": error.detail},
    )

@app.exception_handler(asyncio.TimeoutError)
async def timeout_error_handler(request: Request, exc: asyncio.TimeoutError):
    log.error(f"Timed out on {request.method} {request.url.path}", exc_info=exc)
    error = ServiceUnavailableError()
    return JSONResponse(
        status_code=error.status_code,
        content={"kind": error.kind, "detail": error.detail},
    )

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.critical(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"kind": AppError.kind, "detail": AppError.default_detail},
    )


# --- Health ---

@app.get("/")
async def root():
    return {"status": "ok", "message": f"{settings.APP_NAME} is running"}

@app.get("/api/health")
async def health_check():
    """
    Reports whether the API is up and the database answers.
    """
    if await db_engine.check_db_connection():
        return {"status": "ok", "database": "connected"}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "error", "database": "disconnected"},
    )

app.include_router(auth.router)
app.include_router(students.router)
app.include_router(payments.router)
