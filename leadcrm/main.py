"""
Lead CRM Backend - FastAPI Application
Main entry point with all routes configured.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from leadcrm.config import settings
from leadcrm.database import init_db, get_sessionmaker
from leadcrm.core.exceptions import (
    CRMException, NotFoundError, AlreadyExistsError, ValidationError, PersistenceError
)
from leadcrm.services.user_service import UserService
from leadcrm.schemas.common import ErrorResponse, HealthResponse

# Import all API routers
from leadcrm.api import auth, users, leads

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        async with get_sessionmaker()() as session:
            await UserService(session).ensure_admin(
                settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, settings.ADMIN_NAME
            )
    yield
    # Shutdown


app = FastAPI(
    title="Lead CRM API",
    description="Lead assignment, follow-up and commission tracking for sales teams",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every failure is rendered as {"error": "..."}
_STATUS_BY_EXCEPTION = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AlreadyExistsError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


@app.exception_handler(CRMException)
async def crm_exception_handler(request: Request, exc: CRMException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for exc_type, code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            status_code = code
            break
    return JSONResponse(status_code=status_code, content={"error": exc.message})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.exception_handler(SQLAlchemyError)
async def persistence_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Data store error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc.orig) if getattr(exc, "orig", None) else str(exc)},
    )


# Include all routers; failures share the {"error": ...} body
error_responses = {code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 500)}
app.include_router(auth.router, responses=error_responses)
app.include_router(users.router, responses=error_responses)
app.include_router(leads.router, responses=error_responses)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "message": "Lead CRM API is running",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Detailed health check."""
    return HealthResponse()
