"""
Esports Scheduler API - Main Application Entry Point

Facility booking for shared esports computers:
- Multi-computer reservation groups created, edited and deleted atomically
- Double-booking and blackout prevention with resource-keyed row locks
- Live change notifications over Server-Sent Events
- Structured logging with request correlation
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from esports_scheduler.core.config import get_settings
from esports_scheduler.core.exceptions import SchedulerError
from esports_scheduler.core.logging import setup_logging, get_logger
from esports_scheduler.core.metrics import metrics_endpoint
from esports_scheduler.api.router import api_router
from esports_scheduler.api.middleware import RequestLoggingMiddleware
from esports_scheduler.services.notifier_factory import get_notifier, close_notifier

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        notifier=settings.NOTIFIER_BACKEND,
    )

    await get_notifier().start()

    yield

    await close_notifier()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Esports facility booking API with conflict-checked reservations",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

# Routes
app.include_router(api_router)


@app.exception_handler(SchedulerError)
async def scheduler_error_handler(request: Request, exc: SchedulerError):
    if exc.status_code >= 500:
        logger.error("request_error", error=exc.detail, error_type=type(exc).__name__)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, **exc.extra},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query strings are reported as 400 Invalid payload."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid payload", "errors": jsonable_encoder(exc.errors())},
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "notifier": settings.NOTIFIER_BACKEND,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
