import logging
import uuid

from fastapi import FastAPI, HTTPException, status
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.core import exceptions
from app.database import AsyncSessionLocal
from app.routers.achievements import router as achievements_router
from app.routers.events import router as events_router
from app.routers.gamification import router as gamification_router
from app.routers.waste_photos import router as waste_photos_router
from app.workers.classification_queue import classification_queue

logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# CORS must be added before other middleware
configured_origins = [str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS]
default_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
allow_origins = configured_origins if settings.APP_ENV == "production" else list(dict.fromkeys([*default_origins, *configured_origins]))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def attach_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response

# Exception Handlers
app.add_exception_handler(exceptions.AppException, exceptions.app_exception_handler)  # type: ignore
app.add_exception_handler(RequestValidationError, exceptions.validation_exception_handler)  # type: ignore
app.add_exception_handler(IntegrityError, exceptions.integrity_exception_handler)  # type: ignore

# Routers
app.include_router(gamification_router, prefix=f"{settings.API_V1_STR}/gamification", tags=["Gamification"])
app.include_router(achievements_router, prefix=f"{settings.API_V1_STR}/achievements", tags=["Achievements"])
app.include_router(waste_photos_router, prefix=f"{settings.API_V1_STR}/waste-photos", tags=["WastePhotos"])
app.include_router(events_router, prefix=f"{settings.API_V1_STR}/events", tags=["Events"])

@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/healthz")
async def healthz():
    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
    except Exception as exc:
        logger.exception("Health check failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="database unavailable",
        ) from exc
    return {
        "status": "ok",
        "database": "ok",
        "classification_queue": {
            "running": classification_queue.running,
            "pending": classification_queue.pending(),
            "failed": len(classification_queue.failed_jobs),
        },
    }

@app.get("/")
async def root():
    return {"message": "Welcome to the Smart Trash API", "docs": "/docs"}


@app.on_event("startup")
async def startup_classification_queue() -> None:
    _validate_security_settings()
    if not settings.CLASSIFICATION_QUEUE_ENABLED:
        logger.info("Classification queue disabled by config")
        return
    await classification_queue.recover_pending()
    classification_queue.start(settings.CLASSIFICATION_WORKER_CONCURRENCY)


@app.on_event("shutdown")
async def shutdown_classification_queue() -> None:
    await classification_queue.stop()


def _validate_security_settings() -> None:
    if settings.APP_ENV != "production":
        return

    errors: list[str] = []
    if len(settings.SECRET_KEY.strip()) < 24:
        errors.append("SECRET_KEY must be at least 24 characters in production.")
    if not settings.BACKEND_CORS_ORIGINS:
        errors.append("BACKEND_CORS_ORIGINS must be explicitly configured in production.")
    if settings.CLASSIFIER_PROVIDER.lower() == "http" and not settings.CLASSIFIER_API_URL:
        errors.append("CLASSIFIER_API_URL must be set when CLASSIFIER_PROVIDER is http.")

    if errors:
        raise RuntimeError("; ".join(errors))
