import asyncio
import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

# Import Core modules
from .core.config import settings
from .core.logging import configure_logging
from .middleware.correlation import CorrelationIdMiddleware
from .core.llm import LlmConfigurationError, build_llm_client
from .database import SessionLocal, init_db
from .services.health_service import SystemHealthService, ServiceStatus
from .services.settings_service import SettingsService
from .services.transcription import WhisperAsrClient

# Import Routers
from .api.v1.endpoints import meetings, transcription, summary, system
from .api.v1.endpoints import settings as settings_endpoints

# Configure Logging (JSON + Structlog)
configure_logging(log_level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
logger = logging.getLogger(__name__)

# Create database tables
init_db()

app = FastAPI(title=f"{settings.APP_NAME} API", version=settings.VERSION)

# Middleware
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded recordings are played back straight from disk
settings.uploads_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(settings.uploads_dir)), name="uploads")

# Include Routers
app.include_router(system.router, prefix="/api", tags=["system"])
app.include_router(meetings.router, prefix="/api", tags=["meetings"])
app.include_router(transcription.router, prefix="/api", tags=["transcription"])
app.include_router(summary.router, prefix="/api", tags=["summary"])
app.include_router(settings_endpoints.router, prefix="/api", tags=["settings"])

health_service = SystemHealthService()


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


async def check_upstreams(transport: Optional[httpx.AsyncBaseTransport] = None) -> bool:
    """
    Reachability check for the ASR and LLM services configured in stored
    settings. Updates the health components and returns True when both answer.
    """
    db = SessionLocal()
    try:
        stored = SettingsService(db).get_all()
    finally:
        db.close()

    transcriber = WhisperAsrClient(base_url=stored.get("whisper_base_path") or None, transport=transport)
    checks = [transcriber.check_connection()]
    try:
        checks.append(build_llm_client(stored, transport=transport).check_connection())
    except LlmConfigurationError as e:
        logger.warning(f"⚠️  LLM not configured: {e}")
        health_service.set_llm_status(ServiceStatus.UNAVAILABLE, str(e))

    results = await asyncio.gather(*checks)
    return len(results) == 2 and all(results)


@app.on_event("startup")
async def startup_event():
    logger.info(f"🚀 {settings.APP_NAME} backend listening on {settings.HOST}:{settings.PORT}")
    logger.info(f"Data directory: {settings.DATA_DIR.resolve()}")

    if settings.STARTUP_HEALTH_CHECK:
        if await check_upstreams():
            logger.info("✅ ASR and LLM services reachable")
        else:
            logger.warning("⚠️  Running in DEGRADED mode: see /api/system/status")
    logger.info(f"System status: {health_service.get_status()['overall_status']}")
