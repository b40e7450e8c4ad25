# =============================================================================
# FastAPI Application
# =============================================================================
#
# Run the API with:
#   uvicorn pdf_rag.main:app --port 8000
# and the ingestion worker (separate process) with:
#   celery -A pdf_rag.workers.celery_app worker --loglevel=INFO
#
# ENDPOINTS:
#   GET  /                        — plaintext liveness message
#   GET  /health                  — service name + version
#   POST /upload/pdf              — upload.py
#   GET  /upload/status/{job_id}  — upload.py
#   GET  /chat?q=...              — chat.py
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from pdf_rag.api import chat, upload
from pdf_rag.config import get_settings
from pdf_rag.logging_config import configure_logging
from pdf_rag.models.responses import HealthResponse
from pdf_rag.services.storage import ensure_upload_dir

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)

    upload_dir = ensure_upload_dir(settings.upload_dir)
    logger.info(
        "%s v%s started (uploads=%s, vectorstore=%s, queue=%s)",
        settings.app_name, settings.app_version, upload_dir,
        settings.vectorstore_type, settings.queue_name,
    )
    yield


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def root() -> str:
        return "API is working"

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(version=settings.app_version, service=settings.app_name)

    app.include_router(upload.router)
    app.include_router(chat.router)
    return app


app = create_app()
