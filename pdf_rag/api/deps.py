# =============================================================================
# API Dependencies — Service Construction per Request
# =============================================================================
#
# FastAPI dependencies that build the services a handler needs from the
# injected Settings. Each request gets fresh instances (and a fresh vector
# store connection); nothing is cached between requests.
#
# Configuration errors (missing API key, unknown backend) surface as
# 503 Service Unavailable.
#
# Tests replace any of these via app.dependency_overrides.
# =============================================================================

from __future__ import annotations

import logging

from celery import Celery
from fastapi import Depends, HTTPException

from pdf_rag.config import Settings, get_settings
from pdf_rag.services.embedder import Embedder
from pdf_rag.services.llm import LLMProvider, get_llm_provider
from pdf_rag.services.vectorstore import VectorStore, get_vector_store
from pdf_rag.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


def _configuration_error(exc: ValueError) -> HTTPException:
    logger.error("Configuration error: %s", exc)
    return HTTPException(
        status_code=503,
        detail=f"Service configuration error: {exc}",
    )


def get_embedder(settings: Settings = Depends(get_settings)) -> Embedder:
    try:
        return Embedder(settings)
    except ValueError as exc:
        raise _configuration_error(exc) from exc


def get_store(settings: Settings = Depends(get_settings)) -> VectorStore:
    try:
        return get_vector_store(settings)
    except ValueError as exc:
        raise _configuration_error(exc) from exc
    except Exception as exc:
        logger.exception("Could not connect to the vector store: %s", exc)
        raise HTTPException(
            status_code=502,
            detail=f"Vector store unavailable: {exc}",
        ) from exc


def get_llm(settings: Settings = Depends(get_settings)) -> LLMProvider:
    try:
        return get_llm_provider(settings)
    except ValueError as exc:
        raise _configuration_error(exc) from exc


def get_celery() -> Celery:
    """The Celery app used to enqueue jobs and read their results."""
    return celery_app
