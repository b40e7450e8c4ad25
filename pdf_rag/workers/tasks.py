# =============================================================================
# Celery Task Definitions — Upload Ingestion Pipeline
# =============================================================================
#
# One task, registered under JOB_NAME ("file-ready"), processes one upload:
#
#   1. Parse the JSON payload into an UploadRecord
#   2. Parse the PDF with Docling → page-annotated elements
#   3. Chunk into fixed-size character windows (1000 chars, 100 overlap)
#   4. Embed all chunks (OpenAI-compatible API, batched)
#   5. Upsert chunks + embeddings into the vector store
#
# Every job ends with an explicit JobResult:
#   - SUCCEEDED         chunks stored
#   - FAILED_PERMANENT  logged and dropped: malformed payload, missing or
#                       unreadable file, no text, unexpected error
#   - FAILED_RETRY      transient upstream error (connection, timeout, rate
#                       limit, 5xx); re-queued with self.retry() until
#                       JOB_MAX_RETRIES is reached, then FAILED_PERMANENT
#
# Celery workers are SYNCHRONOUS: no async/await in this module.
# =============================================================================

from __future__ import annotations

import logging

import openai
import requests
from pydantic import ValidationError
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from pdf_rag.config import Settings, get_settings
from pdf_rag.models.jobs import JobOutcome, JobResult, UploadRecord
from pdf_rag.services.chunker import chunk_document
from pdf_rag.services.embedder import Embedder
from pdf_rag.services.parser import parse_pdf
from pdf_rag.services.vectorstore import VectorStore, get_vector_store
from pdf_rag.workers.celery_app import celery_app

logger = logging.getLogger(__name__)

_settings = get_settings()

# Errors where a later attempt can succeed without any change to the job
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
    ResponseHandlingException,  # Qdrant transport failure
    requests.exceptions.ConnectionError,  # tiktoken encoding download
    requests.exceptions.Timeout,
    ConnectionError,
    TimeoutError,
)


def is_transient(exc: BaseException) -> bool:
    """True when retrying the job may succeed."""
    if isinstance(exc, TRANSIENT_ERRORS):
        return True
    if isinstance(exc, UnexpectedResponse):
        return exc.status_code is not None and exc.status_code >= 500
    return False


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def process_upload(
    payload: str,
    settings: Settings,
    *,
    embedder: Embedder | None = None,
    vector_store: VectorStore | None = None,
) -> JobResult:
    """
    Run the ingestion pipeline for one job payload.

    Never raises: every failure is logged and reported in the JobResult.

    Args:
        payload: JSON string of an UploadRecord.
        settings: Chunking, embedding and vector store configuration.
        embedder: Override the embedder built from settings.
        vector_store: Override the vector store built from settings.
    """
    # --- Step 1: Decode the payload ---
    try:
        record = UploadRecord.model_validate_json(payload)
    except ValidationError as exc:
        logger.error(
            "Dropping job with malformed payload %.200r: %s",
            payload, exc.errors(include_url=False),
        )
        return JobResult(
            outcome=JobOutcome.FAILED_PERMANENT,
            detail=f"Malformed payload: {exc.error_count()} validation error(s)",
        )

    try:
        # --- Step 2: Parse PDF ---
        parsed_doc = parse_pdf(record.path)
        logger.info(
            "Loaded %d elements from '%s' (%d pages, %d characters)",
            len(parsed_doc.elements), record.filename,
            parsed_doc.page_count, parsed_doc.char_count,
        )

        # --- Step 3: Chunk ---
        chunks = chunk_document(
            parsed_doc,
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
        )
        logger.info("Split '%s' into %d chunks", record.filename, len(chunks))

        if not chunks:
            raise ValueError(
                "No text extracted from document — PDF may be empty or scanned"
            )

        # --- Step 4: Embed ---
        embedder = embedder or Embedder(settings)
        embeddings = embedder.embed_batch([c.content for c in chunks])

        # --- Step 5: Store ---
        vector_store = vector_store or get_vector_store(settings)
        vector_store.add_chunks(
            source=record.path,
            contents=[c.content for c in chunks],
            embeddings=embeddings,
            metadatas=[
                {
                    "filename": record.filename,
                    "page_number": c.page_number,
                    "chunk_index": c.chunk_index,
                    "char_count": c.char_count,
                    "token_count": c.token_count,
                    **c.metadata,
                }
                for c in chunks
            ],
        )

    except Exception as exc:
        if is_transient(exc):
            logger.warning(
                "Transient failure ingesting '%s': %s", record.filename, exc,
            )
            return JobResult(
                outcome=JobOutcome.FAILED_RETRY,
                filename=record.filename,
                path=record.path,
                detail=str(exc)[:1000],
            )

        logger.exception("Ingestion failed for '%s': %s", record.filename, exc)
        return JobResult(
            outcome=JobOutcome.FAILED_PERMANENT,
            filename=record.filename,
            path=record.path,
            detail=str(exc)[:1000],
        )

    logger.info(
        "Documents embedded and stored: '%s' (%d chunks)",
        record.filename, len(chunks),
    )
    return JobResult(
        outcome=JobOutcome.SUCCEEDED,
        filename=record.filename,
        path=record.path,
        chunk_count=len(chunks),
    )


# ---------------------------------------------------------------------------
# Ingestion Task
# ---------------------------------------------------------------------------


@celery_app.task(
    bind=True,
    name=_settings.job_name,
    max_retries=_settings.job_max_retries,
    default_retry_delay=_settings.job_retry_delay,
)
def ingest_upload(self, payload: str) -> dict:
    """
    Celery entry point for a `file-ready` job.

    Returns the JobResult as a JSON-compatible dict (stored in the result
    backend). Raises only celery.exceptions.Retry, when re-queueing.
    """
    logger.info(
        "Job received: %s (id=%s, attempt %d)",
        self.name, self.request.id, self.request.retries + 1,
    )

    result = process_upload(payload, get_settings())

    if result.outcome is JobOutcome.FAILED_RETRY:
        if self.request.retries < self.max_retries:
            logger.info(
                "Retrying job %s in %ds (%d/%d)",
                self.request.id, self.default_retry_delay,
                self.request.retries + 1, self.max_retries,
            )
            raise self.retry()

        logger.error(
            "Giving up on job %s after %d retries: %s",
            self.request.id, self.request.retries, result.detail,
        )
        result = result.model_copy(update={"outcome": JobOutcome.FAILED_PERMANENT})

    return result.model_dump(mode="json")
