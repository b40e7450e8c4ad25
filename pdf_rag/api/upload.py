# =============================================================================
# Upload API — Store a PDF and Queue It for Ingestion
# =============================================================================
#
# ENDPOINTS:
#   POST /upload/pdf              — store file, enqueue a `file-ready` job
#   GET  /upload/status/{job_id}  — poll the job (PENDING → SUCCESS/FAILURE)
#
# The job is sent by name (send_task), so the API process never imports the
# worker's parsing stack.
#
# The payload is the UploadRecord serialized to a JSON string:
#   {"filename": "report.pdf", "destination": "uploads",
#    "path": "uploads/1760774400123-482913377-report.pdf"}
# =============================================================================

import logging

from celery import Celery
from celery.result import AsyncResult
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import ValidationError

from pdf_rag.api.deps import get_celery
from pdf_rag.config import Settings, get_settings
from pdf_rag.models.jobs import JobResult
from pdf_rag.models.responses import UploadResponse, UploadStatusResponse
from pdf_rag.services.storage import save_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Upload"])


# ---------------------------------------------------------------------------
# POST /upload/pdf — Upload a document
# ---------------------------------------------------------------------------


@router.post(
    "/upload/pdf",
    response_model=UploadResponse,
    summary="Upload a PDF for ingestion",
    description=(
        "Stores the file and queues it for parsing, chunking, embedding and "
        "indexing. Returns immediately; the document becomes searchable once "
        "the worker has processed the job."
    ),
)
async def upload_pdf(
    pdf: UploadFile = File(..., description="The PDF file to ingest"),
    settings: Settings = Depends(get_settings),
    celery: Celery = Depends(get_celery),
) -> UploadResponse:
    record = await save_upload(pdf, settings.upload_dir)

    try:
        task = celery.send_task(
            settings.job_name,
            args=[record.model_dump_json()],
            queue=settings.queue_name,
        )
    except Exception as exc:
        logger.exception("Failed to enqueue %s: %s", record.path, exc)
        raise HTTPException(
            status_code=503,
            detail=f"Upload stored but could not be queued: {exc}",
        ) from exc

    logger.info(
        "Queued job %s (%s) for %s", task.id, settings.job_name, record.path,
    )

    return UploadResponse(message="PDF uploaded and queued", job_id=task.id)


# ---------------------------------------------------------------------------
# GET /upload/status/{job_id} — Poll job status
# ---------------------------------------------------------------------------


@router.get(
    "/upload/status/{job_id}",
    response_model=UploadStatusResponse,
    summary="Check ingestion job status",
)
async def get_upload_status(
    job_id: str,
    celery: Celery = Depends(get_celery),
) -> UploadStatusResponse:
    """
    Celery task states:
    - PENDING: not yet picked up (or unknown job ID)
    - STARTED: worker is processing
    - RETRY: transient failure, re-queued
    - SUCCESS: job finished; `result.outcome` tells whether it was stored
    """
    try:
        result = AsyncResult(job_id, app=celery)
        status = result.status
        payload = result.result if status == "SUCCESS" else None
    except Exception as exc:
        logger.exception("Failed to read status of job %s: %s", job_id, exc)
        raise HTTPException(
            status_code=503,
            detail=f"Job status unavailable: {exc}",
        ) from exc

    job_result: JobResult | None = None
    if isinstance(payload, dict):
        try:
            job_result = JobResult.model_validate(payload)
        except ValidationError:
            logger.warning("Unrecognised result for job %s: %r", job_id, payload)

    return UploadStatusResponse(job_id=job_id, status=status, result=job_result)
