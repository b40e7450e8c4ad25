# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API.
# FastAPI serializes them to JSON and publishes them in the OpenAPI schema
# (visible at /docs).
# =============================================================================

from pydantic import BaseModel, Field

from pdf_rag.models.jobs import JobResult


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class UploadResponse(BaseModel):
    """
    Response for POST /upload/pdf — the file is stored and queued.

    The document is NOT searchable until the worker has processed the job.
    """

    message: str = Field(
        default="PDF uploaded and queued",
        description="Human-readable acknowledgement",
    )
    job_id: str | None = Field(
        default=None,
        description="Celery task ID, usable with GET /upload/status/{job_id}",
    )


class UploadStatusResponse(BaseModel):
    """Response for GET /upload/status/{job_id}."""

    job_id: str
    status: str = Field(
        description="Celery task state: PENDING, STARTED, RETRY, SUCCESS, FAILURE",
    )
    result: JobResult | None = Field(
        default=None,
        description="Job summary, present once the job has finished",
    )


class ChatResponse(BaseModel):
    """Response for GET /chat — the model's answer, verbatim."""

    answer: str
