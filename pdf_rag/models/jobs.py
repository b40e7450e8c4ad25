# =============================================================================
# Job Models — Queue Payload and Job Outcome
# =============================================================================
#
# UploadRecord is the only data that crosses the queue. It is serialized to
# a JSON string by the API and parsed back by the worker, so a malformed
# payload surfaces as a pydantic ValidationError inside the job.
#
# JobResult is what every ingestion job returns. Celery stores it (as a
# dict) in the result backend, where GET /upload/status/{job_id} reads it.
# =============================================================================

from enum import StrEnum

from pydantic import BaseModel, Field


class UploadRecord(BaseModel):
    """A stored upload, as carried by a `file-ready` job."""

    filename: str = Field(description="Original filename sent by the client")
    destination: str = Field(description="Directory the file was stored in")
    path: str = Field(description="Path of the stored file")


class JobOutcome(StrEnum):
    """How an ingestion job ended."""

    SUCCEEDED = "succeeded"
    # Dropped: retrying cannot help (bad payload, missing or empty file)
    FAILED_PERMANENT = "failed_permanent"
    # Transient upstream failure; the task is re-queued by Celery
    FAILED_RETRY = "failed_retry"


class JobResult(BaseModel):
    """Summary of one ingestion job."""

    outcome: JobOutcome
    filename: str | None = None
    path: str | None = None
    chunk_count: int = 0
    detail: str | None = None
