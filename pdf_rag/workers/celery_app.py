# =============================================================================
# Celery Application Configuration
# =============================================================================
#
# The job queue between the upload endpoint and the ingestion worker:
#
#   POST /upload/pdf → Redis (broker) → Celery worker → vector store
#                                            └─→ Redis (results)
#
# All jobs go to a single queue (QUEUE_NAME, default "file-upload-queue").
#
# Start a worker with:
#   celery -A pdf_rag.workers.celery_app worker --loglevel=INFO
# The worker runs WORKER_CONCURRENCY (default 5) jobs at a time.
# =============================================================================

from celery import Celery

from pdf_rag.config import get_settings

settings = get_settings()

celery_app = Celery(
    "pdf_rag.workers",
    broker=settings.broker_url,
    backend=settings.result_backend_url,
)

celery_app.conf.update(
    # --- Serialization ---
    # Task arguments are plain JSON; the payload itself is a JSON string.
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # --- Routing ---
    task_default_queue=settings.queue_name,

    # --- Delivery ---
    # Acknowledge after the job finishes; a crashed worker's job is
    # redelivered (at-least-once).
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,

    # --- Concurrency ---
    worker_concurrency=settings.worker_concurrency,

    # --- Timeouts ---
    task_soft_time_limit=300,
    task_time_limit=600,

    # --- Results ---
    # Report STARTED so GET /upload/status can tell queued from running.
    task_track_started=True,
    result_expires=3600,

    worker_redirect_stdouts_level=settings.log_level,

    include=["pdf_rag.workers.tasks"],
)
