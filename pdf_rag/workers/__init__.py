# =============================================================================
# Workers Package — Celery Background Jobs
# =============================================================================
#   - celery_app.py: Celery application and queue configuration
#   - tasks.py: the `file-ready` ingestion task
# =============================================================================
