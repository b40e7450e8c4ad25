# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
#   - jobs.py: queue payload (UploadRecord) and job outcome (JobResult)
#   - responses.py: HTTP response bodies
# =============================================================================
