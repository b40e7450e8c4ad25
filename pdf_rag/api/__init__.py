# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
#   - upload.py: PDF upload (enqueue) and job status endpoints
#   - chat.py: question answering endpoint
#   - deps.py: per-request service construction
# =============================================================================
