# =============================================================================
# PDF RAG Queue Service
# =============================================================================
# Upload PDFs, ingest them asynchronously into a vector store, and answer
# questions over them with retrieval-augmented generation.
#
# Package structure:
#   pdf_rag/
#   ├── api/          → FastAPI route handlers (upload, chat)
#   ├── models/       → Pydantic V2 schemas (queue payload, responses)
#   ├── services/     → storage, parsing, chunking, embedding, vector store,
#   │                    LLM providers, chat flow
#   ├── workers/      → Celery app and the ingestion task
#   ├── config.py     → pydantic-settings configuration
#   └── main.py       → FastAPI application
# =============================================================================
