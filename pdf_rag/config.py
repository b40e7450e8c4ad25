# =============================================================================
# Application Configuration — Pydantic Settings
# =============================================================================
#
# Every host, credential, collection name and tuning constant the service
# needs lives here. Nothing else in the package reads environment variables.
#
# HOW IT WORKS:
# Pydantic Settings loads values in this priority order (highest first):
#   1. Environment variables (e.g., `QDRANT_URL=...`)
#   2. Values from the .env file
#   3. Default values defined below
#
# USAGE:
#   FastAPI handlers:   settings: Settings = Depends(get_settings)
#   Celery worker:      settings = get_settings()
#   Services:           receive the Settings instance as an argument
# =============================================================================

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults target a local Redis and Qdrant. Credentials have empty
    defaults and must be supplied via the environment or a .env file.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "PDF RAG Queue Service"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Origins allowed by the CORS middleware ("*" = any origin)
    cors_origins: list[str] = ["*"]

    # -------------------------------------------------------------------------
    # Redis / Celery job queue
    # -------------------------------------------------------------------------
    # REDIS_URL serves as both the Celery broker (the upload queue) and the
    # result backend (job results for status polling) unless
    # CELERY_BROKER_URL or CELERY_RESULT_BACKEND point elsewhere.
    # Use rediss:// URLs for TLS-terminated hosted Redis.
    # -------------------------------------------------------------------------
    redis_url: str = "redis://localhost:6379/0"
    celery_broker_url: str | None = None
    celery_result_backend: str | None = None

    queue_name: str = "file-upload-queue"
    job_name: str = "file-ready"

    # Number of jobs a worker runs at the same time
    worker_concurrency: int = 5

    # Bound on retries for transient failures (Celery's own default is 3)
    job_max_retries: int = 3
    job_retry_delay: int = 60  # seconds

    # -------------------------------------------------------------------------
    # Embeddings — any OpenAI-compatible /embeddings endpoint
    # -------------------------------------------------------------------------
    # EMBEDDING_API_KEY wins over OPENAI_API_KEY when both are set.
    #
    # Example configs:
    #   OpenAI:  model=text-embedding-3-small
    #   Cohere:  base_url=https://api.cohere.ai/compatibility/v1,
    #            model=embed-english-v3.0, dimensions unset
    # -------------------------------------------------------------------------
    openai_api_key: str = ""
    embedding_api_key: str | None = None
    embedding_base_url: str | None = None
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int | None = None
    embedding_batch_size: int = 96  # Chunks per embeddings API call

    # -------------------------------------------------------------------------
    # Generation — Multi-Provider
    # -------------------------------------------------------------------------
    #   - "openai_compatible": any OpenAI-compatible chat API. The default
    #     points at Gemini's OpenAI-compatible endpoint.
    #   - "anthropic": Claude via the native Anthropic SDK
    #
    # Example configs:
    #   Gemini:    provider=openai_compatible,
    #              base_url=https://generativelanguage.googleapis.com/v1beta/openai/,
    #              model=gemini-2.0-flash
    #   DeepSeek:  provider=openai_compatible, base_url=https://api.deepseek.com/v1,
    #              model=deepseek-chat
    #   Claude:    provider=anthropic, model=claude-sonnet-4-5
    # -------------------------------------------------------------------------
    llm_provider: str = "openai_compatible"  # "openai_compatible" or "anthropic"
    llm_base_url: str | None = (
        "https://generativelanguage.googleapis.com/v1beta/openai/"
    )
    llm_api_key: str | None = None
    anthropic_api_key: str = ""
    llm_model: str = "gemini-2.0-flash"
    llm_temperature: float = 0.1
    llm_max_tokens: int = 2048

    # -------------------------------------------------------------------------
    # Vector Store — Pluggable Backend
    # -------------------------------------------------------------------------
    #   - "qdrant": Qdrant server or Qdrant Cloud (URL + API key)
    #   - "chroma": ChromaDB server at CHROMA_URL. Without CHROMA_URL each
    #     process gets its own in-memory store, so /chat never sees what the
    #     worker stored.
    # Both backends use a single collection named by COLLECTION_NAME.
    # -------------------------------------------------------------------------
    vectorstore_type: str = "qdrant"
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: str | None = None
    collection_name: str = "pdf-chunks"
    chroma_url: str | None = None

    # -------------------------------------------------------------------------
    # File Upload
    # -------------------------------------------------------------------------
    # Created at API startup if absent. Files are never cleaned up.
    # -------------------------------------------------------------------------
    upload_dir: str = "uploads"

    # -------------------------------------------------------------------------
    # Chunking — fixed-size character windows
    # -------------------------------------------------------------------------
    chunk_size: int = 1000
    chunk_overlap: int = 100

    # -------------------------------------------------------------------------
    # Retrieval
    # -------------------------------------------------------------------------
    retrieval_top_k: int = 2

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def broker_url(self) -> str:
        """Celery broker: CELERY_BROKER_URL, then REDIS_URL."""
        return self.celery_broker_url or self.redis_url

    @property
    def result_backend_url(self) -> str:
        """Celery result backend: CELERY_RESULT_BACKEND, then REDIS_URL."""
        return self.celery_result_backend or self.redis_url

    @property
    def resolved_embedding_api_key(self) -> str:
        """Key used by the embedder: EMBEDDING_API_KEY, then OPENAI_API_KEY."""
        return self.embedding_api_key or self.openai_api_key


@lru_cache
def get_settings() -> Settings:
    """
    Create and cache a Settings instance.

    Used as the FastAPI dependency for every handler. In tests:
        app.dependency_overrides[get_settings] = lambda: Settings(...)
    """
    return Settings()
