# =============================================================================
# Embedding Service — Batch Vector Generation (Provider-Agnostic)
# =============================================================================
#
# Generates vector embeddings through any OpenAI-compatible /embeddings
# endpoint (OpenAI, Cohere's compatibility API, DashScope, a local
# vLLM/Ollama server, ...), selected by EMBEDDING_BASE_URL.
#
# The same Embedder is used on both paths:
#   - write path: Celery worker embeds every chunk of an upload (sync)
#   - read path:  /chat embeds the user query (sync, run in a thread)
#
# No retry logic here. Transient API errors propagate to the ingestion
# task, which decides whether the job is retried.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence

from openai import OpenAI

from pdf_rag.config import Settings

logger = logging.getLogger(__name__)


class Embedder:
    """Thin wrapper around the OpenAI embeddings API."""

    def __init__(self, settings: Settings, client: OpenAI | None = None) -> None:
        self._model = settings.embedding_model
        self._dimensions = settings.embedding_dimensions
        self._batch_size = settings.embedding_batch_size

        if client is None:
            api_key = settings.resolved_embedding_api_key
            if not api_key:
                raise ValueError(
                    "No API key configured for embeddings. "
                    "Set EMBEDDING_API_KEY or OPENAI_API_KEY in .env"
                )

            client_kwargs: dict = {"api_key": api_key}
            if settings.embedding_base_url:
                client_kwargs["base_url"] = settings.embedding_base_url
            client = OpenAI(**client_kwargs)

            logger.debug(
                "Initialized embedding client (model=%s, base_url=%s)",
                self._model,
                settings.embedding_base_url or "https://api.openai.com/v1",
            )

        self._client = client

    @property
    def model(self) -> str:
        return self._model

    def embed_batch(
        self,
        texts: Sequence[str],
        batch_size: int | None = None,
    ) -> list[list[float]]:
        """
        Embed texts in sub-batches, returning vectors in input order.

        Raises:
            openai.APIError: If an embeddings call fails.
        """
        if not texts:
            return []

        _batch_size = batch_size or self._batch_size
        all_embeddings: list[list[float]] = [[] for _ in texts]

        for i in range(0, len(texts), _batch_size):
            batch = list(texts[i : i + _batch_size])
            logger.debug(
                "Embedding batch %d–%d of %d texts (model=%s)",
                i + 1, min(i + _batch_size, len(texts)), len(texts), self._model,
            )

            create_kwargs: dict = {"model": self._model, "input": batch}
            if self._dimensions:
                create_kwargs["dimensions"] = self._dimensions

            response = self._client.embeddings.create(**create_kwargs)

            # Items carry their position in the batch; place them by index
            for item in response.data:
                all_embeddings[i + item.index] = item.embedding

        logger.info("Generated %d embeddings (model=%s)", len(texts), self._model)
        return all_embeddings

    def embed_query(self, text: str) -> list[float]:
        """Embed a single query string."""
        return self.embed_batch([text], batch_size=1)[0]
