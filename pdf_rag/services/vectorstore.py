# =============================================================================
# Vector Store Abstraction — Pluggable Backend Protocol
# =============================================================================
#
# A common interface for storing chunk embeddings and searching them, with
# implementations for Qdrant and ChromaDB. Both use one collection, named
# by COLLECTION_NAME, with cosine distance.
#
# Mixed sync/async interface:
# - add_chunks() is sync → called by the Celery worker during ingestion
# - search() is async → called by the /chat handler; the sync client call
#   runs in a worker thread via asyncio.to_thread()
#
# POINT IDS:
# A chunk's ID is a UUID5 of "<storage path>#<chunk index>". Re-running the
# same job (at-least-once redelivery) overwrites its own points instead of
# adding duplicates. Uploading the same file twice still stores it twice,
# because each upload gets a fresh storage path.
#
# ARCHITECTURE:
#   VectorStore (Protocol)
#   ├── QdrantVectorStore — Qdrant server / Qdrant Cloud (URL + API key)
#   └── ChromaVectorStore — ChromaDB (in-process or client/server)
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlparse

import chromadb
from qdrant_client import QdrantClient
from qdrant_client.http import models as qmodels
from qdrant_client.http.exceptions import UnexpectedResponse

from pdf_rag.config import Settings

logger = logging.getLogger(__name__)

# Payload keys used by LangChain's Qdrant integration, so collections
# written by either side stay readable by the other.
CONTENT_PAYLOAD_KEY = "page_content"
METADATA_PAYLOAD_KEY = "metadata"


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class VectorSearchResult:
    """A single result from vector similarity search."""

    chunk_id: str
    content: str
    page_number: int | None
    similarity_score: float  # cosine similarity, higher = more relevant
    metadata: dict = field(default_factory=dict)


def chunk_point_id(source: str, chunk_index: int) -> str:
    """Deterministic point ID for chunk `chunk_index` of the upload at `source`."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{source}#{chunk_index}"))


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class VectorStore(Protocol):
    """Interface implemented by every vector store backend."""

    def add_chunks(
        self,
        source: str,
        contents: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict],
    ) -> list[str]:
        """
        Upsert chunks with their embeddings. Sync (for Celery).

        Args:
            source: Storage path of the upload the chunks came from.
            contents: Chunk texts.
            embeddings: One vector per chunk.
            metadatas: Per-chunk metadata (must include chunk_index).

        Returns:
            The point IDs written.
        """
        ...

    async def search(
        self,
        query_embedding: list[float],
        top_k: int = 2,
    ) -> list[VectorSearchResult]:
        """Return the top_k most similar chunks, best first. Async (for FastAPI)."""
        ...


# ---------------------------------------------------------------------------
# Implementation 1: Qdrant
# ---------------------------------------------------------------------------


class QdrantVectorStore:
    """
    Qdrant-backed vector store.

    The collection is created on first write, sized from the first
    embedding. Searching a collection that does not exist yet returns no
    results.
    """

    def __init__(self, settings: Settings, client: QdrantClient | None = None) -> None:
        self._client = client or QdrantClient(
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key,
        )
        self._collection = settings.collection_name

    def _ensure_collection(self, vector_size: int) -> None:
        if self._client.collection_exists(self._collection):
            return

        logger.info(
            "Creating Qdrant collection '%s' (size=%d, distance=cosine)",
            self._collection, vector_size,
        )
        try:
            self._client.create_collection(
                collection_name=self._collection,
                vectors_config=qmodels.VectorParams(
                    size=vector_size,
                    distance=qmodels.Distance.COSINE,
                ),
            )
        except (ValueError, UnexpectedResponse):
            # Concurrent jobs race to create the collection on first write.
            # Local mode raises ValueError, a server answers 409.
            if not self._client.collection_exists(self._collection):
                raise
            logger.info(
                "Qdrant collection '%s' was created by another job",
                self._collection,
            )

    def add_chunks(
        self,
        source: str,
        contents: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict],
    ) -> list[str]:
        """Upsert chunks as Qdrant points."""
        if not contents:
            return []

        self._ensure_collection(len(embeddings[0]))

        points: list[qmodels.PointStruct] = []
        for i, (content, embedding, meta) in enumerate(
            zip(contents, embeddings, metadatas, strict=True)
        ):
            points.append(qmodels.PointStruct(
                id=chunk_point_id(source, meta.get("chunk_index", i)),
                vector=embedding,
                payload={
                    CONTENT_PAYLOAD_KEY: content,
                    METADATA_PAYLOAD_KEY: {**meta, "source": source},
                },
            ))

        self._client.upsert(
            collection_name=self._collection,
            points=points,
            wait=True,
        )

        logger.info(
            "Stored %d chunks from %s in Qdrant collection '%s'",
            len(points), source, self._collection,
        )
        return [str(p.id) for p in points]

    async def search(
        self,
        query_embedding: list[float],
        top_k: int = 2,
    ) -> list[VectorSearchResult]:
        """Cosine similarity search in Qdrant."""

        def _sync_search() -> list[VectorSearchResult]:
            if not self._client.collection_exists(self._collection):
                logger.warning(
                    "Qdrant collection '%s' does not exist yet", self._collection,
                )
                return []

            response = self._client.query_points(
                collection_name=self._collection,
                query=query_embedding,
                limit=top_k,
                with_payload=True,
            )

            results: list[VectorSearchResult] = []
            for point in response.points:
                payload = point.payload or {}
                metadata = payload.get(METADATA_PAYLOAD_KEY) or {}
                results.append(VectorSearchResult(
                    chunk_id=str(point.id),
                    content=payload.get(CONTENT_PAYLOAD_KEY, ""),
                    page_number=metadata.get("page_number"),
                    similarity_score=round(point.score, 4),
                    metadata=metadata,
                ))
            return results

        return await asyncio.to_thread(_sync_search)


# ---------------------------------------------------------------------------
# Implementation 2: ChromaDB
# ---------------------------------------------------------------------------


class ChromaVectorStore:
    """
    ChromaDB-backed vector store.

    - In-process (CHROMA_URL unset): no extra infra, data lives in memory of
      the current process only. The API and the worker then see separate
      collections, so this mode suits tests and single-process scripts.
    - Client/server (CHROMA_URL=http://host:8000): Docker deployment
    """

    def __init__(self, settings: Settings, client: chromadb.ClientAPI | None = None) -> None:
        if client is None:
            if settings.chroma_url:
                parsed = urlparse(settings.chroma_url)
                client = chromadb.HttpClient(
                    host=parsed.hostname or "localhost",
                    port=parsed.port or 8000,
                    ssl=parsed.scheme == "https",
                )
            else:
                logger.warning(
                    "CHROMA_URL is not set: using an in-process ChromaDB. "
                    "Chunks stored by the worker are not visible to the API."
                )
                client = chromadb.Client()
        self._client = client

        self._collection = self._client.get_or_create_collection(
            name=settings.collection_name,
            metadata={"hnsw:space": "cosine"},
        )

    def add_chunks(
        self,
        source: str,
        contents: list[str],
        embeddings: list[list[float]],
        metadatas: list[dict],
    ) -> list[str]:
        """Upsert chunks into the Chroma collection."""
        if not contents:
            return []

        ids = [
            chunk_point_id(source, meta.get("chunk_index", i))
            for i, meta in enumerate(metadatas)
        ]
        sanitised_metadatas = [
            _sanitise_chroma_metadata({**meta, "source": source})
            for meta in metadatas
        ]

        self._collection.upsert(
            ids=ids,
            documents=contents,
            embeddings=embeddings,
            metadatas=sanitised_metadatas,
        )

        logger.info("Stored %d chunks from %s in ChromaDB", len(ids), source)
        return ids

    async def search(
        self,
        query_embedding: list[float],
        top_k: int = 2,
    ) -> list[VectorSearchResult]:
        """Similarity search in ChromaDB."""

        def _sync_search() -> list[VectorSearchResult]:
            results = self._collection.query(
                query_embeddings=[query_embedding],
                n_results=top_k,
                include=["documents", "metadatas", "distances"],
            )

            search_results: list[VectorSearchResult] = []
            if not (results and results["ids"] and results["ids"][0]):
                return search_results

            for i, chroma_id in enumerate(results["ids"][0]):
                distance = results["distances"][0][i] if results["distances"] else 0.0
                metadata = dict(results["metadatas"][0][i] or {}) if results["metadatas"] else {}
                content = results["documents"][0][i] if results["documents"] else ""

                page_number = metadata.get("page_number")
                search_results.append(VectorSearchResult(
                    chunk_id=chroma_id,
                    content=content or "",
                    page_number=page_number if isinstance(page_number, int) else None,
                    # Chroma cosine distance is in [0, 2]
                    similarity_score=round(1.0 - distance, 4),
                    metadata=metadata,
                ))

            return search_results

        return await asyncio.to_thread(_sync_search)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------


def get_vector_store(settings: Settings) -> QdrantVectorStore | ChromaVectorStore:
    """
    Build the configured vector store backend.

    Returns a new instance (and a new client connection) on every call.

    Raises:
        ValueError: If VECTORSTORE_TYPE names an unknown backend.
    """
    store_type = settings.vectorstore_type

    if store_type == "qdrant":
        return QdrantVectorStore(settings)
    if store_type == "chroma":
        return ChromaVectorStore(settings)

    raise ValueError(
        f"Unknown vectorstore_type '{store_type}'. Use 'qdrant' or 'chroma'."
    )


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _sanitise_chroma_metadata(metadata: dict) -> dict:
    """
    Make metadata acceptable to ChromaDB (str, int, float or bool values).

    - list → comma-separated string
    - None → empty string
    """
    sanitised = {}
    for key, value in metadata.items():
        if value is None:
            sanitised[key] = ""
        elif isinstance(value, list):
            sanitised[key] = ",".join(str(v) for v in value)
        elif isinstance(value, (str, int, float, bool)):
            sanitised[key] = value
        else:
            sanitised[key] = str(value)
    return sanitised
