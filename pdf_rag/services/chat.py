# =============================================================================
# Chat Service — Retrieve, Compose, Generate
# =============================================================================
#
# The read path behind GET /chat:
#   1. Embed the query
#   2. Retrieve the top-k nearest chunks from the vector store
#   3. Serialize them as JSON into a fixed prompt template
#   4. Send the prompt to the LLM as a single user message
#
# The retrieved chunks are rendered as [{"pageContent": ..., "metadata":
# {...}}], i.e. the shape of a LangChain Document, and the model's text is
# returned verbatim.
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field

from pdf_rag.services.embedder import Embedder
from pdf_rag.services.llm import LLMProvider
from pdf_rag.services.vectorstore import VectorSearchResult, VectorStore

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    "You are a helpful assistant. Based only on the following context from "
    "a PDF file, answer the user query precisely.\n"
    "\n"
    "Context:\n"
    "{context}\n"
    "\n"
    "Question: {question}"
)


@dataclass
class ChatResult:
    """Answer plus what it was generated from."""

    answer: str
    model: str
    sources: list[VectorSearchResult] = field(default_factory=list)


def format_context(chunks: list[VectorSearchResult]) -> str:
    """Serialize retrieved chunks for the prompt."""
    return json.dumps(
        [{"pageContent": c.content, "metadata": c.metadata} for c in chunks],
        ensure_ascii=False,
        default=str,
    )


def build_prompt(question: str, chunks: list[VectorSearchResult]) -> str:
    return PROMPT_TEMPLATE.format(context=format_context(chunks), question=question)


async def answer_query(
    question: str,
    *,
    embedder: Embedder,
    vector_store: VectorStore,
    llm: LLMProvider,
    top_k: int = 2,
) -> ChatResult:
    """
    Answer a question from the indexed documents.

    An empty retrieval still goes to the LLM with "[]" as context; the
    prompt tells the model to rely on the context only.
    """
    # The embedder is sync; keep the event loop free while it runs
    query_embedding = await asyncio.to_thread(embedder.embed_query, question)

    chunks = await vector_store.search(query_embedding, top_k=top_k)
    logger.info(
        "Retrieved %d chunks for query '%s' (scores=%s)",
        len(chunks), question[:80], [c.similarity_score for c in chunks],
    )

    response = await llm.complete(
        messages=[{"role": "user", "content": build_prompt(question, chunks)}],
    )

    return ChatResult(answer=response.content, model=response.model, sources=chunks)
