# =============================================================================
# Chat API — Question Answering over Uploaded PDFs
# =============================================================================
#
#   GET /chat?q=<text> → {"answer": "..."}
#
# Thin handler: services arrive through dependencies (api/deps.py), the
# retrieval + generation flow lives in services/chat.py.
#
# Error handling:
# - Missing API key / unknown backend → 503 (raised by the dependencies)
# - Embedding, vector store or LLM failures → 502 Bad Gateway
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from pdf_rag.api.deps import get_embedder, get_llm, get_store
from pdf_rag.config import Settings, get_settings
from pdf_rag.models.responses import ChatResponse
from pdf_rag.services.chat import answer_query
from pdf_rag.services.embedder import Embedder
from pdf_rag.services.llm import LLMProvider
from pdf_rag.services.vectorstore import VectorStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])


@router.get(
    "/chat",
    response_model=ChatResponse,
    summary="Ask a question about the uploaded PDFs",
)
async def chat(
    q: str = Query(..., description="The question to answer"),
    settings: Settings = Depends(get_settings),
    embedder: Embedder = Depends(get_embedder),
    vector_store: VectorStore = Depends(get_store),
    llm: LLMProvider = Depends(get_llm),
) -> ChatResponse:
    logger.info("Chat request: q='%s'", q[:80])

    try:
        result = await answer_query(
            q,
            embedder=embedder,
            vector_store=vector_store,
            llm=llm,
            top_k=settings.retrieval_top_k,
        )
    except Exception as exc:
        logger.exception("Chat pipeline failed: %s", exc)
        raise HTTPException(
            status_code=502,
            detail=f"Upstream service error: {exc}",
        ) from exc

    return ChatResponse(answer=result.answer)
