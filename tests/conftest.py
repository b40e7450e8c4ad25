# =============================================================================
# Shared Test Fixtures
# =============================================================================
#
# Tests never touch Redis, Qdrant, or any model API. Settings are built
# explicitly per test and point uploads at a temporary directory.
# =============================================================================

from __future__ import annotations

import pytest

from pdf_rag.config import Settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        upload_dir=str(tmp_path / "uploads"),
        openai_api_key="sk-test",
        llm_api_key="test-llm-key",
        chunk_size=1000,
        chunk_overlap=100,
        retrieval_top_k=2,
    )
