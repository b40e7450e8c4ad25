# =============================================================================
# API Tests — Upload, Status and Chat Endpoints
# =============================================================================
#
# Runs the FastAPI app with TestClient. The Celery app, embedder, vector
# store and LLM are replaced through app.dependency_overrides; nothing
# leaves the process.
# =============================================================================

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from pdf_rag.api.deps import get_celery, get_embedder, get_llm, get_store
from pdf_rag.config import get_settings
from pdf_rag.main import app
from pdf_rag.models.jobs import UploadRecord
from pdf_rag.services.llm import LLMResponse
from pdf_rag.services.vectorstore import VectorSearchResult


@pytest.fixture
def celery():
    fake = MagicMock()
    fake.send_task.side_effect = [
        SimpleNamespace(id=f"job-{i}") for i in range(1, 10)
    ]
    return fake


@pytest.fixture
def client(settings, celery):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_celery] = lambda: celery
    yield TestClient(app)
    app.dependency_overrides.clear()


def _queued_records(celery) -> list[UploadRecord]:
    return [
        UploadRecord.model_validate_json(call.kwargs["args"][0])
        for call in celery.send_task.call_args_list
    ]


class TestRoot:
    def test_root_is_plaintext(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.text == "API is working"
        assert response.headers["content-type"].startswith("text/plain")

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"


class TestUpload:
    def test_upload_queues_exactly_one_job(self, client, celery, settings):
        response = client.post(
            "/upload/pdf",
            files={"pdf": ("report.pdf", b"%PDF-1.4 body", "application/pdf")},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "PDF uploaded and queued", "job_id": "job-1"}

        celery.send_task.assert_called_once()
        call = celery.send_task.call_args
        assert call.args == ("file-ready",)
        assert call.kwargs["queue"] == "file-upload-queue"

        (record,) = _queued_records(celery)
        assert record.filename == "report.pdf"
        assert record.destination == settings.upload_dir
        assert Path(record.path).parent == Path(settings.upload_dir)
        assert Path(record.path).name.endswith("-report.pdf")
        assert Path(record.path).read_bytes() == b"%PDF-1.4 body"

    def test_two_uploads_get_independent_jobs(self, client, celery):
        for _ in range(2):
            client.post(
                "/upload/pdf",
                files={"pdf": ("same.pdf", b"%PDF-1.4", "application/pdf")},
            )

        first, second = _queued_records(celery)
        assert celery.send_task.call_count == 2
        assert first.filename == second.filename == "same.pdf"
        assert first.path != second.path

    def test_missing_file_field_is_rejected(self, client, celery):
        response = client.post(
            "/upload/pdf",
            files={"document": ("report.pdf", b"x", "application/pdf")},
        )
        assert response.status_code == 422
        celery.send_task.assert_not_called()

    def test_content_type_is_not_checked(self, client, celery):
        response = client.post(
            "/upload/pdf",
            files={"pdf": ("notes.txt", b"plain text", "text/plain")},
        )
        assert response.status_code == 200
        celery.send_task.assert_called_once()

    def test_broker_failure_returns_503(self, client, celery):
        celery.send_task.side_effect = ConnectionError("redis down")
        response = client.post(
            "/upload/pdf",
            files={"pdf": ("report.pdf", b"x", "application/pdf")},
        )
        assert response.status_code == 503


class TestUploadStatus:
    def test_finished_job_reports_result(self, client):
        fake_result = SimpleNamespace(
            status="SUCCESS",
            result={"outcome": "succeeded", "filename": "a.pdf", "chunk_count": 3},
        )
        with patch("pdf_rag.api.upload.AsyncResult", return_value=fake_result):
            body = client.get("/upload/status/job-1").json()

        assert body["status"] == "SUCCESS"
        assert body["result"]["outcome"] == "succeeded"
        assert body["result"]["chunk_count"] == 3

    def test_pending_job_has_no_result(self, client):
        fake_result = SimpleNamespace(status="PENDING", result=None)
        with patch("pdf_rag.api.upload.AsyncResult", return_value=fake_result):
            body = client.get("/upload/status/job-1").json()

        assert body == {"job_id": "job-1", "status": "PENDING", "result": None}

    def test_unreachable_result_backend_returns_503(self, client):
        class _BackendDown:
            @property
            def status(self):
                raise ConnectionError("Error 111 connecting to localhost:6379")

        with patch("pdf_rag.api.upload.AsyncResult", return_value=_BackendDown()):
            response = client.get("/upload/status/job-1")

        assert response.status_code == 503


class TestChat:
    @pytest.fixture
    def provider(self):
        fake = AsyncMock()
        fake.complete.return_value = LLMResponse(
            content="Revenue was $4.2 billion.",
            model="test-model",
            input_tokens=100,
            output_tokens=8,
        )
        return fake

    @pytest.fixture
    def chat_client(self, client, provider):
        embedder = MagicMock()
        embedder.embed_query.return_value = [1.0, 0.0, 0.0]

        store = MagicMock()
        store.search = AsyncMock(return_value=[
            VectorSearchResult(
                chunk_id="a",
                content="Total revenue for FY2024 was $4.2 billion.",
                page_number=3,
                similarity_score=0.93,
                metadata={"page_number": 3},
            ),
        ])

        app.dependency_overrides[get_embedder] = lambda: embedder
        app.dependency_overrides[get_store] = lambda: store
        app.dependency_overrides[get_llm] = lambda: provider
        return client

    def test_answer_comes_from_retrieved_context(self, chat_client, provider):
        response = chat_client.get("/chat", params={"q": "What was revenue?"})

        assert response.status_code == 200
        assert response.json() == {"answer": "Revenue was $4.2 billion."}

        prompt = provider.complete.call_args.kwargs["messages"][0]["content"]
        assert "Total revenue for FY2024 was $4.2 billion." in prompt
        assert "Question: What was revenue?" in prompt

    def test_missing_query_is_rejected(self, chat_client):
        assert chat_client.get("/chat").status_code == 422

    def test_llm_failure_returns_502(self, chat_client, provider):
        provider.complete.side_effect = RuntimeError("upstream exploded")
        response = chat_client.get("/chat", params={"q": "anything"})
        assert response.status_code == 502

    def test_missing_llm_key_returns_503(self, client, settings):
        app.dependency_overrides[get_settings] = lambda: settings.model_copy(
            update={"llm_api_key": None, "openai_api_key": ""},
        )
        app.dependency_overrides[get_embedder] = lambda: MagicMock()
        app.dependency_overrides[get_store] = lambda: MagicMock()

        response = client.get("/chat", params={"q": "anything"})
        assert response.status_code == 503
