# =============================================================================
# Unit Tests — Upload Storage
# =============================================================================

import asyncio
import io
import re
from pathlib import Path

from fastapi import UploadFile

from pdf_rag.services.storage import build_storage_name, ensure_upload_dir, save_upload

STORAGE_NAME = re.compile(r"^\d+-\d+-(?P<rest>.+)$")


def _upload(name: str, content: bytes = b"%PDF-1.4 test") -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=name)


class TestBuildStorageName:
    def test_keeps_original_name_and_extension(self):
        name = build_storage_name("annual-report.pdf")
        match = STORAGE_NAME.match(name)
        assert match is not None
        assert match.group("rest") == "annual-report.pdf"

    def test_strips_directory_components(self):
        name = build_storage_name("../../etc/passwd")
        assert "/" not in name
        assert name.endswith("-passwd")

    def test_name_without_extension(self):
        assert build_storage_name("README").endswith("-README")

    def test_empty_name_gets_placeholder(self):
        assert build_storage_name("").endswith("-upload")


class TestSaveUpload:
    def test_writes_file_and_describes_it(self, tmp_path):
        upload_dir = tmp_path / "uploads"
        record = asyncio.run(save_upload(_upload("report.pdf", b"hello"), upload_dir))

        assert record.filename == "report.pdf"
        assert record.destination == str(upload_dir)
        assert Path(record.path).parent == upload_dir
        assert Path(record.path).read_bytes() == b"hello"

    def test_concurrent_uploads_get_distinct_paths(self, tmp_path):
        async def _both():
            return await asyncio.gather(
                save_upload(_upload("same.pdf", b"one"), tmp_path),
                save_upload(_upload("same.pdf", b"two"), tmp_path),
            )

        first, second = asyncio.run(_both())

        assert first.path != second.path
        assert Path(first.path).read_bytes() == b"one"
        assert Path(second.path).read_bytes() == b"two"

    def test_ensure_upload_dir_is_idempotent(self, tmp_path):
        target = tmp_path / "nested" / "uploads"
        ensure_upload_dir(target)
        ensure_upload_dir(target)
        assert target.is_dir()
