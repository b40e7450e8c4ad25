# =============================================================================
# Upload Storage — Local Disk
# =============================================================================
#
# Writes uploaded files into the upload directory under a generated name:
#
#   {epoch_ms}-{random 0..1e9}-{original basename}{original extension}
#
# e.g. "1760774400123-482913377-annual-report.pdf". The timestamp plus the
# random component keeps concurrent uploads of the same file apart; the
# original name is kept for humans browsing the directory.
#
# Files are never deleted. The worker reads them back by path.
# =============================================================================

from __future__ import annotations

import logging
import random
import time
from pathlib import Path

from fastapi import UploadFile

from pdf_rag.models.jobs import UploadRecord

logger = logging.getLogger(__name__)


def ensure_upload_dir(upload_dir: str | Path) -> Path:
    """Create the upload directory if it does not exist."""
    path = Path(upload_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def build_storage_name(original_filename: str) -> str:
    """
    Generate a collision-resistant file name for an upload.

    Only the basename of the client-supplied name is used, so a name like
    "../../etc/passwd" cannot escape the upload directory.
    """
    original = Path(original_filename or "upload").name or "upload"
    suffix = Path(original).suffix
    stem = original[: len(original) - len(suffix)] if suffix else original
    unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{unique}-{stem}{suffix}"


async def save_upload(file: UploadFile, upload_dir: str | Path) -> UploadRecord:
    """
    Persist an uploaded file and describe it as an UploadRecord.

    The whole body is read into memory before writing; there is no size
    limit on uploads.
    """
    directory = ensure_upload_dir(upload_dir)
    original_filename = file.filename or "upload"
    target = directory / build_storage_name(original_filename)

    content = await file.read()
    target.write_bytes(content)

    logger.info(
        "Saved upload: %s (%d bytes) → %s",
        original_filename, len(content), target,
    )

    return UploadRecord(
        filename=original_filename,
        destination=str(directory),
        path=str(target),
    )
