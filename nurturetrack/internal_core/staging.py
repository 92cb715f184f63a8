from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from uuid import uuid4

from .contracts import StagedFile, UploadedAudio

logger = logging.getLogger(__name__)

ALLOWED_AUDIO_SUFFIXES: set[str] = {
    ".flac",
    ".m4a",
    ".mp3",
    ".mp4",
    ".mpeg",
    ".mpga",
    ".oga",
    ".ogg",
    ".wav",
    ".webm",
}


class StagingError(RuntimeError):
    """Raised when the uploaded audio cannot be written to transient storage."""


def sanitize_audio_filename_stem(filename: str) -> str:
    # Path(...).name drops any directory components before the stem is taken.
    raw_stem = Path(Path(str(filename or "audio")).name).stem.strip()
    if not raw_stem:
        raw_stem = "audio"
    safe = "".join(ch if (ch.isalnum() or ch in {"_", "-"}) else "_" for ch in raw_stem)
    safe = safe.strip("_")
    return (safe or "audio")[:64]


def guess_audio_suffix(filename: str, mime_type: str | None) -> str:
    suffix = Path(str(filename or "")).suffix.lower()
    if suffix in ALLOWED_AUDIO_SUFFIXES:
        return suffix
    mt = str(mime_type or "").strip().lower()
    if "wav" in mt:
        return ".wav"
    if "mpeg" in mt or "mp3" in mt:
        return ".mp3"
    if "mp4" in mt or "m4a" in mt or "aac" in mt:
        return ".m4a"
    if "ogg" in mt:
        return ".ogg"
    if "flac" in mt:
        return ".flac"
    return ".webm"


def build_staged_filename(filename: str, mime_type: str | None) -> str:
    stamp = int(time.time() * 1000)
    stem = sanitize_audio_filename_stem(filename)
    suffix = guess_audio_suffix(filename, mime_type)
    return f"upload_{stamp}_{uuid4().hex[:10]}_{stem}{suffix}"


def _safe_unlink(path: Path) -> bool:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Failed to delete temporary file %s: %s", path, exc)
        return False
    return True


@contextmanager
def staged_upload(upload: UploadedAudio, tmp_dir: Path) -> Iterator[StagedFile]:
    """Write ``upload`` to a uniquely named file and remove it on exit.

    The file exists only inside the ``with`` block. Deletion failures are
    logged and never raised, so they cannot replace the caller's outcome.
    """
    if not upload.data:
        raise ValueError("Cannot stage an empty upload.")

    path = Path(tmp_dir) / build_staged_filename(upload.filename, upload.mime_type)
    try:
        path.write_bytes(upload.data)
    except OSError as exc:
        _safe_unlink(path)
        raise StagingError(f"Failed to write temporary file {path.name}: {exc}") from exc

    logger.debug("Staged upload %s (%d bytes) at %s", upload.filename, upload.size_bytes, path)
    try:
        yield StagedFile(
            path=path,
            original_filename=upload.filename,
            mime_type=upload.mime_type,
            size_bytes=upload.size_bytes,
        )
    finally:
        if _safe_unlink(path):
            logger.debug("Temporary file deleted: %s", path)
