from __future__ import annotations

"""
Per-request audio-log pipeline.

Design intent:
- Run Staged -> Transcribed -> Extracted -> Normalized strictly in order.
- Switch on each client's ServiceResult.kind; never inspect exception shapes.
- Keep the staged file scoped to the request and delete it on every exit path.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Protocol
from uuid import uuid4

from nurturetrack.events.normalizer import normalize_extraction
from nurturetrack.events.time_context import CurrentTimeContext, resolve_time_context
from nurturetrack.internal_core.audit import PipelineStage, log_stage
from nurturetrack.internal_core.config import AppConfig
from nurturetrack.internal_core.contracts import (
    ErrorEnvelope,
    ServiceResult,
    StagedFile,
    UploadedAudio,
)
from nurturetrack.internal_core.staging import StagingError, staged_upload

logger = logging.getLogger(__name__)

NO_UPLOAD_MESSAGE = "No audio file uploaded."
GENERIC_FAILURE_MESSAGE = "Failed to process audio log."


class Transcriber(Protocol):
    def transcribe(self, staged: StagedFile) -> ServiceResult: ...


class Extractor(Protocol):
    def extract(self, transcript: str, time_context: CurrentTimeContext) -> ServiceResult: ...


@dataclass(frozen=True)
class PipelineOutcome:
    status_code: int
    payload: dict[str, Any]
    stage: PipelineStage
    request_id: str
    transcript: Optional[str] = None
    debug: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def _failure_status(result: ServiceResult) -> int:
    if result.kind == "http_status" and result.status_code is not None and result.status_code >= 400:
        return result.status_code
    if result.kind == "timeout":
        return 504
    return 502


def _envelope(error: str, details: str, transcription: Optional[str] = None) -> dict[str, Any]:
    return ErrorEnvelope(error=error, details=details, transcription=transcription).model_dump()


class AudioLogPipeline:
    def __init__(
        self,
        config: AppConfig,
        transcriber: Transcriber,
        extractor: Extractor,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._transcriber = transcriber
        self._extractor = extractor
        self._clock = clock

    def close(self) -> None:
        """Release the clients' connection pools; safe to call more than once."""
        for client in (self._transcriber, self._extractor):
            close = getattr(client, "close", None)
            if callable(close):
                close()

    def _time_context(self, requested_timezone: str | None) -> CurrentTimeContext:
        return resolve_time_context(
            requested_timezone=requested_timezone,
            configured_timezone=self._config.NURTURE_TIMEZONE,
            fallback_timezone=self._config.NURTURE_FALLBACK_TIMEZONE,
            clock=self._clock,
        )

    def _fail(
        self,
        request_id: str,
        status_code: int,
        error: str,
        details: str,
        transcript: Optional[str] = None,
        started: float | None = None,
    ) -> PipelineOutcome:
        duration_ms = None if started is None else int((time.perf_counter() - started) * 1000)
        log_stage(
            request_id,
            "FAILED",
            str(status_code),
            f"{error} {details}",
            duration_ms=duration_ms,
            level=logging.ERROR if status_code >= 500 else logging.WARNING,
        )
        return PipelineOutcome(
            status_code=status_code,
            payload=_envelope(error, details, transcript),
            stage="FAILED",
            request_id=request_id,
            transcript=transcript,
        )

    def run(
        self,
        upload: UploadedAudio | None,
        *,
        requested_timezone: str | None = None,
        request_id: str | None = None,
    ) -> PipelineOutcome:
        request_id = request_id or uuid4().hex[:12]
        started = time.perf_counter()

        if upload is None or not upload.data:
            return self._fail(
                request_id, 400, NO_UPLOAD_MESSAGE, "The 'audio' form field is missing or empty."
            )
        log_stage(
            request_id,
            "RECEIVED",
            "UPLOAD_OK",
            f"file={upload.filename} size={upload.size_bytes} mime={upload.mime_type}",
        )
        if upload.size_bytes > self._config.NURTURE_MAX_UPLOAD_BYTES:
            return self._fail(
                request_id,
                413,
                "Uploaded file is too large.",
                f"Upload exceeds the limit of {self._config.NURTURE_MAX_UPLOAD_BYTES} bytes.",
            )

        time_context = self._time_context(requested_timezone)
        transcript: Optional[str] = None
        staged_path: Optional[Path] = None
        try:
            with staged_upload(upload, self._config.tmp_dir_path()) as staged:
                staged_path = staged.path
                log_stage(request_id, "STAGED", "STAGE_OK", staged.name)

                stage_started = time.perf_counter()
                transcription = self._transcriber.transcribe(staged)
                if not transcription.ok:
                    status = _failure_status(transcription)
                    return self._fail(
                        request_id,
                        status,
                        f"Backend API call failed: {status}",
                        transcription.message,
                        started=started,
                    )
                transcript = transcription.text
                log_stage(
                    request_id,
                    "TRANSCRIBED",
                    "ASR_OK",
                    f"chars={len(transcript)}",
                    duration_ms=int((time.perf_counter() - stage_started) * 1000),
                )
                logger.debug("Transcription received for %s: %s", request_id, transcript)

                stage_started = time.perf_counter()
                extraction = self._extractor.extract(transcript, time_context)
                if extraction.kind == "empty_response":
                    return self._fail(
                        request_id, 500, GENERIC_FAILURE_MESSAGE, extraction.message, transcript, started
                    )
                if not extraction.ok:
                    status = _failure_status(extraction)
                    return self._fail(
                        request_id,
                        status,
                        f"OpenAI API error: {status}",
                        extraction.message,
                        transcript,
                        started,
                    )
                log_stage(
                    request_id,
                    "EXTRACTED",
                    "LLM_OK",
                    f"anchor={time_context.display}",
                    duration_ms=int((time.perf_counter() - stage_started) * 1000),
                )

                record = normalize_extraction(extraction.text, transcript, time_context)
                log_stage(
                    request_id,
                    "NORMALIZED",
                    "SCHEMA_FALLBACK" if record.error else "SCHEMA_OK",
                    f"event={record.event} prompts={record.promptForDetails}",
                )
        except StagingError as exc:
            return self._fail(request_id, 500, GENERIC_FAILURE_MESSAGE, str(exc), started=started)
        except Exception as exc:
            logger.exception("Unexpected error processing audio log %s", request_id)
            return self._fail(
                request_id,
                500,
                GENERIC_FAILURE_MESSAGE,
                str(exc) or "An unknown error occurred",
                transcript,
                started,
            )
        finally:
            if staged_path is not None:
                log_stage(
                    request_id,
                    "CLEANUP",
                    "TMP_LEFT_BEHIND" if staged_path.exists() else "TMP_DELETED",
                    staged_path.name,
                    level=logging.WARNING if staged_path.exists() else logging.INFO,
                )

        log_stage(
            request_id,
            "RESPONDED",
            "200",
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return PipelineOutcome(
            status_code=200,
            payload=record.to_payload(),
            stage="RESPONDED",
            request_id=request_id,
            transcript=transcript,
            debug={"timezone": time_context.timezone_name, "anchor": time_context.display},
        )
