from __future__ import annotations

"""
Speech-to-text client for staged audio uploads.

Design intent:
- One multipart POST per request, streamed from the staged file handle.
- No retries; the configured timeout bounds each connect, write, read and pool phase.
- Report failures as a tagged ServiceResult instead of raising.
"""

import logging
from typing import Any

import httpx

from nurturetrack.internal_core.config import AppConfig
from nurturetrack.internal_core.contracts import ServiceResult, StagedFile

logger = logging.getLogger(__name__)


def upstream_error_message(response: httpx.Response) -> str:
    """Pull ``error.message`` out of an OpenAI-style error body, else the raw text."""
    try:
        body: Any = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    text = response.text.strip()
    return text or f"HTTP {response.status_code}"


class WhisperTranscriptionClient:
    def __init__(self, config: AppConfig, http_client: httpx.Client | None = None) -> None:
        self._url = config.transcription_url()
        self._model = config.NURTURE_TRANSCRIPTION_MODEL
        self._api_key = config.OPENAI_API_KEY
        self._timeout = config.NURTURE_REQUEST_TIMEOUT_SECONDS
        self._client = http_client or httpx.Client(timeout=httpx.Timeout(self._timeout))

    def close(self) -> None:
        self._client.close()

    def transcribe(self, staged: StagedFile) -> ServiceResult:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        data = {"model": self._model, "response_format": "text"}
        try:
            with staged.path.open("rb") as handle:
                files = {"file": (staged.name, handle, staged.mime_type or "application/octet-stream")}
                response = self._client.post(
                    self._url,
                    headers=headers,
                    data=data,
                    files=files,
                    timeout=self._timeout,
                )
        except httpx.TimeoutException as exc:
            logger.error("Transcription timed out after %.0fs: %s", self._timeout, exc)
            return ServiceResult.failure(
                "timeout", f"Transcription request timed out after {self._timeout:g} seconds."
            )
        except httpx.TransportError as exc:
            logger.error("Transcription transport failure: %s", exc)
            return ServiceResult.failure("transport", str(exc) or exc.__class__.__name__)
        except OSError as exc:
            logger.error("Could not read staged file %s: %s", staged.path, exc)
            return ServiceResult.failure("transport", f"Could not read staged audio: {exc}")

        if not response.is_success:
            message = upstream_error_message(response)
            logger.error("Transcription service returned %s: %s", response.status_code, message)
            return ServiceResult.failure("http_status", message, status_code=response.status_code)

        # A silent recording legitimately transcribes to "".
        return ServiceResult.success(response.text)
