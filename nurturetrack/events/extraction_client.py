from __future__ import annotations

"""
Structured-extraction client for baby-care transcripts.

Design intent:
- Ask the chat model for a single JSON object, nothing else.
- One attempt per request with a fixed timeout; SDK retries are disabled.
- Report failures as a tagged ServiceResult so the orchestrator never inspects exceptions.
"""

import logging
import time
from typing import Any

import openai

from nurturetrack.internal_core.config import AppConfig
from nurturetrack.internal_core.contracts import ServiceResult

from .prompt import build_messages
from .time_context import CurrentTimeContext

logger = logging.getLogger(__name__)


class ChatExtractionClient:
    def __init__(self, config: AppConfig, client: Any | None = None) -> None:
        self._model = config.NURTURE_EXTRACTION_MODEL
        self._temperature = config.NURTURE_EXTRACTION_TEMPERATURE
        self._timeout = config.NURTURE_REQUEST_TIMEOUT_SECONDS
        self._client = client or openai.OpenAI(
            api_key=config.OPENAI_API_KEY,
            base_url=config.OPENAI_BASE_URL,
            timeout=self._timeout,
            max_retries=0,
        )

    def close(self) -> None:
        self._client.close()

    def extract(self, transcript: str, time_context: CurrentTimeContext) -> ServiceResult:
        request_params: dict[str, Any] = {
            "model": self._model,
            "messages": build_messages(transcript, time_context),
            "temperature": self._temperature,
            "response_format": {"type": "json_object"},
        }
        started = time.perf_counter()
        try:
            completion = self._client.chat.completions.create(**request_params)
        except openai.APITimeoutError as exc:
            logger.error("Extraction timed out after %.0fs: %s", self._timeout, exc)
            return ServiceResult.failure(
                "timeout", f"Extraction request timed out after {self._timeout:g} seconds."
            )
        except openai.APIConnectionError as exc:
            logger.error("Extraction transport failure: %s", exc)
            return ServiceResult.failure("transport", str(exc) or exc.__class__.__name__)
        except openai.APIStatusError as exc:
            logger.error("Extraction service returned %s: %s", exc.status_code, exc.message)
            return ServiceResult.failure("http_status", exc.message, status_code=exc.status_code)

        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        content = _first_message_content(completion)
        logger.debug("Extraction finished in %sms (%d chars)", elapsed_ms, len(content))
        if not content.strip():
            return ServiceResult.failure("empty_response", "Extraction model did not return content.")
        return ServiceResult.success(content)


def _first_message_content(completion: Any) -> str:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return str(getattr(message, "content", None) or "")
