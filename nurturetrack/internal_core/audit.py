from __future__ import annotations

import logging
from typing import Literal, Optional

logger = logging.getLogger("nurturetrack.audit")

PipelineStage = Literal[
    "RECEIVED",
    "STAGED",
    "TRANSCRIBED",
    "EXTRACTED",
    "NORMALIZED",
    "RESPONDED",
    "FAILED",
    "CLEANUP",
]


def _sanitize_detail(detail: str) -> str:
    # Never include transcript text or audio bytes in detail.
    detail = (detail or "").replace("\n", " ").strip()
    if len(detail) > 200:
        detail = detail[:200] + "..."
    return detail


def log_stage(
    request_id: str,
    stage: PipelineStage,
    code: str,
    detail: str = "",
    duration_ms: Optional[int] = None,
    level: int = logging.INFO,
) -> None:
    logger.log(
        level,
        "request=%s stage=%s code=%s duration_ms=%s detail=%s",
        request_id,
        stage,
        code,
        "-" if duration_ms is None else duration_ms,
        _sanitize_detail(detail),
    )
