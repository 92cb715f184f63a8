from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

EventName = Literal[
    "diaper change",
    "feed",
    "sleep",
    "pump",
    "medication",
    "temperature",
    "bath",
    "note",
]

ALLOWED_EVENTS: tuple[str, ...] = (
    "diaper change",
    "feed",
    "sleep",
    "pump",
    "medication",
    "temperature",
    "bath",
    "note",
)

DETAIL_FIELDS_BY_EVENT: dict[str, tuple[str, ...]] = {
    "diaper change": ("type", "consistency", "color"),
    "feed": ("type", "milkType", "amount", "unit", "food", "duration"),
    "sleep": ("type", "duration", "location"),
    "pump": ("amount", "unit", "duration"),
    "medication": ("name", "dosage"),
    "temperature": ("value", "unit"),
}

FALLBACK_ERROR_MESSAGE = "AI could not structure the data reliably."


class StructuredLogRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    babyName: Optional[str] = None
    event: Optional[EventName] = None
    time: Optional[str] = None
    details: Dict[str, Optional[str]] = Field(default_factory=dict)
    promptForDetails: Optional[List[str]] = None
    originalTranscription: str
    error: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump()
        if payload.get("error") is None:
            payload.pop("error", None)
        return payload


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error: str
    details: str
    transcription: Optional[str] = None


@dataclass(frozen=True)
class UploadedAudio:
    data: bytes
    filename: str
    mime_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class StagedFile:
    path: Path
    original_filename: str
    mime_type: str
    size_bytes: int

    @property
    def name(self) -> str:
        return self.path.name


ServiceResultKind = Literal["ok", "timeout", "transport", "http_status", "empty_response"]


@dataclass(frozen=True)
class ServiceResult:
    """Outcome of one outbound call; ``kind`` tells the caller which branch applies."""

    kind: ServiceResultKind
    text: str = ""
    status_code: Optional[int] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.kind == "ok"

    @classmethod
    def success(cls, text: str) -> "ServiceResult":
        return cls(kind="ok", text=text)

    @classmethod
    def failure(
        cls,
        kind: ServiceResultKind,
        message: str,
        status_code: Optional[int] = None,
    ) -> "ServiceResult":
        return cls(kind=kind, status_code=status_code, message=message)
