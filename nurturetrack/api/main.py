from __future__ import annotations

"""
HTTP surface for the NurtureTrack audio-log backend.

Design intent:
- Keep routing thin; the pipeline owns staging, service calls, and mapping.
- Build clients once from AppConfig and hand them to the pipeline explicitly.
- Always answer with JSON: a StructuredLogRecord or the error envelope.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException

from nurturetrack.asr.whisper_client import WhisperTranscriptionClient
from nurturetrack.events.extraction_client import ChatExtractionClient
from nurturetrack.internal_core.config import AppConfig, load_config
from nurturetrack.internal_core.contracts import UploadedAudio
from nurturetrack.pipeline.audio_log import AudioLogPipeline

logger = logging.getLogger(__name__)

ROOT_MESSAGE = "NurtureTrack Backend is running!"


def create_app(
    config: AppConfig | None = None,
    *,
    pipeline: AudioLogPipeline | None = None,
) -> FastAPI:
    """Build the service; ``load_config`` raises ConfigError without OPENAI_API_KEY."""
    config = config or load_config()
    if pipeline is None:
        pipeline = AudioLogPipeline(
            config,
            transcriber=WhisperTranscriptionClient(config),
            extractor=ChatExtractionClient(config),
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        app.state.pipeline.close()

    app = FastAPI(title="NurtureTrack backend service", lifespan=lifespan)
    app.state.config = config
    app.state.pipeline = pipeline
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.NURTURE_CORS_ALLOW_ORIGINS),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return ROOT_MESSAGE

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/process-audio-log")
    async def process_audio_log(request: Request) -> JSONResponse:
        logger.info("Received request to /process-audio-log")
        active: AudioLogPipeline = request.app.state.pipeline
        limit = request.app.state.config.NURTURE_MAX_UPLOAD_BYTES
        upload: UploadedAudio | None = None
        timezone: str | None = None
        try:
            async with request.form() as form:
                field = form.get("audio")
                tz_field = form.get("timezone")
                if isinstance(tz_field, str):
                    timezone = tz_field
                if isinstance(field, UploadFile):
                    upload = await _read_upload(field, limit)
                elif field is not None:
                    logger.warning("Ignoring non-file 'audio' form field")
        except HTTPException as exc:
            logger.warning("Could not parse form body: %s", exc.detail)

        outcome = await run_in_threadpool(active.run, upload, requested_timezone=timezone)
        return JSONResponse(status_code=outcome.status_code, content=outcome.payload)

    return app


async def _read_upload(audio: UploadFile, limit: int) -> UploadedAudio:
    # At most limit + 1 bytes are held in memory; the pipeline rejects anything longer.
    data = await audio.read(limit + 1)
    return UploadedAudio(
        data=data,
        filename=audio.filename or "audio.tmp",
        mime_type=audio.content_type or "application/octet-stream",
    )
