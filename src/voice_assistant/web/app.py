"""FastAPI application exposing the voice pipeline over HTTP."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi import status as http_status

from voice_assistant.bootstrap import build_container, build_pipeline
from voice_assistant.core import (
    AppSettings,
    InputError,
    ServiceContainer,
    TranscriptionError,
    load_app_settings,
)
from voice_assistant.core.models import VoiceProcessOptions
from voice_assistant.pipeline import VoicePipeline

LOGGER = logging.getLogger(__name__)

_ENV_FILE_OVERRIDE_VAR = "VOICE_ASSISTANT_ENV_FILE"
_DEFAULT_ENV_FILE = Path(".env")
_DEFAULT_SUFFIX = ".m4a"


def create_app(
    settings: AppSettings | None = None,
    *,
    pipeline: VoicePipeline | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    When ``pipeline`` is omitted the providers are built from ``settings``
    on the first voice request and closed on shutdown.
    """
    app_settings = settings or load_app_settings(env_file=_resolve_env_file())
    app = FastAPI(title="Voice Assistant")
    container: ServiceContainer | None = None
    build_lock = asyncio.Lock()

    async def get_pipeline() -> VoicePipeline:
        nonlocal container, pipeline
        if pipeline is not None:
            return pipeline
        async with build_lock:
            if pipeline is None:
                container = build_container(app_settings)
                pipeline = build_pipeline(container, app_settings)
                LOGGER.info("Voice pipeline initialised")
        return pipeline

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        """Flush pending history writes and close providers."""
        if pipeline is not None:
            await pipeline.drain()
        if container is not None:
            await container.aclose()
            LOGGER.info("Providers closed")

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Report liveness and which optional providers are configured."""
        return {
            "status": "ok",
            "webSearch": bool(app_settings.gemini.api_key),
            "places": bool(app_settings.places.api_key),
            "integrations": bool(app_settings.integrations.session_token),
            "contacts": app_settings.contacts.export_path is not None,
        }

    @app.post("/api/v1/voice")
    async def process_voice(
        audio: UploadFile = File(...),  # noqa: B008
        language: str | None = Form(default=None),
        context: str | None = Form(default=None),
        location: str | None = Form(default=None),
        latitude: float | None = Form(default=None),
        longitude: float | None = Form(default=None),
        user_name: str | None = Form(default=None, alias="userName"),
    ) -> dict[str, Any]:
        """Transcribe the uploaded recording and return the assistant result."""
        voice_pipeline = await get_pipeline()
        options = VoiceProcessOptions(
            language=language or None,
            context=context or None,
            location=location or None,
            latitude=latitude,
            longitude=longitude,
            user_name=user_name or None,
        )
        audio_path = await _store_upload(audio)
        try:
            result = await voice_pipeline.run(audio_path, options)
        except InputError as exc:
            raise HTTPException(
                status_code=http_status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        except TranscriptionError as exc:
            LOGGER.warning("Transcription failed: %s", exc)
            raise HTTPException(
                status_code=http_status.HTTP_502_BAD_GATEWAY, detail=str(exc)
            ) from exc
        finally:
            _discard(audio_path)
        return result.to_dict()

    return app


async def _store_upload(upload: UploadFile) -> Path:
    """Copy the uploaded audio into a temporary file the pipeline can read."""
    suffix = Path(upload.filename or "").suffix or _DEFAULT_SUFFIX
    payload = await upload.read()
    handle, name = tempfile.mkstemp(prefix="voice-", suffix=suffix)
    with os.fdopen(handle, "wb") as target:
        target.write(payload)
    return Path(name)


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        LOGGER.warning("Could not remove temporary upload %s: %s", path, exc)


def _resolve_env_file() -> Path:
    override = os.getenv(_ENV_FILE_OVERRIDE_VAR)
    if override:
        return Path(override)
    return _DEFAULT_ENV_FILE


__all__ = ["create_app"]
