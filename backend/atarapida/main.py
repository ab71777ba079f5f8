"""Punto de entrada de la API usando FastAPI.

Este módulo crea la aplicación, configura CORS, el límite de peticiones y
registra los routers. Los servicios con estado (registro de jobs, pipeline,
recolector) se construyen en el `lifespan` y se desmontan al apagar.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from atarapida.api.jobs import router as jobs_router
from atarapida.api.rate_limit import RateLimiter
from atarapida.core.config import Settings, get_settings
from atarapida.core.errors import ApiError, RateLimitedError, api_error_handler, error_payload
from atarapida.core.logging import setup_logging
from atarapida.services.job_store import JobStore
from atarapida.services.pipeline_service import JobLifecycleManager
from atarapida.services.reaper_service import TTLReaper
from atarapida.services.transcription_service import (
    OpenAITranscriptionProvider,
    TranscriptionProvider,
)
from atarapida.services.upload_service import UploadService

logger = logging.getLogger(__name__)

UNLIMITED_PATHS = {"/health"}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Construye el registro y el pipeline al arrancar; los drena al apagar."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)

    missing = settings.missing_secrets()
    if missing:
        logger.error("Missing required configuration: %s", ", ".join(missing))
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")

    provider: TranscriptionProvider = app.state.provider or OpenAITranscriptionProvider(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.openai_timeout_seconds,
    )
    job_store = JobStore(ttl=timedelta(minutes=settings.job_ttl_minutes))
    lifecycle = JobLifecycleManager(
        job_store=job_store,
        provider=provider,
        language=settings.transcription_language,
    )
    reaper = TTLReaper(job_store, interval=settings.reaper_interval_seconds)

    app.state.job_store = job_store
    app.state.lifecycle = lifecycle
    app.state.upload_service = UploadService(
        upload_dir=settings.upload_dir, max_bytes=settings.max_upload_bytes
    )

    reaper.start()
    logger.info(
        "%s ready (model=%s, ttl=%s min)",
        settings.app_name,
        settings.openai_model,
        settings.job_ttl_minutes,
    )
    try:
        yield
    finally:
        await reaper.stop()
        await lifecycle.shutdown(settings.shutdown_grace_seconds)
        await provider.aclose()
        logger.info("%s stopped", settings.app_name)


def create_app(
    settings: Settings | None = None,
    provider: TranscriptionProvider | None = None,
) -> FastAPI:
    """Crea la aplicación; `provider` permite sustituir OpenAI en los tests."""
    settings = settings or get_settings()

    # Instancia principal de FastAPI; aquí es donde se montan rutas y middleware.
    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.provider = provider

    # CORS configurable via `settings.allowed_origins` (definido en .env)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(o) for o in settings.allowed_origins],
        allow_credentials=settings.allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = RateLimiter(limit=settings.rate_limit_per_minute)

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        """Aplica el límite por IP antes de llegar a las rutas."""
        if request.url.path in UNLIMITED_PATHS:
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        if not limiter.hit(client):
            logger.warning("Rate limit exceeded for %s", client)
            return JSONResponse(
                status_code=RateLimitedError.status_code,
                content=error_payload(RateLimitedError()),
                headers={"Retry-After": str(limiter.retry_after(client))},
            )
        return await call_next(request)

    app.add_exception_handler(ApiError, api_error_handler)

    @app.get("/health")
    async def health():
        return {"ok": True}

    app.include_router(jobs_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run("atarapida.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
