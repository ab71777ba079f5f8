from __future__ import annotations

import asyncio
import threading
import time
from typing import List, Optional, Tuple

import pytest

from atarapida.core.config import Settings
from atarapida.models.transcription import StructuredTranscript
from atarapida.services.transcription_service import TranscriptionProvider

APP_KEY = "test-app-key"


class FakeProvider(TranscriptionProvider):
    """Proveedor en memoria: devuelve `result` o lanza `error`.

    Con `gate` el proveedor se queda esperando hasta que el test lo libera,
    lo que permite observar el job en `processing`.
    """

    def __init__(self, result=None, error: Optional[BaseException] = None, gate: Optional[threading.Event] = None) -> None:
        self.result = result if result is not None else StructuredTranscript(text="ola mundo")
        self.error = error
        self.gate = gate
        self.calls: List[Tuple[bytes, str, str]] = []
        self.closed = False

    async def transcribe(self, content: bytes, filename: str, language: str):
        self.calls.append((content, filename, language))
        if self.gate is not None:
            await asyncio.to_thread(self.gate.wait, 5)
        if self.error is not None:
            raise self.error
        return self.result

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def settings(upload_dir):
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        app_api_key=APP_KEY,
        upload_dir=upload_dir,
        rate_limit_per_minute=1000,
        shutdown_grace_seconds=5,
    )


@pytest.fixture
def auth_headers():
    return {"X-APP-KEY": APP_KEY}


def _wait_for_terminal(client, job_id: str, headers: dict, timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        body = client.get(f"/jobs/{job_id}", headers=headers).json()
        if body["status"] != "processing" or time.monotonic() > deadline:
            return body
        time.sleep(0.01)


@pytest.fixture
def wait_for_terminal():
    """Consulta el job hasta que deja de estar en `processing`."""
    return _wait_for_terminal


@pytest.fixture
def make_provider():
    return FakeProvider
