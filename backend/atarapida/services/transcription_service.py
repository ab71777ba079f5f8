"""Cliente del proveedor de transcripción (API de audio de OpenAI)."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod

from openai import APIStatusError, AsyncOpenAI

from atarapida.core.errors import TranscriptionProviderError
from atarapida.models.transcription import (
    RawTranscript,
    StructuredTranscript,
    TranscriptionResult,
)


def parse_transcription_body(body: str) -> TranscriptionResult:
    """Interpreta el cuerpo de una respuesta exitosa.

    Un objeto JSON con campo `text` de tipo string da un `StructuredTranscript`
    con el texto recortado. Cualquier otra cosa (no JSON, JSON sin `text`) se
    conserva entera como `RawTranscript`; no es un error.
    """
    try:
        data = json.loads(body)
    except ValueError:
        return RawTranscript(body=body)

    if isinstance(data, dict) and isinstance(data.get("text"), str):
        return StructuredTranscript(text=data["text"].strip())
    return RawTranscript(body=body)


class TranscriptionProvider(ABC):
    """Contrato mínimo que necesita el pipeline de un proveedor de speech-to-text."""

    @abstractmethod
    async def transcribe(
        self, content: bytes, filename: str, language: str
    ) -> TranscriptionResult:
        """Transcribe el audio.

        Lanza `TranscriptionProviderError` si el proveedor responde con un
        código no exitoso; cualquier otra excepción (red, timeout) se trata
        como fallo local.
        """

    async def aclose(self) -> None:
        return None


class OpenAITranscriptionProvider(TranscriptionProvider):
    """
    Envía el audio a `audio/transcriptions` con autenticación bearer.
    Pedimos la respuesta cruda para poder aplicar nuestro propio parseo y
    guardar el cuerpo literal de los errores.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o-mini-transcribe",
        timeout: float = 600,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.client = client

    def _get_client(self) -> AsyncOpenAI:
        if self.client is None:
            # Sin reintentos: un fallo del proveedor es terminal para el job.
            self.client = AsyncOpenAI(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            )
        return self.client

    async def transcribe(
        self, content: bytes, filename: str, language: str
    ) -> TranscriptionResult:
        client = self._get_client()
        try:
            response = await client.audio.transcriptions.with_raw_response.create(
                file=(filename, content),
                model=self.model,
                language=language,
            )
        except APIStatusError as e:
            raise TranscriptionProviderError(e.status_code, e.response.text) from e

        return parse_transcription_body(response.http_response.text)

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.close()
