import asyncio

import httpx
import pytest
from openai import AsyncOpenAI

from atarapida.core.errors import TranscriptionProviderError
from atarapida.models.transcription import RawTranscript, StructuredTranscript
from atarapida.services.transcription_service import (
    OpenAITranscriptionProvider,
    parse_transcription_body,
)


def test_parse_json_with_text_field_is_structured_and_trimmed():
    result = parse_transcription_body('{"text": "  ola mundo \\n"}')

    assert result == StructuredTranscript(text="ola mundo")
    assert result.transcript == "ola mundo"


def test_parse_non_json_falls_back_to_raw_body():
    result = parse_transcription_body(" ola mundo\n")

    assert isinstance(result, RawTranscript)
    assert result.body == " ola mundo\n"
    assert result.transcript == "ola mundo"


@pytest.mark.parametrize("body", ['{"segments": []}', '["a", "b"]', '"just a string"', '{"text": 42}'])
def test_parse_json_without_string_text_is_raw(body):
    result = parse_transcription_body(body)

    assert result.kind == "raw"
    assert result.body == body


def test_parse_empty_text_is_valid():
    assert parse_transcription_body('{"text": ""}').transcript == ""


def make_provider(handler) -> OpenAITranscriptionProvider:
    client = AsyncOpenAI(
        api_key="sk-test",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return OpenAITranscriptionProvider(api_key="sk-test", model="whisper-test", client=client)


def test_openai_provider_sends_multipart_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = request.content
        return httpx.Response(200, json={"text": " ola mundo "})

    provider = make_provider(handler)

    result = asyncio.run(provider.transcribe(b"AUDIO-BYTES", "clip.m4a", "pt"))

    assert result == StructuredTranscript(text="ola mundo")
    assert seen["path"].endswith("/audio/transcriptions")
    assert seen["auth"] == "Bearer sk-test"
    assert b"AUDIO-BYTES" in seen["body"]
    assert b'filename="clip.m4a"' in seen["body"]
    assert b"whisper-test" in seen["body"]
    assert b'name="language"' in seen["body"]


def test_openai_provider_keeps_non_json_success_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="plain transcript")

    result = asyncio.run(make_provider(handler).transcribe(b"x", "a.m4a", "pt"))

    assert result == RawTranscript(body="plain transcript")


def test_openai_provider_raises_with_verbatim_error_body():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(429, text="rate limited")

    with pytest.raises(TranscriptionProviderError) as exc_info:
        asyncio.run(make_provider(handler).transcribe(b"x", "a.m4a", "pt"))

    assert exc_info.value.status_code == 429
    assert exc_info.value.body == "rate limited"
    # sin reintentos
    assert len(calls) == 1


def test_client_is_built_lazily_without_retries():
    provider = OpenAITranscriptionProvider(api_key="sk-test", timeout=12)

    assert provider.client is None
    client = provider._get_client()

    assert client.max_retries == 0
    assert provider._get_client() is client
