import asyncio
import sys
from pathlib import Path

# Añadir backend/ al PYTHONPATH
sys.path.append(str(Path(__file__).resolve().parents[2]))

from atarapida.core.config import get_settings
from atarapida.services.transcription_service import OpenAITranscriptionProvider


async def main(audio_path: Path) -> None:
    # Usa OPENAI_API_KEY / OPENAI_MODEL del .env, igual que la API
    settings = get_settings()
    provider = OpenAITranscriptionProvider(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.openai_timeout_seconds,
    )

    try:
        result = await provider.transcribe(
            audio_path.read_bytes(), audio_path.name, settings.transcription_language
        )
    finally:
        await provider.aclose()

    print(f"Tipo de respuesta: {result.kind}")
    print(f"Transcripción: {result.transcript!r}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Uso: python tests/manual/test_transcription.py <archivo de audio>")
        sys.exit(1)
    asyncio.run(main(Path(sys.argv[1])))
