"""Guardado en disco de los audios subidos.

El archivo se copia por bloques a un temporal propio de forma que nunca
se carga entero en memoria y se puede cortar en cuanto supera el límite.
"""

from __future__ import annotations

import secrets
import time
from pathlib import Path

from fastapi import UploadFile

from atarapida.core.errors import PayloadTooLargeError

DEFAULT_EXTENSION = ".m4a"
FILE_PREFIX = "atarapida"
CHUNK_SIZE = 1024 * 1024


class UploadService:
    """Escribe subidas en `upload_dir` respetando `max_bytes`."""

    def __init__(self, upload_dir: Path, max_bytes: int) -> None:
        self.upload_dir = upload_dir
        self.max_bytes = max_bytes

    def temp_path_for(self, original_name: str | None) -> Path:
        """Nombre único: atarapida_<epoch ms>_<hex aleatorio><ext>."""
        ext = Path(original_name or "").suffix or DEFAULT_EXTENSION
        name = f"{FILE_PREFIX}_{int(time.time() * 1000)}_{secrets.token_hex(6)}{ext}"
        return self.upload_dir / name

    async def save(self, upload: UploadFile) -> Path:
        """Copia la subida a un temporal y devuelve su ruta.

        Si supera el tamaño máximo se borra lo escrito y se lanza
        `PayloadTooLargeError`.
        """
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.temp_path_for(upload.filename)

        written = 0
        try:
            with open(path, "wb") as f:
                while chunk := await upload.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise PayloadTooLargeError(
                            f"File exceeds the {self.max_bytes // (1024 * 1024)} MB limit"
                        )
                    f.write(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise
        return path
