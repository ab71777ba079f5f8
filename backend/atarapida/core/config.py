"""Carga de configuración de la aplicación.

Usa `pydantic-settings` para leer valores desde `.env` o variables de
entorno. Los nombres de las variables coinciden con los que ya usaba el
despliegue (`OPENAI_API_KEY`, `APP_API_KEY`, `MAX_FILE_MB`, ...), así que
un `.env` existente sigue funcionando sin cambios.
"""

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Contenedor tipado para todas las opciones configurables."""

    app_name: str = "AtaRapida API"

    # Servidor HTTP
    host: str = "0.0.0.0"
    port: int = 8080

    # Secretos: ambos son obligatorios para arrancar
    openai_api_key: str | None = None
    app_api_key: str | None = None  # valor esperado en la cabecera X-APP-KEY

    # Subidas
    max_file_mb: int = 200
    upload_dir: Path = Path(tempfile.gettempdir())

    # Retención de jobs en memoria y cada cuánto se barre el registro
    job_ttl_minutes: float = 60
    reaper_interval_seconds: float = 60

    # Proveedor de transcripción
    openai_model: str = "gpt-4o-mini-transcribe"
    openai_timeout_seconds: float = 600
    transcription_language: str = "pt"

    # Peticiones por minuto y cliente
    rate_limit_per_minute: int = 60

    # Tiempo que se espera a los jobs en curso al apagar
    shutdown_grace_seconds: float = 30

    # CORS
    allowed_origins: Annotated[List[str], NoDecode] = ["*"]
    allow_credentials: bool = False

    log_level: str = "INFO"

    # Le indicamos a Pydantic que lea automáticamente las variables de entorno
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        # Accept comma separated `ALLOWED_ORIGINS` env value as a string
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        return value

    @property
    def max_upload_bytes(self) -> int:
        return self.max_file_mb * 1024 * 1024

    def missing_secrets(self) -> List[str]:
        """Nombres de las variables obligatorias que no tienen valor."""
        missing = []
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if not self.app_api_key:
            missing.append("APP_API_KEY")
        return missing


@lru_cache
def get_settings() -> Settings:
    """Crea (y memoriza) la configuración de forma perezosa.

    Usamos `lru_cache` para que sólo se construya una instancia por proceso,
    evitando relecturas repetidas de `.env`.
    """
    return Settings()
