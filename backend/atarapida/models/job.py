"""Definición del modelo de datos de un Job.

Un job representa una transcripción asíncrona: se crea en `processing`,
pasa una única vez a `done` o `error` y desaparece cuando el recolector lo
expulsa por antigüedad. El modelo es inmutable: cada transición devuelve
una instancia nueva, así una lectura nunca ve un job a medio actualizar.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from atarapida.core.enums import JobStatus

UNKNOWN_ERROR = "Unknown error"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Job(BaseModel):
    """Instantánea del estado de un trabajo."""

    id: str
    status: JobStatus = JobStatus.PROCESSING  # Estado actual en el ciclo de vida
    created_at: datetime = Field(default_factory=utcnow)  # Sólo se usa para el TTL

    transcript: Optional[str] = None  # Presente sólo cuando status == done (puede ser "")
    error: Optional[str] = None  # Presente sólo cuando status == error (nunca vacío)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_payload(self) -> "Job":
        if self.status is JobStatus.DONE:
            ok = self.transcript is not None and self.error is None
        elif self.status is JobStatus.ERROR:
            ok = bool(self.error) and self.transcript is None
        else:
            ok = self.transcript is None and self.error is None
        if not ok:
            raise ValueError(f"Inconsistent payload for status {self.status.value}")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def mark_done(self, transcript: str) -> Job:
        """Devuelve una copia completada con la transcripción."""
        return self.model_copy(update={"status": JobStatus.DONE, "transcript": transcript})

    def mark_failed(self, error_message: str) -> Job:
        """Devuelve una copia fallida; un mensaje vacío se sustituye por uno genérico."""
        return self.model_copy(
            update={"status": JobStatus.ERROR, "error": error_message or UNKNOWN_ERROR}
        )

    def to_public(self) -> dict:
        """Cuerpo que se devuelve al cliente al consultar el job."""
        if self.status is JobStatus.DONE:
            return {"status": self.status.value, "transcript": self.transcript}
        if self.status is JobStatus.ERROR:
            return {"status": self.status.value, "error": self.error}
        return {"status": self.status.value}
