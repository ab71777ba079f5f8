"""Resultado de una transcripción tal como lo devuelve el proveedor.

Distinguimos entre una respuesta JSON con campo `text` (`StructuredTranscript`)
y un cuerpo que no se pudo interpretar (`RawTranscript`). Ambos se reducen a
un único texto sólo al guardarlo en el job.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class StructuredTranscript(BaseModel):
    """Respuesta JSON con el texto ya extraído (y recortado)."""

    kind: Literal["structured"] = "structured"
    text: str

    model_config = ConfigDict(frozen=True)

    @property
    def transcript(self) -> str:
        return self.text


class RawTranscript(BaseModel):
    """Cuerpo no interpretable: se usa entero como transcripción."""

    kind: Literal["raw"] = "raw"
    body: str

    model_config = ConfigDict(frozen=True)

    @property
    def transcript(self) -> str:
        return self.body.strip()


TranscriptionResult = Annotated[
    Union[StructuredTranscript, RawTranscript], Field(discriminator="kind")
]
