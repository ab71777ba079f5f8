"""Orquestación de los jobs de transcripción.

`submit` registra el job y lanza una tarea asyncio independiente; la
respuesta al cliente sale sin esperar al proveedor. Cada tarea hace, en
orden y una sola vez: leer el archivo, llamar al proveedor, fijar el estado
terminal del job y borrar el archivo temporal.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from time import perf_counter
from typing import Callable, Set, Tuple
from uuid import uuid4

from atarapida.core.enums import JobStatus
from atarapida.core.errors import TranscriptionProviderError
from atarapida.services.job_store import JobStore
from atarapida.services.transcription_service import TranscriptionProvider

logger = logging.getLogger(__name__)


def new_job_id() -> str:
    return str(uuid4())


def describe_failure(exc: BaseException) -> str:
    """Texto que se guarda como error del job para un fallo local."""
    return str(exc) or exc.__class__.__name__


class JobLifecycleManager:
    """
    Gestiona el ciclo de vida completo de un job:
    submit -> lectura -> proveedor -> estado terminal -> limpieza.
    Las tareas en curso quedan registradas para poder esperarlas al apagar.
    """

    def __init__(
        self,
        job_store: JobStore,
        provider: TranscriptionProvider,
        language: str = "pt",
        id_factory: Callable[[], str] = new_job_id,
    ) -> None:
        self.job_store = job_store
        self.provider = provider
        self.language = language
        self._id_factory = id_factory
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def submit(self, file_path: Path, filename: str) -> str:
        """Registra el job y lanza su procesamiento sin esperarlo.

        Debe llamarse desde el event loop (p.ej. un endpoint async). Sólo toca
        el registro en memoria; ninguna llamada de red ocurre aquí.
        """
        job_id = self._id_factory()
        self.job_store.create(job_id)

        task = asyncio.create_task(
            self.process(job_id, file_path, filename),
            name=f"transcription-{job_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info("Accepted job %s (%s)", job_id, filename)
        return job_id

    async def process(self, job_id: str, file_path: Path, filename: str) -> None:
        """Procesa un job; el archivo temporal se borra siempre, también si se cancela."""
        started_at = perf_counter()
        try:
            status, payload = await self._transcribe_file(job_id, file_path, filename)
            self.job_store.update(job_id, status, payload)
            logger.info(
                "Job %s finished with status=%s in %d ms",
                job_id,
                status.value,
                int((perf_counter() - started_at) * 1000),
            )
        finally:
            await self._remove_temp_file(file_path)

    async def _transcribe_file(
        self, job_id: str, file_path: Path, filename: str
    ) -> Tuple[JobStatus, str]:
        try:
            content = await asyncio.to_thread(file_path.read_bytes)
            result = await self.provider.transcribe(content, filename, self.language)
        except TranscriptionProviderError as e:
            logger.warning(
                "Provider rejected job %s with status %s", job_id, e.status_code
            )
            return JobStatus.ERROR, e.body
        except Exception as e:
            logger.warning("Job %s failed: %s", job_id, describe_failure(e))
            return JobStatus.ERROR, describe_failure(e)

        if result.kind == "raw":
            logger.info("Job %s: provider body was not JSON, storing raw text", job_id)
        return JobStatus.DONE, result.transcript

    async def _remove_temp_file(self, file_path: Path) -> None:
        try:
            await asyncio.to_thread(file_path.unlink)
        except OSError as e:
            logger.warning("Could not delete temp file %s: %s", file_path, e)

    async def shutdown(self, grace_seconds: float = 30) -> None:
        """Espera a las tareas en curso; las que no terminan a tiempo se cancelan."""
        if not self._tasks:
            return

        pending_tasks = set(self._tasks)
        logger.info("Waiting for %d in-flight job(s)", len(pending_tasks))
        _, still_running = await asyncio.wait(pending_tasks, timeout=grace_seconds)

        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning("Cancelled %d job(s) at shutdown", len(still_running))
            await asyncio.gather(*still_running, return_exceptions=True)
