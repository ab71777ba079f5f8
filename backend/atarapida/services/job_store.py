"""Registro en memoria de los jobs de transcripción.

No hay base de datos: el registro vive mientras el proceso está en marcha y
se construye una sola vez al arrancar la aplicación (ver `main.lifespan`).
Todas las operaciones toman el mismo `threading.Lock` y nunca hacen I/O con
él tomado, así que son rápidas y seguras tanto desde corrutinas como desde
hilos del threadpool.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from atarapida.core.enums import JobStatus
from atarapida.core.errors import DuplicateJobIdError
from atarapida.models.job import Job, utcnow

logger = logging.getLogger(__name__)


class JobStore:
    """
    Mapa id -> Job protegido por un único lock.
    Los Job son inmutables: `get` devuelve la instancia guardada sin copiarla.
    """

    def __init__(
        self,
        ttl: timedelta,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def create(self, job_id: str) -> Job:
        """Registra un job nuevo en `processing` con `created_at = ahora`."""
        job = Job(id=job_id, created_at=self._clock())
        with self._lock:
            if job_id in self._jobs:
                raise DuplicateJobIdError(f"Job id already registered: {job_id}")
            self._jobs[job_id] = job
        return job

    def get(self, job_id: str) -> Optional[Job]:
        """Devuelve el job por id o None si no existe (o ya fue expulsado)."""
        with self._lock:
            return self._jobs.get(job_id)

    def update(self, job_id: str, status: JobStatus, payload: str) -> bool:
        """Lleva un job en `processing` a su estado terminal.

        `payload` es la transcripción (status done) o el mensaje de error
        (status error). Si el job ya no existe o ya es terminal no se hace
        nada y se devuelve False; nunca se recrea un job expulsado.
        """
        if not status.is_terminal:
            raise ValueError(f"Not a terminal status: {status.value}")

        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.is_terminal:
                applied = False
            else:
                if status is JobStatus.DONE:
                    self._jobs[job_id] = job.mark_done(payload)
                else:
                    self._jobs[job_id] = job.mark_failed(payload)
                applied = True

        if not applied:
            logger.debug("Ignoring update for job %s (missing or already final)", job_id)
        return applied

    def sweep(self, now: Optional[datetime] = None) -> int:
        """Elimina todos los jobs con `now - created_at > ttl`, sea cual sea su estado."""
        now = now or self._clock()
        with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if now - job.created_at > self.ttl
            ]
            for job_id in expired:
                del self._jobs[job_id]
        return len(expired)
