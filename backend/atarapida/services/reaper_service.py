"""Barrido periódico de jobs caducados."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from atarapida.services.job_store import JobStore

logger = logging.getLogger(__name__)


class TTLReaper:
    """
    Tarea asyncio de larga duración que llama a `JobStore.sweep` cada
    `interval` segundos. Un único bucle: nunca hay dos barridos a la vez.
    """

    def __init__(self, job_store: JobStore, interval: float) -> None:
        self.job_store = job_store
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning("TTL reaper already running")
            return
        self._task = asyncio.create_task(self._run(), name="ttl-reaper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def sweep_once(self) -> int:
        """Un barrido; cualquier fallo se registra y nunca se propaga."""
        try:
            removed = self.job_store.sweep()
        except Exception:
            logger.exception("TTL sweep failed")
            return 0
        if removed:
            logger.info("Evicted %d expired job(s), %d remaining", removed, len(self.job_store))
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.sweep_once()
