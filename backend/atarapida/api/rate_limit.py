"""Límite de peticiones por cliente con ventana fija de un minuto."""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Tuple


class RateLimiter:
    """
    Cuenta peticiones por clave (la IP del cliente) en ventanas fijas.
    Las ventanas caducadas se purgan como mucho una vez por ventana.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()
        self._last_prune = clock()

    def hit(self, key: str) -> bool:
        """Registra una petición; devuelve False si la clave superó el límite."""
        now = self._clock()
        with self._lock:
            window_start, count = self._hits.get(key, (now, 0))
            if now - window_start >= self.window_seconds:
                window_start, count = now, 0
            count += 1
            self._hits[key] = (window_start, count)

            if now - self._last_prune >= self.window_seconds:
                self._prune(now)
        return count <= self.limit

    def retry_after(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            window_start, _ = self._hits.get(key, (now, 0))
        return max(1, int(self.window_seconds - (now - window_start)) + 1)

    def _prune(self, now: float) -> None:
        self._hits = {
            key: entry
            for key, entry in self._hits.items()
            if now - entry[0] < self.window_seconds
        }
        self._last_prune = now
