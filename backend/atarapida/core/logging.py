"""Configuración mínima de logging para el proceso."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s"

_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO") -> None:
    """Instala un único handler de consola en el logger raíz.

    Se puede llamar varias veces (p.ej. en cada arranque del lifespan en los
    tests); sólo la primera añade el handler, las siguientes ajustan el nivel.
    """
    global _handler

    root = logging.getLogger()
    root.setLevel(level.upper())
    if _handler is not None and _handler in root.handlers:
        return

    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(_handler)
