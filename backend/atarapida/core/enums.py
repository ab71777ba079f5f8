"""Enumeraciones compartidas que describen el estado de un job."""

from enum import Enum


class JobStatus(str, Enum):
    """Estados posibles de un trabajo de transcripción."""

    PROCESSING = "processing"
    DONE = "done"  # terminal, lleva `transcript`
    ERROR = "error"  # terminal, lleva `error`

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.PROCESSING
