"""
Append-only trace log for a playback run.

Insertion order is display order; it reconstructs the timeline of the run.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogEntry:
    timestamp: float
    message: str

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "message": self.message}


TraceLog = Tuple[LogEntry, ...]


def append(
    log: Sequence[LogEntry],
    message: str,
    clock: Callable[[], float] = time.time,
) -> TraceLog:
    """Return a new log with one timestamped entry added at the end."""
    logger.debug(f"trace: {message}")
    return tuple(log) + (LogEntry(timestamp=clock(), message=message),)


def clear() -> TraceLog:
    return ()
