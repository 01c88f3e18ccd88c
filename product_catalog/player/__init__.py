# Request-pipeline player
from .stages import (
    Stage,
    StageStatus,
    StageTransitionError,
    initial_stages,
    set_status,
)
from .trace_log import LogEntry
from .gate import SuspensionGate, GateAlreadyArmedError
from .orchestrator import (
    NetworkOrchestrator,
    PendingFetch,
    FetchError,
)
from .controller import (
    PlaybackController,
    PlaybackState,
    PlaybackMode,
    PlaybackError,
    PlaybackInProgressError,
    InvalidSpeedError,
    effective_wait_ms,
)
from .config import PlayerConfig

__all__ = [
    "Stage",
    "StageStatus",
    "StageTransitionError",
    "initial_stages",
    "set_status",
    "LogEntry",
    "SuspensionGate",
    "GateAlreadyArmedError",
    "NetworkOrchestrator",
    "PendingFetch",
    "FetchError",
    "PlaybackController",
    "PlaybackState",
    "PlaybackMode",
    "PlaybackError",
    "PlaybackInProgressError",
    "InvalidSpeedError",
    "effective_wait_ms",
    "PlayerConfig",
]
