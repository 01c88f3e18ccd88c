"""
Stage registry for the request-pipeline player.

The pipeline always has four stages in request order:
client -> proxy -> service -> database.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Sequence, Tuple

logger = logging.getLogger(__name__)


class StageStatus(Enum):
    """Status of one pipeline stage."""
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETE = "complete"
    ERROR = "error"


# Forward-only moves; a same-status write is always accepted.
ALLOWED_TRANSITIONS = {
    StageStatus.PENDING: {StageStatus.ACTIVE, StageStatus.ERROR},
    StageStatus.ACTIVE: {StageStatus.COMPLETE, StageStatus.ERROR},
    StageStatus.COMPLETE: {StageStatus.ERROR},
    StageStatus.ERROR: set(),
}


class StageTransitionError(ValueError):
    """Raised when a stage status would move backward."""


@dataclass(frozen=True)
class Stage:
    """One hop of the visualized request path."""
    id: int
    label: str
    description: str
    icon: str
    status: StageStatus = StageStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "icon": self.icon,
            "status": self.status.value,
        }


STAGE_DEFINITIONS = (
    ("Frontend", "Browser UI issues GET /api/products", "🖥️"),
    ("Proxy", "Reverse proxy routes /api to the backend", "🔀"),
    ("Service", "Backend API handles the request", "⚙️"),
    ("Store", "Relational store returns the product rows", "🗄️"),
)

STAGE_COUNT = len(STAGE_DEFINITIONS)

Stages = Tuple[Stage, ...]


def initial_stages() -> Stages:
    """All four stages in request order, each pending."""
    return tuple(
        Stage(id=index, label=label, description=description, icon=icon)
        for index, (label, description, icon) in enumerate(STAGE_DEFINITIONS)
    )


def set_status(stages: Sequence[Stage], index: int, status: StageStatus) -> Stages:
    """
    Return a copy of ``stages`` with only ``stages[index].status`` changed.

    Raises:
        IndexError: index outside the pipeline
        StageTransitionError: the move would go backward
    """
    if not 0 <= index < len(stages):
        raise IndexError(f"Stage index {index} out of range")

    current = stages[index]
    if status != current.status and status not in ALLOWED_TRANSITIONS[current.status]:
        raise StageTransitionError(
            f"Stage {current.label} cannot move from {current.status.value} to {status.value}"
        )

    updated = list(stages)
    updated[index] = replace(current, status=status)
    return tuple(updated)


def mark_all(stages: Sequence[Stage], status: StageStatus) -> Stages:
    """Move every stage to ``status`` in one step."""
    result = tuple(stages)
    for index in range(len(result)):
        result = set_status(result, index, status)
    return result
