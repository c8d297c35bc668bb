"""
Table-driven state transitions.

Each aggregate declares its legal moves as data:

    TRANSITIONS = {
        "confirm": Transition(sources={Status.PENDING}, target=Status.CONFIRMED),
        ...
    }

and routes every status change through ``apply_transition`` so the whole
legal-transition set can be read (and tested) in one place.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Mapping, Optional

from .errors import InvalidStateTransitionError


@dataclass(frozen=True)
class Transition:
    sources: Optional[FrozenSet[Enum]]  # None means "from any state"
    target: Enum

    def allows(self, current: Enum) -> bool:
        return self.sources is None or current in self.sources


def apply_transition(
    entity: str,
    table: Mapping[str, Transition],
    operation: str,
    current: Enum,
) -> Enum:
    """Return the target state for ``operation`` or raise InvalidStateTransitionError"""
    transition = table[operation]
    if not transition.allows(current):
        raise InvalidStateTransitionError(entity, current.value, operation.replace("_", " "))
    return transition.target


def allowed_operations(table: Mapping[str, Transition], current: Enum) -> list[str]:
    return [name for name, transition in table.items() if transition.allows(current)]


def utcnow() -> datetime:
    """Naive UTC timestamp, the format every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
