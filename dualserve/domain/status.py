from __future__ import annotations

from enum import Enum

__all__ = [
    "ListenerState",
    "TERMINAL_STATES",
]


class ListenerState(str, Enum):
    constructed = "constructed"
    serving = "serving"
    closed = "closed"
    faulted = "faulted"

    @property
    def terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({ListenerState.closed, ListenerState.faulted})
