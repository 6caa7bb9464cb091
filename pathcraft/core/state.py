from enum import Enum
from typing import Dict, FrozenSet, Optional

from pathcraft.core.errors import StateError


class SessionStatus(str, Enum):
    RECORDING = "recording"
    PAUSED = "paused"
    COMPLETED = "completed"


# None stands for the idle recorder (no session)
TRANSITIONS: Dict[Optional[SessionStatus], FrozenSet[Optional[SessionStatus]]] = {
    None: frozenset({SessionStatus.RECORDING}),
    SessionStatus.RECORDING: frozenset({SessionStatus.PAUSED, SessionStatus.COMPLETED}),
    SessionStatus.PAUSED: frozenset({SessionStatus.RECORDING, SessionStatus.COMPLETED}),
    SessionStatus.COMPLETED: frozenset({None}),
}


def check_transition(current: Optional[SessionStatus], target: Optional[SessionStatus]) -> None:
    """Raise ``StateError`` unless ``current -> target`` is a legal move."""
    if target not in TRANSITIONS[current]:
        source = current.value if current else "idle"
        dest = target.value if target else "idle"
        raise StateError(f"Cannot move recording session from '{source}' to '{dest}'")
