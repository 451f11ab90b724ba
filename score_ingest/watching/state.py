"""
Per-path lifecycle shared by both discovery channels.
"""
import threading
from pathlib import Path
from typing import Dict, Optional

from ..models import FileState

_ALLOWED = {
    FileState.DISCOVERED: {FileState.PROCESSING, FileState.FAILED},
    FileState.PROCESSING: {FileState.PROCESSED, FileState.FAILED},
    FileState.PROCESSED: set(),
    FileState.FAILED: set(),
}


class FileStateTable:
    """
    In-memory map of path -> FileState.

    `claim` is the single gate both the event handler and the poller go
    through: the membership check and the insert happen under one lock, so
    a path reported by both channels is handed out exactly once.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._states: Dict[Path, FileState] = {}

    def claim(self, path: Path) -> bool:
        """Marks an unseen path DISCOVERED and returns True; False if already known."""
        with self._lock:
            if path in self._states:
                return False
            self._states[path] = FileState.DISCOVERED
            return True

    def advance(self, path: Path, new_state: FileState):
        with self._lock:
            current = self._states.get(path)
            if current is None:
                raise KeyError(f"Unclaimed path: {path}")
            if new_state not in _ALLOWED[current]:
                raise ValueError(f"Illegal transition for {path}: {current.name} -> {new_state.name}")
            self._states[path] = new_state

    def get(self, path: Path) -> Optional[FileState]:
        with self._lock:
            return self._states.get(path)

    def counts(self) -> Dict[FileState, int]:
        with self._lock:
            totals = {state: 0 for state in FileState}
            for state in self._states.values():
                totals[state] += 1
            return totals
