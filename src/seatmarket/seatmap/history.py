"""
Snapshot undo/redo history for the editor
"""
import copy
from typing import Any, List, Optional

MAX_HISTORY = 50


class EditHistory:
    """Linear history of shape snapshots, newest last"""

    def __init__(self, limit: int = MAX_HISTORY):
        self.limit = limit
        self.snapshots: List[Any] = []
        self.index = -1

    def save(self, shapes: Any):
        """Record a snapshot, dropping any redo tail and the oldest entries past the limit"""
        history = self.snapshots[: self.index + 1]
        history.append(copy.deepcopy(shapes))
        self.snapshots = history[-self.limit:]
        self.index = len(self.snapshots) - 1

    def can_undo(self) -> bool:
        return self.index > 0

    def can_redo(self) -> bool:
        return self.index < len(self.snapshots) - 1

    def undo(self) -> Optional[Any]:
        if not self.can_undo():
            return None
        self.index -= 1
        return copy.deepcopy(self.snapshots[self.index])

    def redo(self) -> Optional[Any]:
        if not self.can_redo():
            return None
        self.index += 1
        return copy.deepcopy(self.snapshots[self.index])

    def __len__(self):
        return len(self.snapshots)
