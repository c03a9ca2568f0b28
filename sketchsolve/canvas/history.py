"""
Undo history made of full-canvas snapshots.

Erasing is destructive, so strokes cannot be reliably undone by replaying
partial operations; every entry is a complete encoded frame instead.
"""

import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class SnapshotHistory:
    """
    Append-only sequence of encoded canvas snapshots.

    The sequence never becomes empty once the initial snapshot is recorded:
    undo stops at the first entry.

    Usage:
        history = SnapshotHistory()
        history.record(surface.export_image())   # initial blank canvas
        ...
        history.record(surface.export_image())   # after a stroke
        surface.load_snapshot(history.undo())
    """

    def __init__(self, max_depth: Optional[int] = None):
        """
        Args:
            max_depth: Maximum number of snapshots kept. None keeps all.
                The first snapshot is pinned; the oldest entries after it
                are evicted first.
        """
        if max_depth is not None and max_depth < 2:
            raise ValueError(f"max_depth must be at least 2, got {max_depth}")
        self.max_depth = max_depth
        self._snapshots: List[bytes] = []

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return len(self._snapshots) > 1

    @property
    def current(self) -> Optional[bytes]:
        """The most recent snapshot, or None before anything is recorded."""
        return self._snapshots[-1] if self._snapshots else None

    def record(self, snapshot: bytes) -> int:
        """
        Append a snapshot.

        Returns:
            The number of snapshots held after recording.
        """
        self._snapshots.append(snapshot)
        if self.max_depth is not None and len(self._snapshots) > self.max_depth:
            evicted = len(self._snapshots) - self.max_depth
            del self._snapshots[1 : 1 + evicted]
            logger.debug("Evicted %d oldest snapshot(s)", evicted)
        return len(self._snapshots)

    def undo(self) -> bytes:
        """
        Discard the latest snapshot and return the one to redraw.

        At the floor (a single snapshot) nothing is discarded and that
        snapshot is returned unchanged.

        Raises:
            LookupError: If nothing has been recorded yet.
        """
        if not self._snapshots:
            raise LookupError("No snapshots recorded")
        if self.can_undo:
            self._snapshots.pop()
        return self._snapshots[-1]

    def reset(self, initial: bytes) -> None:
        """Drop every snapshot and start over from one initial frame."""
        self._snapshots = [initial]
