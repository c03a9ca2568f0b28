"""
Tests for the snapshot undo history.
"""

import pytest

from sketchsolve.canvas.history import SnapshotHistory


class TestSnapshotHistory:
    """Test record/undo bookkeeping."""

    def test_reset_holds_one(self):
        history = SnapshotHistory()
        history.reset(b"blank")

        assert len(history) == 1
        assert history.current == b"blank"
        assert history.can_undo is False

    def test_record_appends(self):
        """N records after reset leave N+1 snapshots."""
        history = SnapshotHistory()
        history.reset(b"0")
        for i in range(1, 4):
            assert history.record(str(i).encode()) == i + 1

        assert len(history) == 4
        assert history.current == b"3"

    def test_undo_returns_previous(self):
        history = SnapshotHistory()
        history.reset(b"0")
        history.record(b"1")
        history.record(b"2")

        assert history.undo() == b"1"
        assert history.undo() == b"0"
        assert len(history) == 1

    def test_undo_at_floor(self):
        """Undo never removes the last snapshot."""
        history = SnapshotHistory()
        history.reset(b"0")

        assert history.undo() == b"0"
        assert history.undo() == b"0"
        assert len(history) == 1

    def test_undo_before_anything_recorded(self):
        with pytest.raises(LookupError):
            SnapshotHistory().undo()

    def test_reset_drops_everything(self):
        history = SnapshotHistory()
        history.reset(b"0")
        history.record(b"1")
        history.reset(b"fresh")

        assert len(history) == 1
        assert history.current == b"fresh"


class TestMaxDepth:
    """Test optional bounded history."""

    def test_oldest_evicted(self):
        """The initial snapshot survives eviction."""
        history = SnapshotHistory(max_depth=3)
        history.reset(b"0")
        for i in range(1, 6):
            history.record(str(i).encode())

        assert len(history) == 3
        assert history.undo() == b"4"
        assert history.undo() == b"0"
        assert history.undo() == b"0"

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            SnapshotHistory(max_depth=0)
        with pytest.raises(ValueError):
            SnapshotHistory(max_depth=1)
