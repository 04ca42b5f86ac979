"""
Tests for the configuration change history.
"""

import json

from backend.confgate.history import HistoryEntry, HistoryLog


class TestHistoryEntry:
    """Tests for HistoryEntry."""

    def test_create_stamps_time(self):
        """Test a UTC ISO timestamp is set."""
        entry = HistoryEntry.create("save", version="1.0.0")
        assert entry.action == "save"
        assert entry.timestamp.endswith("+00:00")
        assert entry.context == {"version": "1.0.0"}

    def test_to_dict_is_flat(self):
        """Test context fields sit beside timestamp and action."""
        entry = HistoryEntry("2025-01-01T00:00:00+00:00", "rollback", {"restoredFrom": "1.0.0"})
        assert entry.to_dict() == {
            "timestamp": "2025-01-01T00:00:00+00:00",
            "action": "rollback",
            "restoredFrom": "1.0.0",
        }

    def test_context_cannot_shadow_fields(self):
        """Test reserved keys keep their values."""
        entry = HistoryEntry("t", "save", {"action": "other"})
        assert entry.to_dict()["action"] == "save"

    def test_json_round_trip(self):
        """Test one-line serialization."""
        entry = HistoryEntry.create("save", version="1.0.1", backup=None)
        line = entry.to_json()
        assert "\n" not in line
        assert HistoryEntry.from_json(line) == entry

    def test_get(self):
        """Test field lookup."""
        entry = HistoryEntry("t", "save", {"version": "1.0.0"})
        assert entry.get("action") == "save"
        assert entry.get("version") == "1.0.0"
        assert entry.get("missing", "x") == "x"


class TestHistoryLog:
    """Tests for HistoryLog."""

    def test_missing_file(self, tmp_path):
        """Test reading a log that does not exist."""
        log = HistoryLog(tmp_path / "history.jsonl")
        assert list(log.read()) == []
        assert log.entries() == []

    def test_append_creates_parent(self, tmp_path):
        """Test the directory is created on first write."""
        log = HistoryLog(tmp_path / "nested" / "history.jsonl")
        log.record("save", version="1.0.0")
        lines = log.path.read_text().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["version"] == "1.0.0"

    def test_order(self, tmp_path):
        """Test read is oldest-first and entries newest-first."""
        log = HistoryLog(tmp_path / "history.jsonl")
        for version in ("1.0.0", "1.0.1", "1.0.2"):
            log.record("save", version=version)
        assert [e.get("version") for e in log.read()] == ["1.0.0", "1.0.1", "1.0.2"]
        assert [e.get("version") for e in log.entries()] == ["1.0.2", "1.0.1", "1.0.0"]
        assert [e.get("version") for e in log.entries(limit=1)] == ["1.0.2"]
        assert log.entries(limit=0) == []

    def test_skips_malformed_lines(self, tmp_path):
        """Test blank, broken and incomplete lines are ignored."""
        path = tmp_path / "history.jsonl"
        path.write_text(
            '{"timestamp": "t1", "action": "save"}\n'
            "\n"
            "not json\n"
            '{"action": "missing timestamp"}\n'
            "[1, 2]\n"
            '{"timestamp": "t2", "action": "rollback"}\n'
        )
        entries = HistoryLog(path).entries()
        assert [e.action for e in entries] == ["rollback", "save"]
