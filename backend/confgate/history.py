"""
Configuration Change History.

An append-only audit log of configuration lifecycle events (save, rollback),
stored as JSON lines next to the configuration file. The log is never
rewritten by confgate; external tooling may prune it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union


logger = logging.getLogger(__name__)


@dataclass
class HistoryEntry:
    """
    A single history event.

    Attributes:
        timestamp: ISO-8601 timestamp (UTC).
        action: Event kind, e.g. "save" or "rollback".
        context: Event-specific fields, stored flat next to timestamp/action.
    """

    timestamp: str
    action: str
    context: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, action: str, **context: Any) -> "HistoryEntry":
        """Create an entry stamped with the current time."""
        return cls(
            timestamp=datetime.now(timezone.utc).isoformat(),
            action=action,
            context=context,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to the on-disk JSON shape."""
        data = {"timestamp": self.timestamp, "action": self.action}
        for key, value in self.context.items():
            if key not in data:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        context = {k: v for k, v in data.items() if k not in ("timestamp", "action")}
        return cls(
            timestamp=str(data["timestamp"]),
            action=str(data["action"]),
            context=context,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, json_str: str) -> "HistoryEntry":
        return cls.from_dict(json.loads(json_str))

    def get(self, key: str, default: Any = None) -> Any:
        """Look up ``timestamp``, ``action`` or a context field."""
        return self.to_dict().get(key, default)


class HistoryLog:
    """Reads and appends a JSON-lines history file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        """Append one entry as a single line."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(entry.to_json() + "\n")
        logger.debug("Recorded %s in %s", entry.action, self.path)
        return entry

    def record(self, action: str, **context: Any) -> HistoryEntry:
        """Create and append an entry."""
        return self.append(HistoryEntry.create(action, **context))

    def read(self) -> Iterator[HistoryEntry]:
        """
        Yield entries oldest-first.

        Blank and malformed lines are skipped.
        """
        if not self.path.exists():
            return

        with open(self.path, "r", encoding="utf-8") as f:
            for number, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = HistoryEntry.from_json(line)
                except (json.JSONDecodeError, KeyError, TypeError, AttributeError):
                    logger.debug("Skipping malformed history line %d in %s", number, self.path)
                    continue
                yield entry

    def entries(self, limit: Optional[int] = None) -> List[HistoryEntry]:
        """
        Get entries newest-first.

        Args:
            limit: Maximum number of entries to return.

        Returns:
            Entries, or an empty list when the log does not exist.
        """
        entries = list(self.read())
        entries.reverse()
        if limit is not None:
            entries = entries[:max(limit, 0)]
        return entries
