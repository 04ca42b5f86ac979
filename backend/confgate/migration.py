"""
Configuration Version Migrations.

Upgrades configuration documents written by older releases. Each migration
moves a document to a newer version; the runner applies every migration whose
target is above the document's current version, in ascending order, and
stamps ``version`` after each step.
"""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .defaults import CURRENT_VERSION
from .errors import MigrationError
from .validator.schemas import HOOK_EVENTS


logger = logging.getLogger(__name__)

BASELINE_VERSION = "1.0.0"

_LEADING_DIGITS = re.compile(r"^\d+")


def _version_tuple(version: str) -> Tuple[int, int, int]:
    parts: List[int] = []
    for chunk in str(version).split(".")[:3]:
        match = _LEADING_DIGITS.match(chunk)
        parts.append(int(match.group()) if match else 0)
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def compare_versions(a: str, b: str) -> int:
    """
    Compare two dotted versions numerically.

    Missing components count as 0, so "1" == "1.0" == "1.0.0".

    Returns:
        -1, 0 or 1.
    """
    left, right = _version_tuple(a), _version_tuple(b)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


@dataclass
class Migration:
    """
    One upgrade step.

    Attributes:
        from_version: Oldest version the step applies to.
        to_version: Version the document has after the step.
        description: What the step changes.
        migrate: Takes a document and returns the upgraded document.
    """

    from_version: str
    to_version: str
    description: str
    migrate: Callable[[Dict[str, Any]], Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_version,
            "to": self.to_version,
            "description": self.description,
        }


@dataclass
class MigrationResult:
    """Outcome of a migration run."""

    document: Dict[str, Any]
    from_version: str
    to_version: str
    executed: List[Migration] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.executed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_version,
            "to": self.to_version,
            "executed": [m.to_dict() for m in self.executed],
        }


def migrate_legacy_hooks(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert legacy hook layouts into the event-keyed settings layout.

    Two legacy shapes are recognized:
    - ``{"hooks": {"PreToolUse": [...], ...}}``: events nested under ``hooks``
    - ``{"matcher": ..., "hooks": [...]}``: a single top-level PreToolUse entry
    """
    if "matcher" in document:
        matcher = document.pop("matcher")
        hooks = document.pop("hooks", [])
        entry = {"matcher": matcher, "hooks": hooks if isinstance(hooks, list) else []}
        document.setdefault("PreToolUse", []).append(entry)
        return document

    nested = document.get("hooks")
    if isinstance(nested, dict):
        moved = False
        for event in HOOK_EVENTS:
            if event not in nested:
                continue
            entries = nested.pop(event)
            if not isinstance(entries, list):
                entries = [entries]
            document.setdefault(event, []).extend(entries)
            moved = True
        if moved and not nested:
            del document["hooks"]
    return document


MIGRATIONS: List[Migration] = [
    Migration(
        from_version="1.0.0",
        to_version="1.0.10",
        description="Migrate hooks format from old to new",
        migrate=migrate_legacy_hooks,
    ),
]


class MigrationRunner:
    """Applies pending migrations to a document."""

    def __init__(
        self,
        migrations: Optional[List[Migration]] = None,
        target_version: str = CURRENT_VERSION,
    ):
        self.migrations = sorted(
            MIGRATIONS if migrations is None else migrations,
            key=lambda m: _version_tuple(m.to_version),
        )
        self.target_version = target_version

    @staticmethod
    def version_of(document: Dict[str, Any]) -> str:
        """Document version; unversioned documents are treated as the baseline."""
        version = document.get("version")
        return version if isinstance(version, str) and version else BASELINE_VERSION

    def pending(self, document: Dict[str, Any]) -> List[Migration]:
        """Migrations whose target is above the document's version."""
        current = self.version_of(document)
        if compare_versions(current, self.target_version) >= 0:
            return []
        return [
            m for m in self.migrations
            if compare_versions(current, m.to_version) < 0
            and compare_versions(m.to_version, self.target_version) <= 0
        ]

    def run(self, document: Dict[str, Any]) -> MigrationResult:
        """
        Upgrade a copy of ``document``.

        Raises:
            MigrationError: A step failed. The input document is untouched.
        """
        start = self.version_of(document)
        result = MigrationResult(
            document=copy.deepcopy(document),
            from_version=start,
            to_version=start,
        )

        for migration in self.pending(document):
            logger.info(
                "Migrating %s -> %s: %s",
                result.to_version, migration.to_version, migration.description,
            )
            try:
                upgraded = migration.migrate(result.document)
            except Exception as e:
                raise MigrationError(
                    f"Migration to {migration.to_version} failed: {e}",
                    details={
                        "from": result.to_version,
                        "to": migration.to_version,
                        "executed": [m.to_version for m in result.executed],
                    },
                    hints=["Restore the previous configuration and migrate manually"],
                ) from e
            if upgraded is not None:
                result.document = upgraded
            result.document["version"] = migration.to_version
            result.to_version = migration.to_version
            result.executed.append(migration)

        return result
