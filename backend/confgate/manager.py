"""
Configuration Manager.

Owns the on-disk lifecycle of the primary configuration document:

- load: parse, optionally interpolate ``${VAR}`` / ``${VAR:default}`` tokens,
  optionally validate
- save: validate, back up the previous document, rotate backups, write,
  record history
- rollback: restore a backup after backing up the document it replaces
- diff: structural comparison of two documents or files
- history: the append-only change log

Concurrent use of one configuration directory is not supported; backups and
history are not locked.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .defaults import get_default_config
from .diff import DiffEntry, diff_documents
from .errors import ConfigError, FileError
from .history import HistoryEntry, HistoryLog
from .validator import ConfigValidator, ValidationIssue, suggest_json_fix


logger = logging.getLogger(__name__)

HOME_ENV_VAR = "CONFGATE_HOME"
CONFIG_FILENAME = "config.json"
BACKUP_DIRNAME = "backups"
HISTORY_FILENAME = "config-history.jsonl"
DEFAULT_MAX_BACKUPS = 10

BACKUP_STAMP_FORMAT = "%Y%m%dT%H%M%S%f"
BACKUP_NAME = re.compile(r"^config-(?P<stamp>\d{8}T\d{12})Z(?:-v(?P<version>[^/\\]*))?\.json$")

ENV_TOKEN = re.compile(r"\$\{(?P<name>[^}:]+)(?::(?P<default>[^}]*))?\}")

Document = Dict[str, Any]
DocumentSource = Union[Document, str, Path]


def default_config_dir() -> Path:
    """``$CONFGATE_HOME`` when set, else ``~/.claude``."""
    home = os.environ.get(HOME_ENV_VAR)
    return Path(home) if home else Path.home() / ".claude"


def expand_env(value: Any) -> Any:
    """
    Interpolate environment variables through strings, lists and objects.

    ``${VAR}`` becomes the variable's value (empty string when unset) and
    ``${VAR:default}`` falls back to ``default``. Other values pass through.
    """
    if isinstance(value, str):
        return ENV_TOKEN.sub(
            lambda m: os.environ.get(m.group("name")) or (m.group("default") or ""),
            value,
        )
    if isinstance(value, list):
        return [expand_env(v) for v in value]
    if isinstance(value, dict):
        return {k: expand_env(v) for k, v in value.items()}
    return value


@dataclass
class BackupRecord:
    """Metadata of one backup file."""

    file: Path
    version: str
    size: int
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": str(self.file),
            "version": self.version,
            "size": self.size,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class SaveResult:
    success: bool
    backup: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "backup": str(self.backup) if self.backup else None}


@dataclass
class RollbackResult:
    success: bool
    restored_from: str
    backup: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "restoredFrom": self.restored_from,
            "backup": str(self.backup) if self.backup else None,
        }


class ConfigManager:
    """
    Safe, auditable persistence of the primary configuration document.

    Args:
        config_dir: Base directory (default: ``default_config_dir()``). Created
            when missing.
        config_file: Configuration path (default: ``<config_dir>/config.json``).
        backup_dir: Backup directory (default: ``<config_dir>/backups``).
        history_file: History log (default:
            ``<config_dir>/config-history.jsonl``).
        max_backups: Number of backups kept.
        strict: Validate on load by default; also sets the validator's
            strictness.
        validator: Validator to use instead of a new ConfigValidator.
    """

    def __init__(
        self,
        config_dir: Optional[Union[str, Path]] = None,
        config_file: Optional[Union[str, Path]] = None,
        backup_dir: Optional[Union[str, Path]] = None,
        history_file: Optional[Union[str, Path]] = None,
        max_backups: int = DEFAULT_MAX_BACKUPS,
        strict: bool = True,
        validator: Optional[ConfigValidator] = None,
    ):
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.config_file = Path(config_file) if config_file else self.config_dir / CONFIG_FILENAME
        self.backup_dir = Path(backup_dir) if backup_dir else self.config_dir / BACKUP_DIRNAME
        self.history = HistoryLog(
            Path(history_file) if history_file else self.config_dir / HISTORY_FILENAME
        )
        self.max_backups = max_backups
        self.strict = strict
        self.validator = validator or ConfigValidator(strict=strict)

        self.config_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load(
        self,
        use_defaults: bool = True,
        expand_env_vars: bool = False,
        strict: Optional[bool] = None,
    ) -> Document:
        """
        Load the configuration document.

        Args:
            use_defaults: Return the built-in defaults when the file is absent.
            expand_env_vars: Interpolate ``${VAR}`` tokens.
            strict: Validate against the config schema (default: the
                manager's ``strict``).

        Raises:
            ConfigError: File absent without defaults, malformed JSON, or
                failed validation.
        """
        if not self.config_file.exists():
            if use_defaults:
                logger.debug("%s not found, using defaults", self.config_file)
                return get_default_config()
            raise ConfigError(
                f"Configuration file not found: {self.config_file}",
                hints=[f"Create config at: {self.config_file}"],
                details={"file": str(self.config_file)},
            )

        document = _read_json(self.config_file)
        if expand_env_vars:
            document = expand_env(document)
        if self.strict if strict is None else strict:
            self.validator.validate_or_throw(document, "config")
        return document

    def save(self, document: Document, backup: bool = True, validate: bool = True) -> SaveResult:
        """
        Persist a document.

        Args:
            document: Configuration to write.
            backup: Back up the current file first (skipped when absent).
            validate: Validate before writing.

        Returns:
            SaveResult with the backup path (None when no backup was made).

        Raises:
            ConfigError: Validation failed; nothing was written.
        """
        if validate:
            self.validator.validate_or_throw(document, "config")

        previous = self._read_current()
        backup_path = None
        if backup and self.config_file.exists():
            backup_path = self._create_backup().file
            self._prune_backups()

        _write_text(self.config_file, json.dumps(document, indent=2, ensure_ascii=False) + "\n")
        logger.info("Saved configuration to %s", self.config_file)

        self.history.record(
            "save",
            version=document.get("version") if isinstance(document, dict) else None,
            previousVersion=previous.get("version") if isinstance(previous, dict) else None,
            backup=str(backup_path) if backup_path else None,
            changes=len(diff_documents(previous if previous is not None else {}, document)),
        )
        return SaveResult(success=True, backup=backup_path)

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def list_backups(self) -> List[BackupRecord]:
        """Backups newest-first, at most ``max_backups`` of them."""
        return self._all_backups()[:self.max_backups]

    def rollback(self, version: Optional[str] = None) -> RollbackResult:
        """
        Restore a backup.

        The newest backup is restored unless ``version`` names another. The
        current file is backed up before it is overwritten.

        Raises:
            ConfigError: No backups, or none for ``version``.
            FileError: The chosen backup cannot be read.
        """
        backups = self.list_backups()
        if not backups:
            raise ConfigError(
                "No backups available for rollback",
                hints=["Save the configuration with backups enabled first"],
                details={"backupDir": str(self.backup_dir)},
            )

        if version is None:
            target = backups[0]
        else:
            matches = [b for b in backups if b.version == version]
            if not matches:
                raise ConfigError(
                    f"No backup found for version {version}",
                    hints=["Run list_backups() to see available versions"],
                    details={"available": [b.version for b in backups]},
                )
            target = matches[0]

        try:
            content = target.file.read_bytes()
        except OSError as e:
            raise FileError(f"Cannot read backup: {e}", file_path=target.file) from e

        pre_rollback = None
        if self.config_file.exists():
            pre_rollback = self._create_backup().file

        _write_bytes(self.config_file, content)
        self._prune_backups()
        logger.info("Rolled back %s to %s", self.config_file, target.file.name)

        self.history.record(
            "rollback",
            restoredFrom=target.version,
            restoredFile=str(target.file),
            backup=str(pre_rollback) if pre_rollback else None,
        )
        return RollbackResult(success=True, restored_from=target.version, backup=pre_rollback)

    def _all_backups(self) -> List[BackupRecord]:
        if not self.backup_dir.is_dir():
            return []

        records = []
        for path in self.backup_dir.iterdir():
            match = BACKUP_NAME.match(path.name)
            if not match or not path.is_file():
                continue
            timestamp = datetime.strptime(match.group("stamp"), BACKUP_STAMP_FORMAT)
            records.append(BackupRecord(
                file=path,
                version=_version_of_file(path),
                size=path.stat().st_size,
                timestamp=timestamp.replace(tzinfo=timezone.utc),
            ))
        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records

    def _create_backup(self) -> BackupRecord:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        version = _version_of_file(self.config_file)
        tag = re.sub(r"[^0-9A-Za-z.+-]", "_", version)

        now = datetime.now(timezone.utc)
        target = self._backup_path(now, tag)
        while target.exists():
            now += timedelta(microseconds=1)
            target = self._backup_path(now, tag)

        shutil.copyfile(self.config_file, target)
        logger.info("Backed up %s to %s", self.config_file, target)
        return BackupRecord(
            file=target,
            version=version,
            size=target.stat().st_size,
            timestamp=now,
        )

    def _backup_path(self, moment: datetime, tag: str) -> Path:
        return self.backup_dir / f"config-{moment.strftime(BACKUP_STAMP_FORMAT)}Z-v{tag}.json"

    def _prune_backups(self) -> None:
        for record in self._all_backups()[self.max_backups:]:
            try:
                record.file.unlink()
                logger.info("Pruned old backup %s", record.file)
            except OSError as e:
                logger.warning("Could not prune backup %s: %s", record.file, e)

    # ------------------------------------------------------------------
    # Diff / history
    # ------------------------------------------------------------------

    def diff(self, left: DocumentSource, right: Optional[DocumentSource] = None) -> List[DiffEntry]:
        """
        Structural diff from ``left`` to ``right``.

        Either side may be a document or a JSON file path; ``right`` defaults
        to the persisted configuration.
        """
        before = self._resolve(left)
        after = self._resolve(right if right is not None else self.config_file)
        return diff_documents(before, after)

    def get_history(self, limit: Optional[int] = None) -> List[HistoryEntry]:
        """History entries newest-first."""
        return self.history.entries(limit)

    def _resolve(self, source: DocumentSource) -> Any:
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise ConfigError(
                    f"Configuration file not found: {path}",
                    details={"file": str(path)},
                )
            return _read_json(path)
        return source

    def _read_current(self) -> Optional[Any]:
        if not self.config_file.exists():
            return None
        try:
            return json.loads(self.config_file.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None


def _read_json(path: Path) -> Any:
    content = path.read_text(encoding="utf-8")
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        fix = suggest_json_fix(content, e.pos)
        raise ConfigError(
            f"Invalid JSON in {path}: {e.msg}",
            errors=[ValidationIssue(
                path=str(path),
                message=f"JSON parse error: {e.msg}",
                severity="critical",
                fix=fix,
            )],
            fixes=[fix],
            hints=[fix],
        ) from e


def _version_of_file(path: Path) -> str:
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return "unknown"
    version = document.get("version") if isinstance(document, dict) else None
    return str(version) if version else "unknown"


def _write_text(path: Path, content: str) -> None:
    _write_bytes(path, content.encode("utf-8"))


def _write_bytes(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_bytes(content)
    os.replace(tmp, path)
