"""
Tests for the configuration manager.
"""

import json

import pytest

from backend.confgate.defaults import (
    CURRENT_VERSION,
    deep_merge,
    get_default_config,
    merged_with_defaults,
)
from backend.confgate.errors import ConfigError, FileError
from backend.confgate.manager import (
    BACKUP_NAME,
    ConfigManager,
    default_config_dir,
    expand_env,
)


@pytest.fixture
def manager(tmp_path):
    return ConfigManager(config_dir=tmp_path / "claude")


def config(version, **extra):
    document = {"version": version}
    document.update(extra)
    return document


class TestConstruction:
    """Tests for manager paths."""

    def test_default_paths(self, tmp_path):
        """Test files live under the configuration directory."""
        m = ConfigManager(config_dir=tmp_path / "home")
        assert m.config_dir.is_dir()
        assert m.config_file == tmp_path / "home" / "config.json"
        assert m.backup_dir == tmp_path / "home" / "backups"
        assert m.history.path == tmp_path / "home" / "config-history.jsonl"
        assert m.max_backups == 10

    def test_home_env_var(self, tmp_path, monkeypatch):
        """Test CONFGATE_HOME selects the directory."""
        monkeypatch.setenv("CONFGATE_HOME", str(tmp_path / "env-home"))
        assert default_config_dir() == tmp_path / "env-home"
        assert ConfigManager().config_file == tmp_path / "env-home" / "config.json"

    def test_custom_paths(self, tmp_path):
        """Test explicit file locations."""
        m = ConfigManager(
            config_dir=tmp_path,
            config_file=tmp_path / "custom.json",
            backup_dir=tmp_path / "bak",
            history_file=tmp_path / "log.jsonl",
            max_backups=3,
        )
        assert m.config_file.name == "custom.json"
        assert m.backup_dir.name == "bak"
        assert m.max_backups == 3


class TestLoad:
    """Tests for ConfigManager.load."""

    def test_missing_file_uses_defaults(self, manager):
        """Test defaults are returned as a fresh copy."""
        document = manager.load()
        assert document == get_default_config()
        document["model"] = "changed"
        assert manager.load()["model"] == "claude-opus-4.5"

    def test_missing_file_without_defaults(self, manager):
        """Test the error when defaults are disabled."""
        with pytest.raises(ConfigError, match="not found"):
            manager.load(use_defaults=False)

    def test_malformed_json(self, manager):
        """Test parse errors carry a location fix."""
        manager.config_file.write_text('{\n  "version": "1.0.0",\n}')
        with pytest.raises(ConfigError) as exc_info:
            manager.load()
        assert "line 3" in exc_info.value.fixes[0]

    def test_strict_validation(self, manager):
        """Test invalid documents raise unless strict is off."""
        manager.config_file.write_text(json.dumps({"model": "claude-opus-4.5"}))
        with pytest.raises(ConfigError):
            manager.load()
        assert manager.load(strict=False) == {"model": "claude-opus-4.5"}

    def test_non_strict_manager(self, tmp_path):
        """Test the manager's strict flag is the default."""
        m = ConfigManager(config_dir=tmp_path, strict=False)
        m.config_file.write_text(json.dumps({"model": "claude-opus-4.5"}))
        assert m.load() == {"model": "claude-opus-4.5"}
        with pytest.raises(ConfigError):
            m.load(strict=True)

    def test_env_expansion(self, manager, monkeypatch):
        """Test ${VAR} and ${VAR:default} tokens."""
        monkeypatch.setenv("CONFGATE_TEST_TOKEN", "secret")
        monkeypatch.delenv("CONFGATE_TEST_REGION", raising=False)
        monkeypatch.delenv("CONFGATE_TEST_UNSET", raising=False)
        manager.config_file.write_text(json.dumps({
            "version": "1.0.0",
            "api": {
                "token": "${CONFGATE_TEST_TOKEN}",
                "region": "${CONFGATE_TEST_REGION:us-east}",
                "urls": ["https://${CONFGATE_TEST_UNSET}/v1"],
                "retries": 3,
            },
        }))

        raw = manager.load()
        assert raw["api"]["token"] == "${CONFGATE_TEST_TOKEN}"

        expanded = manager.load(expand_env_vars=True)
        assert expanded["api"] == {
            "token": "secret",
            "region": "us-east",
            "urls": ["https:///v1"],
            "retries": 3,
        }

    def test_expand_env_empty_value_uses_default(self, monkeypatch):
        """Test an empty variable falls back to the default."""
        monkeypatch.setenv("CONFGATE_TEST_EMPTY", "")
        assert expand_env("${CONFGATE_TEST_EMPTY:fallback}") == "fallback"
        assert expand_env(None) is None


class TestSave:
    """Tests for ConfigManager.save."""

    def test_first_save_has_no_backup(self, manager):
        """Test nothing is backed up when no file exists."""
        result = manager.save(config("1.0.0"))
        assert result.success is True
        assert result.backup is None
        assert result.to_dict() == {"success": True, "backup": None}
        assert json.loads(manager.config_file.read_text()) == {"version": "1.0.0"}

    def test_second_save_backs_up(self, manager):
        """Test the previous document is copied to the backup directory."""
        manager.save(config("1.0.0"))
        result = manager.save(config("1.0.1"))
        assert result.backup is not None
        assert BACKUP_NAME.match(result.backup.name)
        assert result.backup.name.endswith("-v1.0.0.json")
        assert json.loads(result.backup.read_text())["version"] == "1.0.0"

    def test_backup_disabled(self, manager):
        """Test backup=False."""
        manager.save(config("1.0.0"))
        assert manager.save(config("1.0.1"), backup=False).backup is None
        assert manager.list_backups() == []

    def test_invalid_document_is_not_written(self, manager):
        """Test validation happens before any write."""
        with pytest.raises(ConfigError):
            manager.save({"model": "claude-opus-4.5"})
        assert not manager.config_file.exists()

    def test_malformed_version_is_itemized(self, manager):
        """Test a warning-level violation is listed on the raised error."""
        with pytest.raises(ConfigError) as exc_info:
            manager.save({"version": "1.0"})
        error = exc_info.value
        assert error.errors[0].path == "version"
        assert error.details["errorCount"] == 1
        assert error.fixes
        assert not manager.config_file.exists()

    def test_validation_can_be_skipped(self, manager):
        """Test validate=False."""
        manager.save({"anything": True}, validate=False)
        assert json.loads(manager.config_file.read_text()) == {"anything": True}

    def test_save_load_round_trip_is_byte_identical(self, manager):
        """Test saving a loaded document rewrites the same bytes."""
        manager.save(get_default_config())
        before = manager.config_file.read_bytes()
        manager.save(manager.load(), backup=False)
        assert manager.config_file.read_bytes() == before

    def test_unicode_written_verbatim(self, manager):
        """Test non-ASCII text is not escaped."""
        manager.save(config("1.0.0", description="Konfiguration für Café"))
        assert "für Café" in manager.config_file.read_text(encoding="utf-8")

    def test_no_temp_file_left(self, manager):
        """Test the atomic write cleans up."""
        manager.save(config("1.0.0"))
        assert not (manager.config_dir / "config.json.tmp").exists()

    def test_save_records_history(self, manager):
        """Test the history entry fields."""
        manager.save(config("1.0.0"))
        manager.save(config("1.0.1", model="claude-opus-4.5"))
        latest = manager.get_history()[0]
        assert latest.action == "save"
        assert latest.get("version") == "1.0.1"
        assert latest.get("previousVersion") == "1.0.0"
        assert latest.get("backup")
        assert latest.get("changes") == 2


class TestBackups:
    """Tests for backup listing and rotation."""

    def test_list_backups_newest_first(self, manager):
        """Test ordering and metadata."""
        for version in ("1.0.0", "1.0.1", "1.0.2"):
            manager.save(config(version))
        backups = manager.list_backups()
        assert [b.version for b in backups] == ["1.0.1", "1.0.0"]
        assert backups[0].timestamp > backups[1].timestamp
        assert backups[0].size > 0
        assert backups[0].to_dict()["version"] == "1.0.1"

    def test_rotation_keeps_max_backups(self, tmp_path):
        """Test old backups are pruned."""
        m = ConfigManager(config_dir=tmp_path, max_backups=3)
        for patch in range(7):
            m.save(config(f"1.0.{patch}"))
        backups = m.list_backups()
        assert len(backups) == 3
        assert [b.version for b in backups] == ["1.0.5", "1.0.4", "1.0.3"]
        assert len(list(m.backup_dir.iterdir())) == 3

    def test_unrelated_files_ignored(self, manager):
        """Test only backup-named files are listed."""
        manager.backup_dir.mkdir(parents=True)
        (manager.backup_dir / "notes.txt").write_text("hello")
        assert manager.list_backups() == []

    def test_unreadable_backup_version_is_unknown(self, manager):
        """Test versions come from backup content."""
        manager.backup_dir.mkdir(parents=True)
        (manager.backup_dir / "config-20250101T000000000000Z-v1.0.0.json").write_text("{oops")
        assert manager.list_backups()[0].version == "unknown"


class TestRollback:
    """Tests for ConfigManager.rollback."""

    def test_no_backups(self, manager):
        """Test rollback with nothing to restore leaves the file alone."""
        manager.save(config("1.0.0"))
        before = manager.config_file.read_bytes()
        with pytest.raises(ConfigError, match="No backups"):
            manager.rollback()
        assert manager.config_file.read_bytes() == before

    def test_rollback_to_latest(self, manager):
        """Test save A, save B, rollback restores A."""
        manager.save(config("1.0.0", model="claude-opus-4.5"))
        a_bytes = manager.config_file.read_bytes()
        manager.save(config("1.0.1", model="claude-sonnet-4.5"))

        result = manager.rollback()

        assert result.success is True
        assert result.restored_from == "1.0.0"
        assert result.to_dict()["restoredFrom"] == "1.0.0"
        assert manager.config_file.read_bytes() == a_bytes

    def test_rollback_backs_up_current(self, manager):
        """Test the replaced document is kept as a backup."""
        manager.save(config("1.0.0"))
        manager.save(config("1.0.1"))

        result = manager.rollback()

        assert result.backup is not None
        assert json.loads(result.backup.read_text())["version"] == "1.0.1"
        assert manager.list_backups()[0].version == "1.0.1"

    def test_rollback_to_version(self, manager):
        """Test choosing an older version."""
        for version in ("1.0.0", "1.0.1", "1.0.2"):
            manager.save(config(version))
        result = manager.rollback("1.0.0")
        assert result.restored_from == "1.0.0"
        assert manager.load()["version"] == "1.0.0"

    def test_rollback_unknown_version(self, manager):
        """Test an absent version is an error."""
        manager.save(config("1.0.0"))
        manager.save(config("1.0.1"))
        with pytest.raises(ConfigError) as exc_info:
            manager.rollback("9.9.9")
        assert exc_info.value.details["available"] == ["1.0.0"]

    def test_rollback_unreadable_backup(self, manager, monkeypatch):
        """Test a backup that cannot be read raises FileError."""
        manager.save(config("1.0.0"))
        manager.save(config("1.0.1"))
        backup = manager.list_backups()[0].file
        real_read_bytes = type(backup).read_bytes

        def failing_read_bytes(self):
            if self == backup:
                raise PermissionError("denied")
            return real_read_bytes(self)

        monkeypatch.setattr(type(backup), "read_bytes", failing_read_bytes)
        with pytest.raises(FileError):
            manager.rollback()
        assert json.loads(manager.config_file.read_text())["version"] == "1.0.1"

    def test_rollback_records_history(self, manager):
        """Test the rollback history entry."""
        manager.save(config("1.0.0"))
        manager.save(config("1.0.1"))
        manager.rollback()
        entry = manager.get_history(limit=1)[0]
        assert entry.action == "rollback"
        assert entry.get("restoredFrom") == "1.0.0"
        assert entry.get("restoredFile")
        assert entry.get("backup")


class TestDiffAndHistory:
    """Tests for diff and history access."""

    def test_diff_documents(self, manager):
        """Test diffing two in-memory documents."""
        changes = manager.diff(config("1.0.0"), config("1.0.1", model="claude-opus-4.5"))
        assert [(c.path, c.type) for c in changes] == [
            ("version", "changed"),
            ("model", "added"),
        ]

    def test_diff_against_current(self, manager):
        """Test right defaults to the persisted configuration."""
        manager.save(config("1.0.1"))
        changes = manager.diff(config("1.0.0"))
        assert len(changes) == 1
        assert changes[0].old == "1.0.0"
        assert changes[0].new == "1.0.1"

    def test_diff_files(self, manager, tmp_path):
        """Test file paths on either side."""
        left = tmp_path / "left.json"
        right = tmp_path / "right.json"
        left.write_text(json.dumps(config("1.0.0")))
        right.write_text(json.dumps(config("1.0.0")))
        assert manager.diff(str(left), right) == []

    def test_diff_missing_file(self, manager, tmp_path):
        """Test a missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            manager.diff(tmp_path / "missing.json", config("1.0.0"))

    def test_history_limit(self, manager):
        """Test newest-first with a limit."""
        for version in ("1.0.0", "1.0.1", "1.0.2"):
            manager.save(config(version))
        history = manager.get_history(limit=2)
        assert [e.get("version") for e in history] == ["1.0.2", "1.0.1"]

    def test_empty_history(self, manager):
        """Test no log file yet."""
        assert manager.get_history() == []


class TestDefaults:
    """Tests for the built-in defaults."""

    def test_default_config_is_valid(self, manager):
        """Test the defaults pass strict validation."""
        document = get_default_config()
        assert document["version"] == CURRENT_VERSION
        assert manager.validator.validate(document, "config").valid

    def test_deep_merge(self):
        """Test nested objects merge and arrays replace."""
        base = {"a": {"b": 1, "c": [1, 2]}, "d": 1}
        merged = deep_merge(base, {"a": {"c": [3]}, "e": 2})
        assert merged == {"a": {"b": 1, "c": [3]}, "d": 1, "e": 2}
        assert base == {"a": {"b": 1, "c": [1, 2]}, "d": 1}

    def test_merged_with_defaults(self):
        """Test user values win over defaults."""
        merged = merged_with_defaults({"model": "claude-sonnet-4.5", "skills": ["a/b"]})
        assert merged["model"] == "claude-sonnet-4.5"
        assert merged["skills"] == ["a/b"]
        assert merged["agents"]["conductor"]["role"] == "coordination"
