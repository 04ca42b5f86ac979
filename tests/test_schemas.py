"""
Tests for the configuration schema set.
"""

import pytest
from jsonschema import Draft7Validator

from backend.confgate.validator.schemas import (
    CONFIG_SCHEMA,
    QUALITY_GATE_SCHEMA,
    SCHEMA_NAMES,
    SETTINGS_SCHEMA,
    get_all_schemas,
    get_schema,
    schema_name_for_file,
)


class TestSchemaSet:
    """Tests for schema lookup."""

    def test_schema_names(self):
        """Test the three named schemas."""
        assert SCHEMA_NAMES == ("config", "settings", "quality-gate")

    def test_get_schema(self):
        """Test lookup by name."""
        assert get_schema("config") is CONFIG_SCHEMA
        assert get_schema("settings") is SETTINGS_SCHEMA
        assert get_schema("quality-gate") is QUALITY_GATE_SCHEMA
        assert get_schema("unknown") is None

    def test_get_all_schemas_is_a_copy(self):
        """Test callers cannot alter the registry."""
        schemas = get_all_schemas()
        schemas.pop("config")
        assert get_schema("config") is not None

    @pytest.mark.parametrize("name", ["config", "settings", "quality-gate"])
    def test_schemas_are_valid_draft7(self, name):
        """Test every schema is itself valid."""
        Draft7Validator.check_schema(get_schema(name))

    @pytest.mark.parametrize("name", ["config", "settings", "quality-gate"])
    def test_top_level_tolerates_unknown_fields(self, name):
        """Test forward compatibility."""
        assert get_schema(name)["additionalProperties"] is True

    def test_config_requires_version(self):
        """Test the only required top-level field."""
        assert CONFIG_SCHEMA["required"] == ["version"]


class TestSchemaNameForFile:
    """Tests for filename-based schema detection."""

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("config.json", "config"),
            ("settings.json", "settings"),
            ("settings.local.json", "settings"),
            ("quality-gate.json", "quality-gate"),
            ("anything-else.json", "config"),
        ],
    )
    def test_detection(self, filename, expected):
        """Test the filename table."""
        assert schema_name_for_file(filename) == expected
