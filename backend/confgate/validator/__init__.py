"""
Configuration Validation.

- Schema set: the three named configuration schemas
- Backends: full ``jsonschema`` validation or minimal built-in checks
- Engine: ``ConfigValidator`` producing normalized reports
"""

from .schemas import (
    CONFIG_SCHEMA,
    SETTINGS_SCHEMA,
    QUALITY_GATE_SCHEMA,
    SCHEMA_NAMES,
    get_schema,
    get_all_schemas,
    schema_name_for_file,
)
from .backends import (
    ValidationBackend,
    JsonSchemaBackend,
    BasicBackend,
    ValidationIssue,
    create_backend,
    format_path,
)
from .engine import (
    ConfigValidator,
    ValidationReport,
    default_validator,
    suggest_json_fix,
    validate,
    validate_file,
    validate_or_throw,
)

__all__ = [
    # Schemas
    "CONFIG_SCHEMA",
    "SETTINGS_SCHEMA",
    "QUALITY_GATE_SCHEMA",
    "SCHEMA_NAMES",
    "get_schema",
    "get_all_schemas",
    "schema_name_for_file",
    # Backends
    "ValidationBackend",
    "JsonSchemaBackend",
    "BasicBackend",
    "ValidationIssue",
    "create_backend",
    "format_path",
    # Engine
    "ConfigValidator",
    "ValidationReport",
    "default_validator",
    "suggest_json_fix",
    "validate",
    "validate_file",
    "validate_or_throw",
]
