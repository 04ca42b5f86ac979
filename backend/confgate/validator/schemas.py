"""
Configuration Schema Definitions.

JSON Schema (Draft 7) documents for the three configuration files confgate
understands:

- ``config``: the primary configuration (``~/.claude/config.json``)
- ``settings``: project-level settings (``.claude/settings.json``)
- ``quality-gate``: quality gate rules (``.claude/quality-gate.json``)

Unknown top-level fields are always tolerated so newer documents keep
validating against older schemas.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


SEVERITY_ENUM = ["info", "warn", "error", "critical"]
REPORT_FORMAT_ENUM = ["console", "json", "markdown", "html"]
SEMVER_PATTERN = r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$"

MODEL_ENUM = [
    "claude-opus-4.5",
    "claude-opus-4-20250514",
    "claude-opus-4-5-20251101",
    "claude-sonnet-4.5",
    "claude-sonnet-4-20250514",
    "claude-sonnet-4-5-20251101",
    "claude-haiku-4.5",
]

HOOK_EVENTS = ["UserPromptSubmit", "PreToolUse", "PostToolUse", "AgentStop", "SessionEnd"]


_RULE_OVERRIDE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["id"],
    "properties": {
        "id": {"type": "string", "description": "Rule identifier"},
        "name": {"type": "string", "description": "Human-readable rule name"},
        "enabled": {"type": "boolean", "default": True},
        "severity": {"type": "string", "enum": SEVERITY_ENUM, "default": "warn"},
        "config": {"type": "object", "description": "Rule-specific configuration"},
    },
}

_GATES_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "description": "Gate trigger points",
    "properties": {
        "preCommit": {"type": "boolean", "default": True},
        "prePush": {"type": "boolean", "default": True},
        "onToolUse": {"type": "boolean", "default": False},
    },
    "additionalProperties": True,
}

_REPORTING_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "description": "Report settings",
    "properties": {
        "format": {"type": "string", "enum": REPORT_FORMAT_ENUM, "default": "console"},
        "outputFile": {"type": "string", "description": "Output file path"},
    },
    "additionalProperties": True,
}


CONFIG_SCHEMA: Dict[str, Any] = {
    "$id": "config.json",
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Primary Configuration",
    "type": "object",
    "required": ["version"],
    "properties": {
        "version": {
            "type": "string",
            "pattern": SEMVER_PATTERN,
            "description": "Semantic version (e.g., 1.0.7 or 1.0.7-beta)",
        },
        "model": {
            "type": "string",
            "enum": MODEL_ENUM,
            "description": "Model identifier to use",
        },
        "agents": {
            "type": "object",
            "description": "Agent role definitions",
            "patternProperties": {
                "^[a-z][a-z0-9-]*$": {
                    "type": "object",
                    "required": ["role"],
                    "properties": {
                        "role": {"type": "string", "minLength": 1},
                        "model": {"type": "string"},
                    },
                    "additionalProperties": True,
                }
            },
            "additionalProperties": True,
        },
        "skills": {
            "type": "array",
            "description": "External skill repositories (owner/name)",
            "items": {
                "type": "string",
                "pattern": r"^[a-zA-Z0-9_-]+/[a-zA-Z0-9_.-]+$",
            },
            "uniqueItems": True,
        },
        "hooks": {
            "type": "object",
            "properties": {
                "preTask": {"type": "array", "items": {"type": "string"}},
                "postTask": {"type": "array", "items": {"type": "string"}},
            },
            "additionalProperties": True,
        },
        "thinkingLens": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "autoSync": {"type": "boolean"},
                "syncInterval": {"type": "integer", "minimum": 1, "maximum": 300},
            },
            "additionalProperties": True,
        },
        "qualityGate": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "severity": {"type": "string", "enum": SEVERITY_ENUM},
                "rules": {"type": "array", "items": _RULE_OVERRIDE_SCHEMA},
                "gates": _GATES_SCHEMA,
                "reporting": _REPORTING_SCHEMA,
            },
            "additionalProperties": True,
        },
        "marketplace": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "autoSync": {"type": "boolean"},
                "syncInterval": {"type": "integer", "minimum": 1, "maximum": 1440},
                "sources": {
                    "type": "array",
                    "items": {"type": "string", "format": "uri"},
                },
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}


SETTINGS_SCHEMA: Dict[str, Any] = {
    "$id": "settings.json",
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Project Settings",
    "type": "object",
    "patternProperties": {
        "^(" + "|".join(HOOK_EVENTS) + ")$": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["hooks"],
                "properties": {
                    "matcher": {"oneOf": [{"type": "string"}, {"type": "object"}]},
                    "hooks": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["type", "command"],
                            "properties": {
                                "type": {"type": "string", "enum": ["command"]},
                                "command": {"type": "string"},
                                "timeout": {
                                    "type": "number",
                                    "minimum": 100,
                                    "maximum": 60000,
                                },
                            },
                            "additionalProperties": True,
                        },
                    },
                },
            },
        }
    },
    "additionalProperties": True,
}


QUALITY_GATE_SCHEMA: Dict[str, Any] = {
    "$id": "quality-gate.json",
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Quality Gate Configuration",
    "type": "object",
    "properties": {
        "enabled": {"type": "boolean"},
        "severity": {"type": "string", "enum": SEVERITY_ENUM, "default": "warn"},
        "rules": {"type": "array", "items": _RULE_OVERRIDE_SCHEMA},
        "gates": _GATES_SCHEMA,
        "reporting": _REPORTING_SCHEMA,
    },
    "additionalProperties": True,
}


_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "config": CONFIG_SCHEMA,
    "settings": SETTINGS_SCHEMA,
    "quality-gate": QUALITY_GATE_SCHEMA,
}

SCHEMA_NAMES = tuple(_SCHEMAS)


def get_schema(name: str) -> Optional[Dict[str, Any]]:
    """Get a schema by name ('config' | 'settings' | 'quality-gate')."""
    return _SCHEMAS.get(name)


def get_all_schemas() -> Dict[str, Dict[str, Any]]:
    """Get a copy of the name -> schema mapping."""
    return dict(_SCHEMAS)


def schema_name_for_file(filename: str) -> str:
    """Pick a schema name from a configuration file's base name."""
    if filename == "config.json":
        return "config"
    if filename in ("settings.json", "settings.local.json"):
        return "settings"
    if filename == "quality-gate.json":
        return "quality-gate"
    return "config"
