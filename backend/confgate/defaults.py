"""
Built-in defaults for the primary configuration and the quality gate.
"""

from __future__ import annotations

import copy
from typing import Any, Dict


CURRENT_VERSION = "1.0.10"

DEFAULT_GATE_CONFIG: Dict[str, Any] = {
    "enabled": True,
    "severity": "warn",
    "rules": [
        {"id": "line-count-limit", "enabled": True, "severity": "error"},
        {"id": "file-size-limit", "enabled": True, "severity": "warn"},
        {"id": "no-empty-files", "enabled": True, "severity": "warn"},
        {"id": "no-trailing-whitespace", "enabled": True, "severity": "warn"},
    ],
    "gates": {
        "preCommit": True,
        "prePush": True,
        "onToolUse": False,
    },
    "reporting": {
        "format": "console",
    },
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "version": CURRENT_VERSION,
    "model": "claude-opus-4.5",
    "agents": {
        "conductor": {"role": "coordination"},
        "architect": {"role": "design"},
        "builder": {"role": "implementation"},
        "reviewer": {"role": "review"},
    },
    "skills": [],
    "hooks": {
        "preTask": [],
        "postTask": [],
    },
    "thinkingLens": {
        "enabled": True,
        "autoSync": True,
        "syncInterval": 30,
    },
    "qualityGate": DEFAULT_GATE_CONFIG,
}


def get_default_config() -> Dict[str, Any]:
    """Fresh deep copy of the default configuration document."""
    return copy.deepcopy(DEFAULT_CONFIG)


def get_default_gate_config() -> Dict[str, Any]:
    """Fresh deep copy of the default quality gate configuration."""
    return copy.deepcopy(DEFAULT_GATE_CONFIG)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge ``override`` over ``base`` without mutating either.

    Nested objects merge key by key; any other value (arrays included)
    replaces the base value.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def merged_with_defaults(document: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay a configuration document on the built-in defaults."""
    return deep_merge(DEFAULT_CONFIG, document)
