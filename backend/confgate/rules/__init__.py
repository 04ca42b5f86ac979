"""
Quality Rules.

- Registry: ``RuleRegistry`` catalog of ``QualityRule`` objects
- Built-ins: the eight line/size/regex rules shipped with confgate

``default_registry`` is the process-wide registry, pre-loaded with the
built-ins. Tests and embedding code can build isolated registries with
``create_default_registry()``.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .registry import QualityRule, RuleCheck, RuleFixer, RuleOutcome, RuleRegistry
from .builtin import (
    BUILTIN_RULES,
    CODE_EXTENSIONS,
    JS_EXTENSIONS,
    TEXT_EXTENSIONS,
    create_default_registry,
    register_builtin_rules,
    strip_trailing_whitespace,
)

default_registry = create_default_registry()


def register(rule_id: str, **options: Any) -> QualityRule:
    """Register a rule on the default registry."""
    return default_registry.register(rule_id, **options)


def get(rule_id: str) -> Optional[QualityRule]:
    return default_registry.get(rule_id)


def has(rule_id: str) -> bool:
    return default_registry.has(rule_id)


def get_all(
    enabled: Optional[bool] = None,
    severity: Optional[str] = None,
    category: Optional[str] = None,
) -> List[QualityRule]:
    return default_registry.get_all(enabled=enabled, severity=severity, category=category)


def set_enabled(rule_id: str, enabled: bool) -> None:
    default_registry.set_enabled(rule_id, enabled)


def update_config(rule_id: str, config: Dict[str, Any]) -> None:
    default_registry.update_config(rule_id, config)


def load_from_file(path: Union[str, Path]) -> int:
    """Load rule definitions into the default registry."""
    return default_registry.load_from_file(path)


__all__ = [
    # Registry
    "QualityRule",
    "RuleCheck",
    "RuleFixer",
    "RuleOutcome",
    "RuleRegistry",
    "default_registry",
    # Built-ins
    "BUILTIN_RULES",
    "CODE_EXTENSIONS",
    "JS_EXTENSIONS",
    "TEXT_EXTENSIONS",
    "create_default_registry",
    "register_builtin_rules",
    "strip_trailing_whitespace",
    # Default registry shortcuts
    "register",
    "get",
    "has",
    "get_all",
    "set_enabled",
    "update_config",
    "load_from_file",
]
