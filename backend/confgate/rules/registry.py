"""
Quality Rule Registry.

An in-memory catalog of named quality rules. Rules are registered from the
built-in set at start-up and may be toggled, reconfigured or overridden by
rule-definition files (JSON or YAML) at runtime.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

from ..errors import SEVERITY_LEVELS


logger = logging.getLogger(__name__)


@dataclass
class RuleOutcome:
    """
    Outcome of one rule check against one file.

    Attributes:
        passed: Whether the file satisfies the rule.
        message: Human-readable outcome.
        skip: The rule does not apply to this file; never counts as pass/fail.
        auto_fix: The problem can be fixed automatically.
        fix: Suggested manual remediation.
        details: Rule-specific data (offending lines, counts, ...).
    """

    passed: bool
    message: str = ""
    skip: bool = False
    auto_fix: bool = False
    fix: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def skipped(cls, message: str = "Not applicable") -> "RuleOutcome":
        return cls(passed=True, skip=True, message=message)

    @classmethod
    def coerce(cls, value: Any) -> "RuleOutcome":
        """Accept a RuleOutcome or a plain ``{"pass": ...}`` mapping."""
        if isinstance(value, RuleOutcome):
            return value
        if isinstance(value, dict):
            return cls(
                passed=bool(value.get("pass", value.get("passed", False))),
                message=str(value.get("message") or ""),
                skip=bool(value.get("skip", False)),
                auto_fix=bool(value.get("autoFix", value.get("auto_fix", False))),
                fix=value.get("fix"),
                details=value.get("details"),
            )
        raise TypeError(f"Rule check returned {type(value).__name__}, expected RuleOutcome")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pass": self.passed,
            "message": self.message,
            "skip": self.skip,
            "autoFix": self.auto_fix,
            "fix": self.fix,
            "details": self.details,
        }


RuleCheck = Callable[[str, Dict[str, Any]], RuleOutcome]
RuleFixer = Callable[[str], str]


def _not_implemented_check(path: str, config: Dict[str, Any]) -> RuleOutcome:
    return RuleOutcome.skipped("Rule has no check implementation")


@dataclass
class QualityRule:
    """
    A named quality rule.

    Attributes:
        id: Unique identifier.
        check: ``check(path, config) -> RuleOutcome``. Must raise when the
            target file does not exist.
        name: Display name (defaults to id).
        severity: info | warn | error | critical.
        enabled: Whether the rule runs.
        config: Rule-specific options.
        category: Optional grouping tag.
        description: What the rule looks for.
        fix: Default remediation shown when a check gives none.
        fixer: Transforms file content to resolve ``auto_fix`` findings.
    """

    id: str
    check: RuleCheck
    name: str = ""
    severity: str = "warn"
    enabled: bool = True
    config: Dict[str, Any] = field(default_factory=dict)
    category: Optional[str] = None
    description: str = ""
    fix: Optional[str] = None
    fixer: Optional[RuleFixer] = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.id

    def run(self, path: str, config: Optional[Dict[str, Any]] = None) -> RuleOutcome:
        """Run the check with the rule's own config unless one is given."""
        return RuleOutcome.coerce(self.check(path, self.config if config is None else config))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "severity": self.severity,
            "enabled": self.enabled,
            "config": dict(self.config),
            "category": self.category,
            "description": self.description,
        }


class RuleRegistry:
    """Catalog of quality rules keyed by id."""

    def __init__(self) -> None:
        self._rules: Dict[str, QualityRule] = {}

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def register(
        self,
        rule_id: str,
        check: Optional[RuleCheck] = None,
        name: Optional[str] = None,
        severity: Optional[str] = None,
        enabled: Optional[bool] = None,
        config: Optional[Dict[str, Any]] = None,
        category: Optional[str] = None,
        description: str = "",
        fix: Optional[str] = None,
        fixer: Optional[RuleFixer] = None,
    ) -> QualityRule:
        """
        Register a rule, replacing any rule with the same id.

        Unspecified values default to: name=id, severity="warn",
        enabled=True, config={}.

        Returns:
            The registered rule.
        """
        rule = QualityRule(
            id=rule_id,
            check=check or _not_implemented_check,
            name=name or rule_id,
            severity=severity or "warn",
            enabled=True if enabled is None else bool(enabled),
            config=dict(config or {}),
            category=category,
            description=description,
            fix=fix,
            fixer=fixer,
        )
        self._rules[rule_id] = rule
        return rule

    def get(self, rule_id: str) -> Optional[QualityRule]:
        """Get a rule by id, or None."""
        return self._rules.get(rule_id)

    def has(self, rule_id: str) -> bool:
        return rule_id in self._rules

    def get_all(
        self,
        enabled: Optional[bool] = None,
        severity: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[QualityRule]:
        """
        List rules in registration order.

        Filters combine; omitted filters match everything (including
        disabled rules).
        """
        rules = list(self._rules.values())
        if enabled is not None:
            rules = [r for r in rules if r.enabled == enabled]
        if severity is not None:
            rules = [r for r in rules if r.severity == severity]
        if category is not None:
            rules = [r for r in rules if r.category == category]
        return rules

    def set_enabled(self, rule_id: str, enabled: bool) -> None:
        """Enable or disable a rule. Unknown ids are ignored."""
        rule = self._rules.get(rule_id)
        if rule:
            rule.enabled = bool(enabled)

    def set_severity(self, rule_id: str, severity: str) -> None:
        """Change a rule's severity. Unknown ids are ignored."""
        rule = self._rules.get(rule_id)
        if rule and severity in SEVERITY_LEVELS:
            rule.severity = severity

    def update_config(self, rule_id: str, config: Dict[str, Any]) -> None:
        """Shallow-merge options into a rule's config. Unknown ids are ignored."""
        rule = self._rules.get(rule_id)
        if rule:
            rule.config = {**rule.config, **(config or {})}

    def load_from_file(self, path: Union[str, Path]) -> int:
        """
        Register or override rules from a ``{"rules": [...]}`` document.

        JSON and YAML are both accepted. A missing file is ignored, and a
        malformed file or entry is skipped with a warning.

        Returns:
            Number of rules registered from the file.
        """
        path = Path(path)
        if not path.exists():
            return 0

        try:
            data = _parse_rules_document(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning("Could not load rules from %s: %s", path, e)
            return 0

        entries = data.get("rules") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            logger.warning("No rules list found in %s", path)
            return 0

        loaded = 0
        for entry in entries:
            if self._register_entry(entry):
                loaded += 1
            else:
                logger.warning("Skipping malformed rule entry in %s: %r", path, entry)

        logger.info("Loaded %d rule(s) from %s", loaded, path)
        return loaded

    def _register_entry(self, entry: Any) -> bool:
        if not isinstance(entry, dict):
            return False
        rule_id = entry.get("id")
        if not isinstance(rule_id, str) or not rule_id:
            return False
        severity = entry.get("severity")
        if severity is not None and severity not in SEVERITY_LEVELS:
            return False
        config = entry.get("config")
        if config is not None and not isinstance(config, dict):
            return False
        enabled = entry.get("enabled")
        if enabled is not None and not isinstance(enabled, bool):
            return False

        existing = self._rules.get(rule_id)
        check = entry.get("check") if callable(entry.get("check")) else None
        self.register(
            rule_id,
            check=check or (existing.check if existing else None),
            name=entry.get("name") or (existing.name if existing else None),
            severity=severity or (existing.severity if existing else None),
            enabled=enabled if enabled is not None else (existing.enabled if existing else None),
            config=config if config is not None else (existing.config if existing else None),
            category=entry.get("category") or (existing.category if existing else None),
            description=entry.get("description") or (existing.description if existing else ""),
            fix=entry.get("fix") or (existing.fix if existing else None),
            fixer=existing.fixer if existing else None,
        )
        return True

    def copy(self) -> "RuleRegistry":
        """Independent registry holding copies of every rule."""
        clone = RuleRegistry()
        for rule in self._rules.values():
            clone.register(
                rule.id,
                check=rule.check,
                name=rule.name,
                severity=rule.severity,
                enabled=rule.enabled,
                config=dict(rule.config),
                category=rule.category,
                description=rule.description,
                fix=rule.fix,
                fixer=rule.fixer,
            )
        return clone


def _parse_rules_document(path: Path) -> Any:
    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        return yaml.safe_load(content)
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return yaml.safe_load(content)
