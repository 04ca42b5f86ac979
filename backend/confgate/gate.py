"""
Quality Gate.

Runs the active quality rules over a project's files, tallies the findings
by severity and decides pass/fail against a severity threshold:

1. Resolve the file set (explicit list, or a filtered scan of the project)
2. Resolve the rule set (explicit list, or enabled registry rules after
   applying the gate configuration's overrides)
3. Run every rule on every file; a rule that raises becomes an error result
4. Optionally apply automatic fixes
5. Decide pass/fail and hand the result to the reporters
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError as ModelValidationError

from .defaults import get_default_gate_config
from .errors import ConfigError, QualityGateError, RuleError, severity_level
from .models import QualityGateConfig
from .reporters import Reporter, create_reporter
from .rules import QualityRule, RuleOutcome, RuleRegistry, default_registry
from .validator import validate


logger = logging.getLogger(__name__)

IGNORE_DIRS = frozenset({
    "node_modules", ".git", "dist", "build", ".next",
    "coverage", ".nyc_output", ".cache", "vendor",
})

CHECK_EXTENSIONS = frozenset({
    ".js", ".ts", ".jsx", ".tsx", ".cjs", ".mjs",
    ".json", ".md", ".py", ".go", ".rs",
})

MAX_SCAN_DEPTH = 10

GATE_CONFIG_PATH = Path(".claude") / "quality-gate.json"


@dataclass
class RuleResult:
    """Outcome of one rule on one file."""

    file: str
    rule: str
    rule_name: str
    severity: str
    message: str
    passed: bool
    skip: bool = False
    fix: Optional[str] = None
    auto_fix: bool = False
    details: Optional[Dict[str, Any]] = None

    @property
    def is_issue(self) -> bool:
        """Failed and not skipped."""
        return not self.passed and not self.skip

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "rule": self.rule,
            "ruleName": self.rule_name,
            "severity": self.severity,
            "message": self.message,
            "pass": self.passed,
            "skip": self.skip,
            "fix": self.fix,
            "autoFix": self.auto_fix,
            "details": self.details,
        }


@dataclass
class GateSummary:
    """
    Counts derived from a list of rule results.

    Severity buckets count issues only: skipped and passing results are
    never tallied.
    """

    total: int = 0
    critical: int = 0
    error: int = 0
    warn: int = 0
    info: int = 0
    files_checked: int = 0
    rules_run: int = 0
    fixed: Optional[int] = None

    @classmethod
    def from_results(
        cls,
        results: Iterable[RuleResult],
        files_checked: int,
        rules_run: int,
    ) -> "GateSummary":
        summary = cls(files_checked=files_checked, rules_run=rules_run)
        for result in results:
            if not result.is_issue:
                continue
            summary.total += 1
            if result.severity in ("critical", "error", "warn", "info"):
                setattr(summary, result.severity, getattr(summary, result.severity) + 1)
        return summary

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "total": self.total,
            "critical": self.critical,
            "error": self.error,
            "warn": self.warn,
            "info": self.info,
            "filesChecked": self.files_checked,
            "rulesRun": self.rules_run,
        }
        if self.fixed is not None:
            data["fixed"] = self.fixed
        return data


@dataclass
class GateResult:
    """A finished gate run."""

    passed: bool
    results: List[RuleResult] = field(default_factory=list)
    summary: GateSummary = field(default_factory=GateSummary)

    @property
    def issues(self) -> List[RuleResult]:
        return [r for r in self.results if r.is_issue]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary.to_dict(),
        }


RuleSpec = Union[QualityRule, str, Dict[str, Any]]


class QualityGate:
    """
    Severity-gated rule runner for a project directory.

    Args:
        project_dir: Directory to scan (defaults to the working directory).
        config: Gate configuration. Read from
            ``<project_dir>/.claude/quality-gate.json`` when omitted, falling
            back to the built-in defaults when that file is absent or invalid.
        reporters: Reporters to call with every result. Defaults to one
            reporter built from ``config.reporting``.
        registry: Rule registry (defaults to the process-wide registry).
    """

    def __init__(
        self,
        project_dir: Optional[Union[str, Path]] = None,
        config: Optional[Union[QualityGateConfig, Dict[str, Any]]] = None,
        reporters: Optional[Sequence[Reporter]] = None,
        registry: Optional[RuleRegistry] = None,
    ):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.config = self._coerce_config(config) if config is not None else self._load_config()
        self.registry = registry if registry is not None else default_registry
        if reporters is None:
            reporters = [create_reporter(
                self.config.reporting.format,
                output_file=self.config.reporting.output_file,
            )]
        self.reporters = list(reporters)

    @staticmethod
    def severity_level(severity: Optional[str]) -> int:
        """Numeric rank of a severity (unknown names rank as warn)."""
        return severity_level(severity)

    def check(
        self,
        files: Optional[Sequence[Union[str, Path]]] = None,
        severity: Optional[str] = None,
        rules: Optional[Sequence[RuleSpec]] = None,
        fix: bool = False,
    ) -> GateResult:
        """
        Run the gate.

        Args:
            files: Files to check instead of scanning the project.
            severity: Blocking threshold (defaults to the configured one).
            rules: Rules to run instead of the configured active set. Items
                may be rules, rule ids or ``{"id": ..., ...}`` overrides.
            fix: Apply automatic fixes for fixable findings.

        Returns:
            GateResult; ``passed`` is False when any issue reaches the
            threshold.
        """
        threshold = severity or self.config.severity or "warn"
        file_list = [str(f) for f in files] if files is not None else self.get_project_files()
        rule_list = self._resolve_rules(rules) if rules is not None else self.get_active_rules()

        results: List[RuleResult] = []
        for path in file_list:
            results.extend(self._check_file(path, rule_list))

        summary = GateSummary.from_results(results, len(file_list), len(rule_list))

        if fix:
            summary.fixed = self._apply_fixes(
                [r for r in results if r.auto_fix and r.is_issue],
                rule_list,
            )

        minimum = self.severity_level(threshold)
        passed = not any(
            r.is_issue and self.severity_level(r.severity) >= minimum for r in results
        )
        result = GateResult(passed=passed, results=results, summary=summary)

        logger.info(
            "Quality gate %s (threshold %s): %d issue(s) in %d file(s)",
            "passed" if passed else "failed", threshold, summary.total, summary.files_checked,
        )

        for reporter in self.reporters:
            reporter.report(result)

        return result

    def check_or_throw(self, **options: Any) -> GateResult:
        """
        Run ``check`` and raise when the gate fails.

        Raises:
            QualityGateError: embedding the full result.
        """
        result = self.check(**options)
        if not result.passed:
            raise QualityGateError(
                "Quality gate check failed",
                result=result,
                hints=[f"Fix the {result.summary.total} reported issue(s) and re-run the gate"],
            )
        return result

    def get_project_files(self) -> List[str]:
        """Scan the project for checkable files, sorted within each directory."""
        files: List[str] = []
        self._scan(self.project_dir, 0, files)
        return files

    def _scan(self, directory: Path, depth: int, files: List[str]) -> None:
        if depth > MAX_SCAN_DEPTH:
            return
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", directory, e)
            return

        for entry in entries:
            try:
                if entry.is_dir():
                    if entry.name not in IGNORE_DIRS:
                        self._scan(Path(entry.path), depth + 1, files)
                elif entry.is_file() and Path(entry.name).suffix in CHECK_EXTENSIONS:
                    files.append(entry.path)
            except OSError as e:
                logger.debug("Skipping %s: %s", entry.path, e)

    def get_active_rules(self) -> List[QualityRule]:
        """
        Apply this gate's rule overrides to the registry and list enabled rules.

        Overrides mutate the registry, so they persist for later runs sharing
        it.
        """
        for override in self.config.rules:
            if not self.registry.has(override.id):
                continue
            if override.enabled is not None:
                self.registry.set_enabled(override.id, override.enabled)
            if override.severity:
                self.registry.set_severity(override.id, override.severity)
            if override.config:
                self.registry.update_config(override.id, override.config)
        return self.registry.get_all(enabled=True)

    def _resolve_rules(self, rules: Sequence[RuleSpec]) -> List[QualityRule]:
        resolved: List[QualityRule] = []
        for spec in rules:
            if isinstance(spec, QualityRule):
                resolved.append(spec)
                continue

            override = {"id": spec} if isinstance(spec, str) else dict(spec)
            rule_id = str(override.get("id", ""))
            base = self.registry.get(rule_id) or _unknown_rule(rule_id)
            changes: Dict[str, Any] = {}
            if override.get("enabled") is not None:
                changes["enabled"] = bool(override["enabled"])
            if override.get("severity"):
                changes["severity"] = override["severity"]
            if override.get("config"):
                changes["config"] = {**base.config, **override["config"]}
            resolved.append(dataclasses.replace(base, **changes) if changes else base)
        return resolved

    def _check_file(self, path: str, rules: List[QualityRule]) -> List[RuleResult]:
        if not os.path.isfile(path):
            return [RuleResult(
                file=path,
                rule="file-exists",
                rule_name="File Exists",
                severity="error",
                message="File not found",
                passed=False,
            )]

        results: List[RuleResult] = []
        for rule in rules:
            if not rule.enabled:
                continue
            try:
                outcome = rule.run(path)
            except Exception as e:
                error = RuleError(
                    f"Rule execution error: {getattr(e, 'message', None) or e}",
                    rule_id=rule.id,
                    details={"file": path, "exception": type(e).__name__},
                )
                logger.warning("Rule %s failed on %s: %s", rule.id, path, e)
                results.append(RuleResult(
                    file=path,
                    rule=rule.id,
                    rule_name=rule.name,
                    severity="error",
                    message=error.message,
                    passed=False,
                    details=error.to_dict(),
                ))
                continue
            results.append(_to_result(path, rule, outcome))
        return results

    def _apply_fixes(self, fixable: List[RuleResult], rules: List[QualityRule]) -> int:
        fixers = {r.id: r.fixer for r in rules if r.fixer}
        by_file: Dict[str, List[str]] = {}
        for result in fixable:
            if result.rule in fixers:
                by_file.setdefault(result.file, []).append(result.rule)

        fixed = 0
        for path, rule_ids in by_file.items():
            try:
                with open(path, "r", encoding="utf-8", newline="") as f:
                    content = f.read()
                updated = content
                for rule_id in rule_ids:
                    updated = fixers[rule_id](updated)
                if updated != content:
                    with open(path, "w", encoding="utf-8", newline="") as f:
                        f.write(updated)
                    fixed += 1
            except (OSError, UnicodeError) as e:
                logger.warning("Could not fix %s: %s", path, e)
        return fixed

    def _coerce_config(
        self, config: Union[QualityGateConfig, Dict[str, Any]]
    ) -> QualityGateConfig:
        if isinstance(config, QualityGateConfig):
            return config
        try:
            return QualityGateConfig.model_validate(config)
        except ModelValidationError as e:
            raise ConfigError(
                "Invalid quality gate configuration",
                errors=[
                    {
                        "path": ".".join(str(p) for p in err["loc"]) or "root",
                        "message": err["msg"],
                        "severity": "error",
                    }
                    for err in e.errors()
                ],
            ) from e

    def _load_config(self) -> QualityGateConfig:
        path = self.project_dir / GATE_CONFIG_PATH
        if path.exists():
            try:
                document = json.loads(path.read_text(encoding="utf-8"))
                report = validate(document, "quality-gate")
                if report.errors:
                    raise ConfigError(
                        "Quality gate configuration failed validation",
                        errors=report.errors,
                        fixes=report.fixes,
                    )
                return QualityGateConfig.model_validate(document)
            except (OSError, ValueError, ConfigError, ModelValidationError) as e:
                logger.warning("Ignoring invalid %s, using defaults: %s", path, e)
        return QualityGateConfig.model_validate(get_default_gate_config())


def _unknown_rule(rule_id: str) -> QualityRule:
    def check(path: str, config: Dict[str, Any]) -> RuleOutcome:
        raise RuleError(f"Unknown rule: {rule_id}", rule_id=rule_id)

    return QualityRule(id=rule_id or "unknown", check=check)


def _to_result(path: str, rule: QualityRule, outcome: RuleOutcome) -> RuleResult:
    return RuleResult(
        file=path,
        rule=rule.id,
        rule_name=rule.name,
        severity=rule.severity,
        message=outcome.message,
        passed=outcome.passed,
        skip=outcome.skip,
        fix=outcome.fix or rule.fix,
        auto_fix=outcome.auto_fix,
        details=outcome.details,
    )


def check_or_throw(
    project_dir: Optional[Union[str, Path]] = None,
    config: Optional[Union[QualityGateConfig, Dict[str, Any]]] = None,
    reporters: Optional[Sequence[Reporter]] = None,
    registry: Optional[RuleRegistry] = None,
    **options: Any,
) -> GateResult:
    """Build a gate and run ``QualityGate.check_or_throw``."""
    gate = QualityGate(
        project_dir=project_dir,
        config=config,
        reporters=reporters,
        registry=registry,
    )
    return gate.check_or_throw(**options)
