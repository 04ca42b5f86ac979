"""
Configuration Validation Engine.

Validates structured documents against the named schemas and produces a
normalized report: errors, warnings and suggested fixes.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..errors import ConfigError
from .backends import (
    JsonSchemaBackend,
    ValidationBackend,
    ValidationIssue,
    create_backend,
)
from .schemas import SCHEMA_NAMES, get_schema, schema_name_for_file


logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    """
    Result of validating one document.

    ``errors`` holds error/critical issues, ``warnings`` holds warn/info
    issues. ``valid`` is False whenever any issue was reported.
    """

    valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    fixes: List[str] = field(default_factory=list)

    @classmethod
    def from_issues(cls, issues: List[ValidationIssue]) -> "ValidationReport":
        """Bucket issues by severity and collect their fixes."""
        report = cls(valid=not issues)
        for issue in issues:
            if issue.severity in ("warn", "info"):
                report.warnings.append(issue)
            else:
                report.errors.append(issue)
            if issue.fix:
                report.fixes.append(issue.fix)
        return report

    @classmethod
    def failure(cls, issue: ValidationIssue) -> "ValidationReport":
        """Report consisting of a single blocking issue."""
        return cls(valid=False, errors=[issue], fixes=[issue.fix] if issue.fix else [])

    @property
    def issues(self) -> List[ValidationIssue]:
        return self.errors + self.warnings

    @property
    def critical_count(self) -> int:
        return sum(1 for e in self.errors if e.severity == "critical")

    def summary(self) -> str:
        """Generate a short summary of the report."""
        status = "PASSED" if self.valid else "FAILED"
        return "\n".join([
            f"Validation {status}",
            f"  Errors: {len(self.errors)}",
            f"  Warnings: {len(self.warnings)}",
        ])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "fixes": list(self.fixes),
        }


class ConfigValidator:
    """
    Validates configuration documents against the schema set.

    The validation backend is chosen once, at construction:
    ``"jsonschema"`` (full Draft 7 validation, the default) or ``"basic"``
    (minimal hand-written checks).
    """

    def __init__(
        self,
        backend: Union[str, ValidationBackend] = "jsonschema",
        strict: bool = True,
    ):
        """
        Initialize the validator.

        Args:
            backend: Backend name or an already constructed backend.
            strict: When False, ``validate_or_throw`` tolerates documents whose
                only issues are warnings.
        """
        if isinstance(backend, ValidationBackend):
            self.backend = backend
        else:
            self.backend = create_backend(backend)
        self.strict = strict
        logger.debug("Using %s validation backend", self.backend.name)

    def is_schema_backend_available(self) -> bool:
        """True when the full schema engine backs this validator."""
        return isinstance(self.backend, JsonSchemaBackend)

    def validate(self, document: Any, schema_name: str = "config") -> ValidationReport:
        """
        Validate a document against a named schema.

        Args:
            document: Parsed document (any JSON value).
            schema_name: One of 'config', 'settings', 'quality-gate'.

        Returns:
            ValidationReport. An unknown schema name yields a single critical
            issue at path "schema".
        """
        if not isinstance(schema_name, str) or get_schema(schema_name) is None:
            return ValidationReport.failure(ValidationIssue(
                path="schema",
                message=f"Unknown schema: {schema_name}",
                severity="critical",
                fix=f"Use valid schema name: {', '.join(SCHEMA_NAMES)}",
            ))

        return ValidationReport.from_issues(self.backend.validate(document, schema_name))

    def validate_file(
        self,
        path: Union[str, Path],
        schema_name: Optional[str] = None,
    ) -> ValidationReport:
        """
        Validate a JSON configuration file.

        The schema is picked from the file name when not given. A missing file
        or malformed JSON is reported, not raised; other read failures
        propagate.
        """
        path = Path(path)
        schema_name = schema_name or schema_name_for_file(path.name)

        if not path.exists():
            return ValidationReport.failure(ValidationIssue(
                path=str(path),
                message="Configuration file not found",
                severity="critical",
                fix=f"Create config at: {path}",
            ))

        content = path.read_text(encoding="utf-8")
        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            return ValidationReport.failure(ValidationIssue(
                path=str(path),
                message=f"JSON parse error: {e.msg}",
                severity="critical",
                fix=suggest_json_fix(content, e.pos),
            ))

        return self.validate(document, schema_name)

    def validate_or_throw(self, document: Any, schema_name: str = "config") -> Any:
        """
        Validate and return the very same document, or raise ConfigError.

        Raises:
            ConfigError: carrying the blocking issues and suggested fixes.
                Strict validators block on warnings too, so those are
                itemized alongside the errors.
        """
        report = self.validate(document, schema_name)
        failed = not report.valid if self.strict else bool(report.errors)
        if failed:
            raise ConfigError(
                "Configuration validation failed",
                errors=report.issues if self.strict else report.errors,
                fixes=report.fixes,
                hints=list(report.fixes),
            )
        return document


def suggest_json_fix(content: str, position: Optional[int]) -> str:
    """Point at the line/column of a JSON syntax error given its offset."""
    if position is None or position < 0:
        return "Verify JSON syntax (commas, quotes, brackets are properly closed)"
    before = content[:position]
    line = before.count("\n") + 1
    column = position - (before.rfind("\n") + 1) + 1
    return (
        f"Check line {line}, column {column} for syntax errors "
        "(missing comma, quote, bracket, etc.)"
    )


default_validator = ConfigValidator()


def validate(document: Any, schema_name: str = "config") -> ValidationReport:
    """Validate with the default validator."""
    return default_validator.validate(document, schema_name)


def validate_file(
    path: Union[str, Path],
    schema_name: Optional[str] = None,
) -> ValidationReport:
    """Validate a file with the default validator."""
    return default_validator.validate_file(path, schema_name)


def validate_or_throw(document: Any, schema_name: str = "config") -> Any:
    """Validate with the default validator, raising ConfigError when invalid."""
    return default_validator.validate_or_throw(document, schema_name)
