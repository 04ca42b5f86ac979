"""
Validation Backends.

Two interchangeable implementations of the same capability:

- ``JsonSchemaBackend``: full Draft 7 validation through ``jsonschema``.
  Each schema is compiled once per process and reused.
- ``BasicBackend``: a minimal hand-written check set (document must be an
  object; the config document must carry a well-formed ``version``).

The engine picks one at construction time.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator, FormatChecker
from jsonschema.exceptions import ValidationError as SchemaViolation

from ..errors import generate_fix_from_error, get_severity_from_keyword
from .schemas import get_schema


logger = logging.getLogger(__name__)

_REQUIRED_MESSAGE = re.compile(r"^'(?P<name>[^']*)' is a required property")
_VERSION_PREFIX = re.compile(r"^\d+\.\d+\.\d+")

_compiled: Dict[str, Draft7Validator] = {}


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single schema violation.

    Attributes:
        path: Dotted/bracketed field locator, or "root".
        message: Human-readable description.
        severity: One of info, warn, error, critical.
        expected: The violated constraint, when known.
        actual: The offending value.
        fix: Optional one-line remediation suggestion.
        keyword: The schema keyword that was violated.
    """

    path: str
    message: str
    severity: str
    expected: Any = None
    actual: Any = None
    fix: Optional[str] = None
    keyword: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, omitting empty optional fields."""
        result: Dict[str, Any] = {
            "path": self.path,
            "message": self.message,
            "severity": self.severity,
        }
        if self.expected is not None:
            result["expected"] = self.expected
        if self.actual is not None:
            result["actual"] = self.actual
        if self.fix:
            result["fix"] = self.fix
        if self.keyword:
            result["keyword"] = self.keyword
        return result

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.path}: {self.message}"


def format_path(parts: Any) -> str:
    """Render a sequence of keys/indices as ``a.b[0].c`` ("root" when empty)."""
    rendered = ""
    for part in parts:
        if isinstance(part, int):
            rendered += f"[{part}]"
        elif rendered:
            rendered += f".{part}"
        else:
            rendered = str(part)
    return rendered or "root"


class ValidationBackend(ABC):
    """Validates a document against a named schema."""

    name = "abstract"

    @abstractmethod
    def validate(self, document: Any, schema_name: str) -> List[ValidationIssue]:
        """
        Validate ``document`` against the schema called ``schema_name``.

        The schema name is already known to exist. An empty list means the
        document is valid.
        """


class JsonSchemaBackend(ValidationBackend):
    """Draft 7 validation through the ``jsonschema`` package."""

    name = "jsonschema"

    def validate(self, document: Any, schema_name: str) -> List[ValidationIssue]:
        validator = self._compiled_validator(schema_name)
        violations = sorted(
            validator.iter_errors(document),
            key=lambda e: (format_path(e.absolute_path), str(e.validator)),
        )
        return [self._to_issue(v) for v in violations]

    @staticmethod
    def _compiled_validator(schema_name: str) -> Draft7Validator:
        validator = _compiled.get(schema_name)
        if validator is None:
            schema = get_schema(schema_name)
            Draft7Validator.check_schema(schema)
            validator = Draft7Validator(schema, format_checker=FormatChecker())
            _compiled[schema_name] = validator
            logger.debug("Compiled schema %s", schema_name)
        return validator

    @staticmethod
    def _to_issue(violation: SchemaViolation) -> ValidationIssue:
        keyword = str(violation.validator)
        schema = violation.schema if isinstance(violation.schema, dict) else {}
        path_parts = list(violation.absolute_path)
        params: Dict[str, Any] = {}
        actual = violation.instance

        if keyword == "required":
            missing = _missing_property(violation)
            params["missingProperty"] = missing
            path_parts.append(missing)
            actual = None

        expected: Any = schema.get("type")
        if expected is None and isinstance(schema.get("enum"), list):
            expected = "|".join(str(v) for v in schema["enum"])
        if expected is None and keyword in schema:
            expected = schema.get(keyword)

        return ValidationIssue(
            path=format_path(path_parts),
            message=violation.message or "Validation failed",
            severity=get_severity_from_keyword(keyword),
            expected=expected,
            actual=actual,
            fix=generate_fix_from_error(keyword, schema, params),
            keyword=keyword,
        )


class BasicBackend(ValidationBackend):
    """Minimal checks used when full schema validation is not wanted."""

    name = "basic"

    def validate(self, document: Any, schema_name: str) -> List[ValidationIssue]:
        if not isinstance(document, dict):
            return [ValidationIssue(
                path="root",
                message="Configuration must be an object",
                severity="critical",
                expected="object",
                actual=document,
                fix="Ensure config is valid JSON object",
                keyword="type",
            )]

        issues: List[ValidationIssue] = []
        if schema_name == "config":
            version = document.get("version")
            if not version:
                issues.append(ValidationIssue(
                    path="version",
                    message="Missing required field: version",
                    severity="critical",
                    fix='Add "version": "1.0.0" to config',
                    keyword="required",
                ))
            elif not isinstance(version, str) or not _VERSION_PREFIX.match(version):
                issues.append(ValidationIssue(
                    path="version",
                    message="Invalid version format",
                    severity="error",
                    expected="X.Y.Z",
                    actual=version,
                    fix="Use semantic version format (e.g., 1.0.0)",
                    keyword="pattern",
                ))
        return issues


def _missing_property(violation: SchemaViolation) -> str:
    match = _REQUIRED_MESSAGE.match(violation.message or "")
    if match:
        return match.group("name")
    instance = violation.instance if isinstance(violation.instance, dict) else {}
    for name in violation.validator_value or []:
        if name not in instance:
            return str(name)
    return "unknown"


BACKENDS = {
    JsonSchemaBackend.name: JsonSchemaBackend,
    BasicBackend.name: BasicBackend,
}


def create_backend(name: str) -> ValidationBackend:
    """Instantiate a backend by name ('jsonschema' or 'basic')."""
    if name not in BACKENDS:
        raise ValueError(
            f"Unknown validation backend: {name}. "
            f"Use one of: {', '.join(sorted(BACKENDS))}"
        )
    return BACKENDS[name]()
