"""
Structured Error Types.

Every error raised by confgate carries:
- an error code for programmatic handling
- a severity level (info/warn/error/critical)
- a details dictionary with context
- a list of recovery hints
- an optional documentation URL

All errors serialize to a stable JSON shape via ``to_dict()``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional


SEVERITY_LEVELS: Dict[str, int] = {
    "info": 0,
    "warn": 1,
    "error": 2,
    "critical": 3,
}

SEVERITY_ICONS: Dict[str, str] = {
    "critical": "X",
    "error": "E",
    "warn": "W",
    "info": "I",
}

# Schema keyword -> issue severity
KEYWORD_SEVERITY: Dict[str, str] = {
    "required": "critical",
    "type": "error",
    "enum": "error",
    "pattern": "warn",
    "format": "warn",
    "minimum": "warn",
    "maximum": "warn",
    "minLength": "warn",
    "maxLength": "warn",
}


def severity_level(severity: Optional[str], default: int = 1) -> int:
    """Return the numeric rank of a severity name (unknown names rank as warn)."""
    if severity is None:
        return default
    return SEVERITY_LEVELS.get(severity, default)


class ConfgateError(Exception):
    """Base class for all confgate errors."""

    default_code = "ERR_UNKNOWN"
    default_severity = "error"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        severity: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        hints: Optional[List[str]] = None,
        doc_url: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.severity = severity or self.default_severity
        self.details: Dict[str, Any] = dict(details or {})
        self.hints: List[str] = list(hints or [])
        self.doc_url = doc_url

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "name": self.name,
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
            "details": self.details,
            "hints": self.hints,
            "docUrl": self.doc_url,
        }

    def has_severity(self, min_severity: str) -> bool:
        """Check if this error is at ``min_severity`` or above."""
        return severity_level(self.severity) >= severity_level(min_severity)

    def __str__(self) -> str:
        output = f"[{self.code}] {self.message}"
        if self.hints:
            output += "\n\nSuggestions:\n"
            for i, hint in enumerate(self.hints, 1):
                output += f"  {i}. {hint}\n"
        if self.doc_url:
            output += f"\nDocs: {self.doc_url}\n"
        return output


class ConfigError(ConfgateError):
    """
    Configuration errors.

    Raised for config file parsing, validation and loading issues. Carries the
    itemized validation issues and the list of suggested fixes.
    """

    default_code = "ERR_CONFIG"
    default_severity = "critical"

    def __init__(
        self,
        message: str,
        errors: Optional[Iterable[Any]] = None,
        fixes: Optional[Iterable[str]] = None,
        **options: Any,
    ):
        super().__init__(message, **options)
        self.errors: List[Any] = list(errors or [])
        self.fixes: List[str] = list(fixes or [])
        self.details.update({
            "errorCount": len(self.errors),
            "fixCount": len(self.fixes),
            "criticalCount": sum(
                1 for e in self.errors if _issue_field(e, "severity") == "critical"
            ),
        })

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = [_issue_to_dict(e) for e in self.errors]
        data["fixes"] = list(self.fixes)
        return data

    def __str__(self) -> str:
        output = f"ConfigError: {self.message}\n"

        if self.errors:
            output += f"\nErrors ({len(self.errors)}):\n"
            for e in self.errors:
                icon = SEVERITY_ICONS.get(_issue_field(e, "severity"), "W")
                output += f"  [{icon}] {_issue_field(e, 'path')}: {_issue_field(e, 'message')}\n"
                fix = _issue_field(e, "fix")
                if fix:
                    output += f"      Fix: {fix}\n"

        if self.fixes:
            output += "\nSuggested fixes:\n"
            for i, fix in enumerate(self.fixes, 1):
                output += f"  {i}. {fix}\n"

        return output


class ValidationError(ConfgateError):
    """Generic data validation failure outside the configuration path."""

    default_code = "ERR_VALIDATION"
    default_severity = "error"


class QualityGateError(ConfgateError):
    """Raised by the throwing gate entry point when the gate did not pass."""

    default_code = "ERR_QUALITY_GATE"
    default_severity = "error"

    def __init__(self, message: str, result: Any = None, **options: Any):
        super().__init__(message, **options)
        self.result = result
        summary = _summary_of(result)
        self.details.update({
            "passed": bool(_issue_field(result, "passed")),
            "total": summary.get("total", 0),
            "critical": summary.get("critical", 0),
            "error": summary.get("error", 0),
            "warn": summary.get("warn", 0),
            "info": summary.get("info", 0),
        })


class MigrationError(ConfgateError):
    """Version upgrade failure."""

    default_code = "ERR_MIGRATION"
    default_severity = "critical"


class FileError(ConfgateError):
    """File-system operation failure with a known target path."""

    default_code = "ERR_FILE"
    default_severity = "error"

    def __init__(self, message: str, file_path: Any = None, **options: Any):
        super().__init__(message, **options)
        self.file_path = str(file_path) if file_path is not None else None
        self.details["file"] = self.file_path


class RuleError(ConfgateError):
    """A quality rule's check implementation raised."""

    default_code = "ERR_RULE"
    default_severity = "warn"

    def __init__(self, message: str, rule_id: Optional[str] = None, **options: Any):
        super().__init__(message, **options)
        self.rule_id = rule_id
        self.details["rule"] = rule_id


def get_severity_from_keyword(keyword: Optional[str]) -> str:
    """Map a schema keyword to an issue severity (unmapped keywords are warn)."""
    return KEYWORD_SEVERITY.get(keyword or "", "warn")


def generate_fix_from_error(
    keyword: Optional[str],
    schema: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """
    Build a one-line remediation suggestion for a schema violation.

    Args:
        keyword: The violated schema keyword.
        schema: The (sub)schema holding the keyword.
        params: Keyword parameters (e.g. ``missingProperty`` for required).

    Returns:
        Fix suggestion, or None for keywords without a known remediation.
    """
    schema = schema or {}
    params = params or {}

    if keyword == "required":
        return f"Add missing field: {params.get('missingProperty')}"
    if keyword == "pattern":
        return f"Value must match pattern: {schema.get('pattern')}"
    if keyword == "enum":
        values = schema.get("enum") or []
        return "Value must be one of: " + ", ".join(str(v) for v in values)
    if keyword == "type":
        return f"Change type to: {schema.get('type')}"
    if keyword == "minimum":
        return f"Value must be >= {schema.get('minimum')}"
    if keyword == "maximum":
        return f"Value must be <= {schema.get('maximum')}"
    if keyword == "minLength":
        return f"Length must be >= {schema.get('minLength')}"
    if keyword == "maxLength":
        return f"Length must be <= {schema.get('maxLength')}"
    return None


def _issue_field(issue: Any, name: str) -> Any:
    if isinstance(issue, dict):
        return issue.get(name)
    return getattr(issue, name, None)


def _issue_to_dict(issue: Any) -> Any:
    if hasattr(issue, "to_dict"):
        return issue.to_dict()
    return issue


def _summary_of(result: Any) -> Dict[str, Any]:
    if result is None:
        return {}
    if isinstance(result, dict):
        summary = result.get("summary") or {}
    else:
        summary = getattr(result, "summary", None) or {}
    if hasattr(summary, "to_dict"):
        summary = summary.to_dict()
    return summary
