"""
Pydantic models for the quality gate configuration file.

The raw JSON file is checked against ``QUALITY_GATE_SCHEMA`` by the
validator; these models give the gate a typed view of the same document.
Unknown keys are kept so documents round-trip unchanged.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    """Issue severity, ordered info < warn < error < critical."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def level(self) -> int:
        return list(Severity).index(self)


class ReportFormat(str, Enum):
    """Output format of the gate report."""

    CONSOLE = "console"
    JSON = "json"
    MARKDOWN = "markdown"
    HTML = "html"


class RuleOverride(BaseModel):
    """Per-rule settings applied on top of the registry defaults."""

    model_config = ConfigDict(extra="allow", use_enum_values=True, validate_default=True)

    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    enabled: Optional[bool] = None
    severity: Optional[Severity] = None
    config: Optional[Dict[str, Any]] = None


class GateTriggers(BaseModel):
    """When the gate runs."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    pre_commit: bool = Field(True, alias="preCommit")
    pre_push: bool = Field(True, alias="prePush")
    on_tool_use: bool = Field(False, alias="onToolUse")


class ReportingConfig(BaseModel):
    """Which reporter to use and where it writes."""

    model_config = ConfigDict(
        extra="allow", populate_by_name=True, use_enum_values=True, validate_default=True
    )

    format: ReportFormat = ReportFormat.CONSOLE
    output_file: Optional[str] = Field(None, alias="outputFile")


class QualityGateConfig(BaseModel):
    """
    Quality gate configuration (``.claude/quality-gate.json``).

    Attributes:
        enabled: Whether the gate is active.
        severity: Minimum severity that blocks the gate.
        rules: Per-rule overrides, keyed by rule id.
        gates: Trigger points.
        reporting: Report settings.
    """

    model_config = ConfigDict(extra="allow", use_enum_values=True, validate_default=True)

    enabled: bool = True
    severity: Severity = Severity.WARN
    rules: List[RuleOverride] = Field(default_factory=list)
    gates: GateTriggers = Field(default_factory=GateTriggers)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)

    @field_validator("rules")
    @classmethod
    def unique_rule_ids(cls, v: List[RuleOverride]) -> List[RuleOverride]:
        ids = [r.id for r in v]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate rule ids: {', '.join(duplicates)}")
        return v

    def get_override(self, rule_id: str) -> Optional[RuleOverride]:
        """Find the override for a rule id."""
        for override in self.rules:
            if override.id == rule_id:
                return override
        return None

    def to_document(self) -> Dict[str, Any]:
        """Dump back to the on-disk JSON shape."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
