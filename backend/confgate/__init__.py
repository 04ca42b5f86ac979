"""
Confgate: configuration governance and quality gates.

This package validates configuration documents against versioned schemas,
runs pluggable quality rules over a project's files with severity-based
gating, and manages the configuration file's lifecycle (save, backup,
rollback, diff, history).
"""

import logging

from .errors import (
    SEVERITY_LEVELS,
    ConfgateError,
    ConfigError,
    ValidationError,
    QualityGateError,
    MigrationError,
    FileError,
    RuleError,
    severity_level,
)
from .models import QualityGateConfig, RuleOverride, Severity, ReportFormat
from .validator import ConfigValidator, ValidationIssue, ValidationReport
from .rules import QualityRule, RuleOutcome, RuleRegistry, create_default_registry, default_registry
from .gate import QualityGate, GateResult, GateSummary, RuleResult, check_or_throw
from .reporters import ConsoleReporter, JsonReporter, MarkdownReporter, create_reporter
from .diff import DiffEntry, diff_documents
from .history import HistoryEntry, HistoryLog
from .manager import BackupRecord, ConfigManager, expand_env
from .defaults import DEFAULT_CONFIG, DEFAULT_GATE_CONFIG, merged_with_defaults
from .migration import Migration, MigrationRunner, compare_versions

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.10"
__all__ = [
    # Errors
    "SEVERITY_LEVELS",
    "ConfgateError",
    "ConfigError",
    "ValidationError",
    "QualityGateError",
    "MigrationError",
    "FileError",
    "RuleError",
    "severity_level",
    # Models
    "QualityGateConfig",
    "RuleOverride",
    "Severity",
    "ReportFormat",
    # Validation
    "ConfigValidator",
    "ValidationIssue",
    "ValidationReport",
    # Rules
    "QualityRule",
    "RuleOutcome",
    "RuleRegistry",
    "create_default_registry",
    "default_registry",
    # Gate
    "QualityGate",
    "GateResult",
    "GateSummary",
    "RuleResult",
    "check_or_throw",
    # Reporters
    "ConsoleReporter",
    "JsonReporter",
    "MarkdownReporter",
    "create_reporter",
    # Configuration lifecycle
    "DiffEntry",
    "diff_documents",
    "HistoryEntry",
    "HistoryLog",
    "BackupRecord",
    "ConfigManager",
    "expand_env",
    "DEFAULT_CONFIG",
    "DEFAULT_GATE_CONFIG",
    "merged_with_defaults",
    # Migrations
    "Migration",
    "MigrationRunner",
    "compare_versions",
]
