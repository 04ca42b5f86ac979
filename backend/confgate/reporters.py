"""
Quality Gate Reporters.

Formatting strategies over a finished gate result. A reporter renders the
result to text and writes it to a stream (stdout by default) or to a file.
Reporters never modify the result they are given.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Union

from .errors import SEVERITY_ICONS


logger = logging.getLogger(__name__)

RULE_WIDTH = 60


def _as_dict(result: Any) -> Dict[str, Any]:
    if hasattr(result, "to_dict"):
        return result.to_dict()
    return result


def _relative(path: str) -> str:
    try:
        return os.path.relpath(path)
    except ValueError:
        return path


def group_failures(results: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Group failing, non-skipped results by path relative to the cwd."""
    by_file: Dict[str, List[Dict[str, Any]]] = {}
    for result in results:
        if result.get("pass") or result.get("skip"):
            continue
        by_file.setdefault(_relative(str(result.get("file", ""))), []).append(result)
    return by_file


class Reporter(ABC):
    """Base reporter writing rendered output to a stream or file."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        output_file: Optional[Union[str, Path]] = None,
    ):
        self.stream = stream
        self.output_file = Path(output_file) if output_file else None

    @abstractmethod
    def render(self, result: Dict[str, Any]) -> str:
        """Render a gate result (in dictionary form) to text."""

    def report(self, result: Any) -> str:
        """Render and emit a gate result. Returns the rendered text."""
        output = self.render(_as_dict(result))
        if self.output_file:
            self.output_file.parent.mkdir(parents=True, exist_ok=True)
            self.output_file.write_text(output + "\n", encoding="utf-8")
            logger.info("Wrote quality gate report to %s", self.output_file)
        else:
            stream = self.stream or sys.stdout
            stream.write(output + "\n")
        return output


class ConsoleReporter(Reporter):
    """Human-readable plain-text report."""

    def render(self, result: Dict[str, Any]) -> str:
        summary = result.get("summary") or {}
        rule = "=" * RULE_WIDTH
        lines = [
            "",
            rule,
            "Quality Gate Report",
            rule,
            f"Status: {'PASS' if result.get('passed') else 'FAIL'}",
            f"Files: {summary.get('filesChecked', 0)}",
            (
                f"Issues: {summary.get('total', 0)} "
                f"({summary.get('critical', 0)} critical, "
                f"{summary.get('error', 0)} errors, "
                f"{summary.get('warn', 0)} warnings)"
            ),
        ]
        if "fixed" in summary:
            lines.append(f"Fixed: {summary['fixed']}")
        lines.append(rule)

        for file, issues in group_failures(result.get("results") or []).items():
            lines.append("")
            lines.append(f"{file}:")
            for issue in issues:
                icon = SEVERITY_ICONS.get(issue.get("severity"), "W")
                lines.append(f"  [{icon}] {issue.get('ruleName')}: {issue.get('message')}")
                if issue.get("fix"):
                    lines.append(f"      Fix: {issue['fix']}")

        lines.append("")
        lines.append(rule)
        return "\n".join(lines)


class JsonReporter(Reporter):
    """The whole result as one JSON document."""

    def render(self, result: Dict[str, Any]) -> str:
        return json.dumps(result, indent=2, default=str)


class MarkdownReporter(Reporter):
    """Markdown report with a status badge, summary and per-file issues."""

    def render(self, result: Dict[str, Any]) -> str:
        summary = result.get("summary") or {}
        status = "PASS :white_check_mark:" if result.get("passed") else "FAIL :x:"
        lines = [
            "# Quality Gate Report",
            "",
            f"**Status**: {status}",
            "",
            "## Summary",
            "",
            "| Metric | Count |",
            "|--------|-------|",
            f"| Files | {summary.get('filesChecked', 0)} |",
            f"| Issues | {summary.get('total', 0)} |",
            f"| Critical | {summary.get('critical', 0)} |",
            f"| Errors | {summary.get('error', 0)} |",
            f"| Warnings | {summary.get('warn', 0)} |",
            f"| Info | {summary.get('info', 0)} |",
        ]
        if "fixed" in summary:
            lines.append(f"| Fixed | {summary['fixed']} |")
        lines.append("")

        by_file = group_failures(result.get("results") or [])
        if by_file:
            lines.append("## Issues")
            lines.append("")
            for file, issues in by_file.items():
                lines.append(f"### {file}")
                for issue in issues:
                    lines.append(
                        f"- **{issue.get('ruleName')}** ({issue.get('severity')}): "
                        f"{issue.get('message')}"
                    )
                    if issue.get("fix"):
                        lines.append(f"  - Fix: {issue['fix']}")
                lines.append("")

        return "\n".join(lines)


REPORTERS = {
    "console": ConsoleReporter,
    "json": JsonReporter,
    "markdown": MarkdownReporter,
    "html": MarkdownReporter,
}


def create_reporter(
    format: str = "console",
    stream: Optional[TextIO] = None,
    output_file: Optional[Union[str, Path]] = None,
) -> Reporter:
    """
    Build a reporter for a ``reporting.format`` value.

    ``html`` has no dedicated renderer and produces Markdown.

    Raises:
        ValueError: Unknown format.
    """
    if format not in REPORTERS:
        raise ValueError(
            f"Unknown report format: {format}. Use one of: {', '.join(REPORTERS)}"
        )
    return REPORTERS[format](stream=stream, output_file=output_file)
