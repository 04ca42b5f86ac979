"""
Built-in Quality Rules.

Line, size and regex heuristics applied to a single file. Every check takes
``(path, config)`` and returns a RuleOutcome; a missing file raises
(``FileNotFoundError``) so the gate can turn it into an error result.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePath
from typing import Any, Dict, List, Optional

from .registry import RuleOutcome, RuleRegistry


JS_EXTENSIONS = {".js", ".ts", ".jsx", ".tsx", ".cjs", ".mjs"}

CODE_EXTENSIONS = JS_EXTENSIONS | {
    ".py", ".go", ".rs", ".java", ".rb", ".c", ".cpp", ".h",
    ".cs", ".php", ".swift", ".kt", ".sh",
}

TEXT_EXTENSIONS = CODE_EXTENSIONS | {".md", ".txt", ".yaml", ".yml", ".css", ".html"}

DEFAULT_MAX_SIZE = 800 * 1024
DEFAULT_MAX_LINES = 800
DEFAULT_MAX_DEPTH = 10
DEFAULT_MIN_LINES = 1
DEFAULT_MAX_FUNCTION_LINES = 50

CONSOLE_CALL = re.compile(r"\bconsole\.(log|debug|info|warn|error|trace)\s*\(")
TODO_MARKER = re.compile(r"\b(TODO|FIXME|XXX|HACK)\b")
TRAILING_WHITESPACE = re.compile(r"[ \t]+$")
FUNCTION_START = re.compile(
    r"\bfunction\b[^(]*\(|=>\s*\{"
    r"|^\s*(async\s+)?(?!(if|for|while|switch|catch|with|return)\b)[A-Za-z_$][\w$]*\s*\([^)]*\)\s*\{"
)


def _option(config: Optional[Dict[str, Any]], key: str, default: Any) -> Any:
    value = (config or {}).get(key)
    return default if value is None else value


def _extension(path: str) -> str:
    return PurePath(path).suffix.lower()


def _read_lines(path: str) -> List[str]:
    return Path(path).read_text(encoding="utf-8", errors="replace").splitlines()


def _require_file(path: str) -> None:
    # Raises FileNotFoundError before any extension-based skip.
    Path(path).stat()


def strip_trailing_whitespace(content: str) -> str:
    """Remove spaces and tabs at the end of every line, keeping line endings."""
    return re.sub(r"[ \t]+(\r?)$", r"\1", content, flags=re.MULTILINE)


def check_file_size(path: str, config: Optional[Dict[str, Any]] = None) -> RuleOutcome:
    max_size = _option(config, "maxSize", DEFAULT_MAX_SIZE)
    size = Path(path).stat().st_size
    if size > max_size:
        return RuleOutcome(
            passed=False,
            message=f"File size {size} bytes exceeds limit of {max_size} bytes",
            fix="Split large files or move data into separate assets",
            details={"size": size, "maxSize": max_size},
        )
    return RuleOutcome(passed=True, message=f"File size {size} bytes within limit")


def check_line_count(path: str, config: Optional[Dict[str, Any]] = None) -> RuleOutcome:
    max_lines = _option(config, "maxLines", DEFAULT_MAX_LINES)
    count = len(_read_lines(path))
    if count > max_lines:
        return RuleOutcome(
            passed=False,
            message=f"File has {count} lines, exceeds line limit of {max_lines}",
            fix="Split the file into smaller modules",
            details={"lines": count, "maxLines": max_lines},
        )
    return RuleOutcome(passed=True, message=f"File has {count} lines")


def check_console_logs(path: str, config: Optional[Dict[str, Any]] = None) -> RuleOutcome:
    _require_file(path)
    if _extension(path) not in JS_EXTENSIONS:
        return RuleOutcome.skipped("Not a JavaScript/TypeScript file")

    hits = []
    for number, line in enumerate(_read_lines(path), 1):
        if line.lstrip().startswith("//"):
            continue
        if CONSOLE_CALL.search(line):
            hits.append(number)

    if hits:
        return RuleOutcome(
            passed=False,
            message=f"Found {len(hits)} console statement(s)",
            fix="Remove console statements or use a logger",
            details={"lines": hits},
        )
    return RuleOutcome(passed=True, message="No console statements")


def check_todo_comments(path: str, config: Optional[Dict[str, Any]] = None) -> RuleOutcome:
    _require_file(path)
    if _extension(path) not in CODE_EXTENSIONS:
        return RuleOutcome.skipped("Not a code file")

    hits = [
        {"line": number, "marker": match.group(1)}
        for number, line in enumerate(_read_lines(path), 1)
        for match in [TODO_MARKER.search(line)]
        if match
    ]
    if hits:
        return RuleOutcome(
            passed=True,
            message=f"Found {len(hits)} TODO/FIXME comment(s)",
            details={"markers": hits},
        )
    return RuleOutcome(passed=True, message="No TODO/FIXME comments")


def check_directory_depth(path: str, config: Optional[Dict[str, Any]] = None) -> RuleOutcome:
    """
    Compare the number of directories above the file against ``maxDepth``.

    Only the path is inspected. When ``root`` is configured and contains the
    file, depth is counted from there.
    """
    max_depth = _option(config, "maxDepth", DEFAULT_MAX_DEPTH)
    target = PurePath(path)
    root = (config or {}).get("root")
    if root:
        try:
            target = target.relative_to(root)
        except ValueError:
            pass

    parts = [p for p in target.parent.parts if p not in (target.anchor, ".", "")]
    depth = len(parts)
    if depth > max_depth:
        return RuleOutcome(
            passed=False,
            message=f"Directory depth {depth} exceeds maximum depth of {max_depth}",
            fix="Flatten the directory structure",
            details={"depth": depth, "maxDepth": max_depth},
        )
    return RuleOutcome(passed=True, message=f"Directory depth {depth}")


def check_empty_file(path: str, config: Optional[Dict[str, Any]] = None) -> RuleOutcome:
    min_lines = _option(config, "minLines", DEFAULT_MIN_LINES)
    count = sum(1 for line in _read_lines(path) if line.strip())
    if count < min_lines:
        return RuleOutcome(
            passed=False,
            message=f"File has only {count} non-empty line(s), minimum is {min_lines}",
            fix="Add content or remove the file",
            details={"lines": count, "minLines": min_lines},
        )
    return RuleOutcome(passed=True, message=f"File has {count} non-empty line(s)")


def check_trailing_whitespace(path: str, config: Optional[Dict[str, Any]] = None) -> RuleOutcome:
    _require_file(path)
    if _extension(path) not in TEXT_EXTENSIONS:
        return RuleOutcome.skipped("Not a text file")

    hits = [
        number
        for number, line in enumerate(_read_lines(path), 1)
        if TRAILING_WHITESPACE.search(line)
    ]
    if hits:
        return RuleOutcome(
            passed=False,
            message=f"Trailing whitespace on {len(hits)} line(s)",
            auto_fix=True,
            fix="Remove trailing spaces and tabs",
            details={"lines": hits},
        )
    return RuleOutcome(passed=True, message="No trailing whitespace")


def check_function_length(path: str, config: Optional[Dict[str, Any]] = None) -> RuleOutcome:
    """Flag brace-delimited functions longer than ``maxLines``."""
    _require_file(path)
    if _extension(path) not in JS_EXTENSIONS:
        return RuleOutcome.skipped("Not a JavaScript/TypeScript file")

    max_lines = _option(config, "maxLines", DEFAULT_MAX_FUNCTION_LINES)
    lines = _read_lines(path)
    long_functions = []

    index = 0
    while index < len(lines):
        if not FUNCTION_START.search(lines[index]):
            index += 1
            continue
        end = _closing_line(lines, index)
        length = end - index + 1
        if length > max_lines:
            long_functions.append({"line": index + 1, "length": length})
        index += 1

    if long_functions:
        return RuleOutcome(
            passed=False,
            message=(
                f"Found {len(long_functions)} function(s) longer than "
                f"{max_lines} lines"
            ),
            fix="Extract smaller helper functions",
            details={"functions": long_functions},
        )
    return RuleOutcome(passed=True, message="All functions within length limit")


def _closing_line(lines: List[str], start: int) -> int:
    depth = 0
    opened = False
    for index in range(start, len(lines)):
        for char in lines[index]:
            if char == "{":
                depth += 1
                opened = True
            elif char == "}":
                depth -= 1
        if opened and depth <= 0:
            return index
    return len(lines) - 1


BUILTIN_RULES: List[Dict[str, Any]] = [
    {
        "rule_id": "file-size-limit",
        "name": "File Size Limit",
        "severity": "warn",
        "category": "size",
        "description": "Files must not exceed the configured byte size",
        "config": {"maxSize": DEFAULT_MAX_SIZE},
        "check": check_file_size,
    },
    {
        "rule_id": "line-count-limit",
        "name": "Line Count Limit",
        "severity": "error",
        "category": "size",
        "description": "Files must not exceed the configured number of lines",
        "config": {"maxLines": DEFAULT_MAX_LINES},
        "check": check_line_count,
    },
    {
        "rule_id": "no-console-logs",
        "name": "No Console Logs",
        "severity": "warn",
        "category": "code-style",
        "description": "JavaScript/TypeScript files should not ship console statements",
        "check": check_console_logs,
    },
    {
        "rule_id": "todo-comments",
        "name": "TODO Comments",
        "severity": "info",
        "category": "maintenance",
        "description": "Reports TODO/FIXME markers",
        "check": check_todo_comments,
    },
    {
        "rule_id": "directory-depth",
        "name": "Directory Depth",
        "severity": "warn",
        "category": "structure",
        "description": "Files must not be nested deeper than the configured depth",
        "config": {"maxDepth": DEFAULT_MAX_DEPTH},
        "check": check_directory_depth,
    },
    {
        "rule_id": "no-empty-files",
        "name": "No Empty Files",
        "severity": "warn",
        "category": "structure",
        "description": "Files must hold at least the configured number of non-blank lines",
        "config": {"minLines": DEFAULT_MIN_LINES},
        "check": check_empty_file,
    },
    {
        "rule_id": "no-trailing-whitespace",
        "name": "No Trailing Whitespace",
        "severity": "warn",
        "category": "code-style",
        "description": "Lines must not end in spaces or tabs",
        "check": check_trailing_whitespace,
        "fixer": strip_trailing_whitespace,
    },
    {
        "rule_id": "function-length",
        "name": "Function Length",
        "severity": "warn",
        "enabled": False,
        "category": "code-style",
        "description": "JavaScript/TypeScript functions must stay short",
        "config": {"maxLines": DEFAULT_MAX_FUNCTION_LINES},
        "check": check_function_length,
    },
]


def register_builtin_rules(registry: RuleRegistry) -> RuleRegistry:
    """Register (or reset) every built-in rule on ``registry``."""
    for definition in BUILTIN_RULES:
        registry.register(**definition)
    return registry


def create_default_registry() -> RuleRegistry:
    """New, isolated registry holding the built-in rules."""
    return register_builtin_rules(RuleRegistry())
