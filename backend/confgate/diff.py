"""
Structural diff between two configuration documents.

Nested objects are walked key by key; every other value (including arrays)
is compared as a whole leaf.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List


ADDED = "added"
REMOVED = "removed"
CHANGED = "changed"

_MISSING = object()


@dataclass(frozen=True)
class DiffEntry:
    """
    One leaf-level difference.

    Attributes:
        path: Dotted key path ("root" for a whole-document change).
        type: added | removed | changed.
        old: Previous value (changed/removed).
        new: New value (changed/added).
    """

    path: str
    type: str
    old: Any = None
    new: Any = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"path": self.path, "type": self.type}
        if self.type in (CHANGED, REMOVED):
            data["from"] = self.old
        if self.type in (CHANGED, ADDED):
            data["to"] = self.new
        return data

    def __str__(self) -> str:
        if self.type == ADDED:
            return f"+ {self.path}: {self.new!r}"
        if self.type == REMOVED:
            return f"- {self.path}: {self.old!r}"
        return f"~ {self.path}: {self.old!r} -> {self.new!r}"


def diff_documents(left: Any, right: Any) -> List[DiffEntry]:
    """
    Compute the differences turning ``left`` into ``right``.

    Args:
        left: Original document.
        right: Updated document.

    Returns:
        Entries in key order of ``left`` followed by keys only in ``right``.
        Empty when the documents are equal.
    """
    changes: List[DiffEntry] = []
    _walk(left, right, "", changes)
    return changes


def _walk(left: Any, right: Any, prefix: str, changes: List[DiffEntry]) -> None:
    if isinstance(left, dict) and isinstance(right, dict):
        for key in list(left) + [k for k in right if k not in left]:
            path = f"{prefix}.{key}" if prefix else str(key)
            old = left.get(key, _MISSING)
            new = right.get(key, _MISSING)
            if old is _MISSING:
                changes.append(DiffEntry(path=path, type=ADDED, new=new))
            elif new is _MISSING:
                changes.append(DiffEntry(path=path, type=REMOVED, old=old))
            else:
                _walk(old, new, path, changes)
        return

    if not _equal(left, right):
        changes.append(DiffEntry(path=prefix or "root", type=CHANGED, old=left, new=right))


def _equal(left: Any, right: Any) -> bool:
    # JSON semantics: true != 1
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(_equal(left[k], right[k]) for k in left)
    return left == right
