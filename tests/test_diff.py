"""
Tests for structural document diffs.
"""

import pytest

from backend.confgate.diff import DiffEntry, diff_documents


class TestDiffDocuments:
    """Tests for diff_documents."""

    def test_identical_documents(self):
        """Test a document diffed with itself is empty."""
        document = {"version": "1.0.0", "agents": {"a": {"role": "x"}}, "skills": ["a/b"]}
        assert diff_documents(document, document) == []

    def test_added_removed_changed(self):
        """Test the three change types."""
        left = {"version": "1.0.0", "model": "a", "old": True}
        right = {"version": "1.0.1", "model": "a", "new": 1}
        changes = diff_documents(left, right)
        assert changes == [
            DiffEntry(path="version", type="changed", old="1.0.0", new="1.0.1"),
            DiffEntry(path="old", type="removed", old=True),
            DiffEntry(path="new", type="added", new=1),
        ]

    def test_nested_paths(self):
        """Test dotted paths through nested objects."""
        left = {"agents": {"conductor": {"role": "coordination"}}}
        right = {"agents": {"conductor": {"role": "lead", "model": "m"}}}
        changes = diff_documents(left, right)
        assert [(c.path, c.type) for c in changes] == [
            ("agents.conductor.role", "changed"),
            ("agents.conductor.model", "added"),
        ]

    def test_arrays_are_leaves(self):
        """Test arrays are compared whole."""
        changes = diff_documents({"skills": ["a/b"]}, {"skills": ["a/b", "c/d"]})
        assert changes == [
            DiffEntry(path="skills", type="changed", old=["a/b"], new=["a/b", "c/d"]),
        ]

    def test_bool_is_not_int(self):
        """Test JSON value semantics."""
        assert diff_documents({"a": True}, {"a": 1})[0].type == "changed"
        assert diff_documents({"a": [1]}, {"a": [1.0]}) == []

    def test_object_replaced_by_scalar(self):
        """Test a type change is one entry."""
        changes = diff_documents({"hooks": {"preTask": []}}, {"hooks": None})
        assert changes == [
            DiffEntry(path="hooks", type="changed", old={"preTask": []}, new=None),
        ]

    @pytest.mark.parametrize("left,right", [([1], [2]), ("a", "b"), ({"a": 1}, [1])])
    def test_root_change(self, left, right):
        """Test non-object documents compare at the root."""
        changes = diff_documents(left, right)
        assert len(changes) == 1
        assert changes[0].path == "root"


class TestDiffEntry:
    """Tests for DiffEntry rendering."""

    def test_to_dict(self):
        """Test only the relevant sides are serialized."""
        assert DiffEntry("a", "added", new=1).to_dict() == {"path": "a", "type": "added", "to": 1}
        assert DiffEntry("a", "removed", old=1).to_dict() == {"path": "a", "type": "removed", "from": 1}
        assert DiffEntry("a", "changed", 1, 2).to_dict() == {
            "path": "a", "type": "changed", "from": 1, "to": 2,
        }

    def test_str(self):
        """Test the one-line rendering."""
        assert str(DiffEntry("a", "added", new=1)) == "+ a: 1"
        assert str(DiffEntry("a", "removed", old="x")) == "- a: 'x'"
        assert str(DiffEntry("a", "changed", 1, 2)) == "~ a: 1 -> 2"
