"""Tests for the document runner, path filters and the command line."""

import json

import pytest
import yaml

from deepdelta import ChangeKind, EngineConfig, diff, ignore_paths
from deepdelta.exceptions import DocumentLoadError, RuleError, ValidationError
from deepdelta.jsonpath_utils import JSONPathMatcher
from deepdelta.runner import (
    DeltaRunner,
    diff_files,
    load_changes,
    load_document,
    patch_document,
    to_json,
)
from run_deepdelta import main


BEFORE = {
    "name": "svc",
    "replicas": 2,
    "ports": [80, 443],
    "labels": {"tier": "web"},
}

AFTER = {
    "name": "svc",
    "replicas": 3,
    "ports": [80],
    "labels": {"tier": "web", "env": "prod"},
}


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


class TestJSONPathMatcher:
    """Test JSONPath pattern matching."""

    def test_exact_match(self):
        assert JSONPathMatcher.matches_pattern("$.meta.etag", "$.meta.etag")
        assert not JSONPathMatcher.matches_pattern("$.meta.name", "$.meta.etag")

    def test_recursive_descent(self):
        assert JSONPathMatcher.matches_pattern("$.etag", "$..etag")
        assert JSONPathMatcher.matches_pattern("$.items[3].meta.etag", "$..etag")
        assert not JSONPathMatcher.matches_pattern("$.items[3].meta.etags", "$..etag")

    def test_wildcards(self):
        assert JSONPathMatcher.matches_pattern("$.items[0].id", "$.items[*].id")
        assert JSONPathMatcher.matches_pattern("$.items[12].id", "$.items[*].id")
        assert not JSONPathMatcher.matches_pattern("$.items[0].name", "$.items[*].id")
        assert JSONPathMatcher.matches_pattern("$.spec.replicas", "$.spec.*")

    def test_render(self):
        assert JSONPathMatcher.render(None) == "$"
        assert JSONPathMatcher.render(["items", 0, "b c"]) == "$.items[0]['b c']"

    def test_find_values(self):
        data = {"spec": {"a": 1}, "items": [{"id": 1}, {"id": 2}]}

        assert JSONPathMatcher.find_values(data, "$.spec") == [{"a": 1}]
        assert JSONPathMatcher.find_values(data, "$.items[*].id") == [1, 2]

    def test_invalid_expression(self):
        with pytest.raises(ValueError):
            JSONPathMatcher.compile("$.foo[")


class TestIgnorePaths:
    """Test prefilters built from JSONPath patterns."""

    def test_recursive_pattern(self):
        """Test that matching keys are skipped at any depth."""
        prefilter = ignore_paths(["$..etag"])
        lhs = {"etag": "1", "items": [{"etag": "a", "v": 1}]}
        rhs = {"etag": "2", "items": [{"etag": "b", "v": 2}]}

        changes = diff(lhs, rhs, prefilter)

        assert len(changes) == 1
        assert changes[0].path == ("items", 0, "v")

    def test_wildcard_pattern(self):
        """Test that list positions match '[*]'."""
        prefilter = ignore_paths(["$.items[*].id"])

        assert prefilter(("items", 4), "id")
        assert not prefilter(("items", 4), "name")
        assert not prefilter((), "id")

    def test_invalid_pattern(self):
        """Test that an unparsable pattern is rejected up front."""
        with pytest.raises(RuleError):
            ignore_paths(["$.foo["])


class TestDocuments:
    """Test loading documents and change lists."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "doc.yaml"
        path.write_text("a: 1\nb:\n  - 1\n  - 2\n")

        assert load_document(path) == {"a": 1, "b": [1, 2]}

    def test_load_json(self, tmp_path):
        path = tmp_path / "doc.json"
        path.write_text(json.dumps({"a": [1, {"b": None}]}))

        assert load_document(path) == {"a": [1, {"b": None}]}

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentLoadError):
            load_document(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("a: [1, 2\n")

        with pytest.raises(DocumentLoadError):
            load_document(path)

    def test_load_bare_change_list(self, tmp_path):
        path = tmp_path / "changes.json"
        path.write_text(json.dumps([{"kind": "N", "path": ["a"], "rhs": 1}]))

        changes = load_changes(path)

        assert len(changes) == 1
        assert changes[0].kind == ChangeKind.NEW

    def test_malformed_change_list(self, tmp_path):
        path = tmp_path / "changes.json"
        path.write_text(json.dumps({"changes": [{"kind": "Q"}]}))

        with pytest.raises(DocumentLoadError):
            load_changes(path)


class TestDeltaRunner:
    """Test file comparison."""

    def test_report(self, tmp_path):
        """Test the report of two differing documents."""
        left = write_yaml(tmp_path / "before.yaml", BEFORE)
        right = write_yaml(tmp_path / "after.yaml", AFTER)

        report = diff_files(left, right)

        assert not report.is_match
        assert report.summary() == {
            "total": 3, "new": 1, "deleted": 0, "edited": 1, "array": 1
        }
        assert report.to_dict()["changes"][0] == {
            "kind": "E", "path": ["replicas"], "lhs": 2, "rhs": 3
        }

    def test_identical_documents(self, tmp_path):
        """Test that a document matches itself."""
        left = write_yaml(tmp_path / "before.yaml", BEFORE)

        report = diff_files(left, left)

        assert report.is_match
        assert report.changes == []

    def test_ignore(self, tmp_path):
        """Test ignore patterns."""
        left = write_yaml(tmp_path / "before.yaml", BEFORE)
        right = write_yaml(tmp_path / "after.yaml", AFTER)

        runner = DeltaRunner(left, right, ignore=["$.replicas", "$.ports", "$.labels.env"])

        assert runner.report().is_match

    def test_select(self, tmp_path):
        """Test comparing a selected sub-document."""
        left = write_yaml(tmp_path / "before.yaml", {"spec": BEFORE, "status": 1})
        right = write_yaml(tmp_path / "after.yaml", {"spec": BEFORE, "status": 2})

        assert DeltaRunner(left, right, select="$.spec").report().is_match
        assert not DeltaRunner(left, right).report().is_match

    def test_order_independent(self, tmp_path):
        """Test the order_independent engine setting through the runner."""
        left = write_yaml(tmp_path / "before.yaml", {"tags": ["a", "b", "c"]})
        right = write_yaml(tmp_path / "after.yaml", {"tags": ["c", "a", "b"]})

        config = EngineConfig(order_independent=True)

        assert diff_files(left, right, config).is_match
        assert not diff_files(left, right).is_match

    def test_patch_and_revert(self, tmp_path):
        """Test that a stored report patches forwards and backwards."""
        left = write_yaml(tmp_path / "before.yaml", BEFORE)
        right = write_yaml(tmp_path / "after.yaml", AFTER)
        changes = tmp_path / "changes.json"
        changes.write_text(to_json(diff_files(left, right).to_dict()))

        assert patch_document(left, changes) == AFTER
        assert patch_document(right, changes, revert=True) == BEFORE

    def test_order_independent_report_is_not_patchable(self, tmp_path):
        """Test that changes computed ignoring list order are refused."""
        left = write_yaml(tmp_path / "before.yaml", {"t": ["q", "p", "r"]})
        right = write_yaml(tmp_path / "after.yaml", {"t": ["p", "r"]})
        changes = tmp_path / "changes.json"

        report = diff_files(left, right, EngineConfig(order_independent=True))
        assert report.to_dict()["order_independent"] is True
        changes.write_text(to_json(report.to_dict()))

        with pytest.raises(ValidationError):
            patch_document(left, changes)
        assert load_document(left) == {"t": ["q", "p", "r"]}


class TestCommandLine:
    """Test the run_deepdelta entry point."""

    def test_diff_exit_codes(self, tmp_path):
        left = write_yaml(tmp_path / "before.yaml", BEFORE)
        right = write_yaml(tmp_path / "after.yaml", AFTER)

        assert main(["diff", str(left), str(left), "-q"]) == 0
        assert main(["diff", str(left), str(right), "-q"]) == 1

    def test_diff_then_patch(self, tmp_path):
        left = write_yaml(tmp_path / "before.yaml", BEFORE)
        right = write_yaml(tmp_path / "after.yaml", AFTER)
        report = tmp_path / "report.json"
        patched = tmp_path / "patched.json"

        assert main(["diff", str(left), str(right), "-o", str(report), "-q"]) == 1
        assert json.loads(report.read_text())["is_match"] is False

        assert main(["patch", str(left), str(report), "-o", str(patched)]) == 0
        assert json.loads(patched.read_text()) == AFTER

    def test_patch_refuses_order_independent_report(self, tmp_path, capsys):
        left = write_yaml(tmp_path / "l.yaml", {"t": ["q", "p", "r"]})
        right = write_yaml(tmp_path / "r.yaml", {"t": ["p", "r"]})
        report = tmp_path / "report.json"
        patched = tmp_path / "patched.json"

        assert main(["diff", str(left), str(right), "--order-independent",
                     "-o", str(report), "-q"]) == 1
        assert main(["patch", str(left), str(report), "-o", str(patched)]) == 2
        assert "ignoring list order" in capsys.readouterr().err
        assert not patched.exists()

    def test_error_exit_code(self, tmp_path, capsys):
        right = write_yaml(tmp_path / "after.yaml", AFTER)

        assert main(["diff", str(tmp_path / "missing.yaml"), str(right), "-q"]) == 2
        assert "Cannot load document" in capsys.readouterr().err
