"""File-level diff and patch runner: loads YAML/JSON documents and compares them."""

from __future__ import annotations

import json
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Optional

import yaml

from .engine import DeltaEngine
from .exceptions import ChangeFormatError, DocumentLoadError, RuleError, ValidationError
from .jsonpath_utils import JSONPathMatcher, ignore_paths
from .models import UNDEFINED, Change, ChangeKind, EngineConfig
from .utils import pattern_source

_log = logging.getLogger(__name__)


def load_document(path: str | Path) -> Any:
    """
    Load a YAML or JSON document (JSON is valid YAML).

    Raises:
        DocumentLoadError: if the file is missing or cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise DocumentLoadError(str(path), "file not found")

    with open(path, 'r') as f:
        content = f.read()

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise DocumentLoadError(str(path), f"failed to parse: {e}")


def json_default(value: Any) -> Any:
    """``json.dump`` fallback for values YAML can produce but JSON cannot."""
    if value is UNDEFINED:
        return None
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, re.Pattern):
        return pattern_source(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def to_json(data: Any) -> str:
    """Serialize a report or change list for output."""
    return json.dumps(data, indent=2, default=json_default)


def load_changes(path: str | Path) -> list[Change]:
    """
    Load a change list written by ``DeltaReport.to_dict`` or a bare list.

    Reports computed with order-independent list comparison are refused:
    their list indices address the hash-sorted views, not the document.

    Raises:
        DocumentLoadError: if the file cannot be read or decoded
        ValidationError: if the report ignored list order
    """
    data = load_document(path)
    if isinstance(data, dict):
        if data.get("order_independent"):
            raise ValidationError(
                f"Changes in '{path}' were computed ignoring list order and cannot be applied",
                {"path": str(path)}
            )
        data = data.get("changes")
    if data is None:
        return []
    if not isinstance(data, list):
        raise DocumentLoadError(str(path), "expected a list of changes")

    try:
        return [Change.from_dict(item) for item in data]
    except ChangeFormatError as e:
        raise DocumentLoadError(str(path), e.message)


@dataclass
class DeltaReport:
    """Result of comparing two documents."""
    left: str
    right: str
    changes: list[Change] = field(default_factory=list)
    order_independent: bool = False

    @property
    def is_match(self) -> bool:
        return not self.changes

    def summary(self) -> dict:
        counts = Counter(change.kind for change in self.changes)
        return {
            "total": len(self.changes),
            "new": counts[ChangeKind.NEW],
            "deleted": counts[ChangeKind.DELETED],
            "edited": counts[ChangeKind.EDITED],
            "array": counts[ChangeKind.ARRAY],
        }

    def to_dict(self) -> dict:
        return {
            "left": self.left,
            "right": self.right,
            "is_match": self.is_match,
            "order_independent": self.order_independent,
            "summary": self.summary(),
            "changes": [c.to_dict() for c in self.changes],
        }

    def print_summary(self):
        summary = self.summary()
        print(f"{self.left} -> {self.right}: "
              f"{'no differences' if self.is_match else str(summary['total']) + ' change(s)'}")
        for change in self.changes:
            print(f"  [{change.kind.value}] {JSONPathMatcher.render(change.path)}")


class DeltaRunner:
    """
    Compares two YAML/JSON documents on disk.

    Usage:
        runner = DeltaRunner("before.yaml", "after.yaml", ignore=["$..etag"])
        report = runner.report()
        report.print_summary()
    """

    def __init__(
        self,
        left_path: str | Path,
        right_path: str | Path,
        engine_config: Optional[EngineConfig] = None,
        ignore: Optional[list[str]] = None,
        select: Optional[str] = None
    ):
        """
        Initialize the runner.

        Args:
            left_path: Path to the original document
            right_path: Path to the updated document
            engine_config: Optional engine configuration
            ignore: JSONPath patterns of keys to leave out of the comparison
            select: JSONPath expression picking the sub-document to compare
        """
        self.left_path = Path(left_path)
        self.right_path = Path(right_path)
        self.engine = DeltaEngine(engine_config)
        self.prefilter = ignore_paths(ignore) if ignore else None
        self.select = select
        self._left: Any = UNDEFINED
        self._right: Any = UNDEFINED

    @property
    def left(self) -> Any:
        if self._left is UNDEFINED:
            self._left = self._load(self.left_path)
        return self._left

    @property
    def right(self) -> Any:
        if self._right is UNDEFINED:
            self._right = self._load(self.right_path)
        return self._right

    def _load(self, path: Path) -> Any:
        document = load_document(path)
        if self.select:
            try:
                values = JSONPathMatcher.find_values(document, self.select)
            except ValueError as e:
                raise RuleError(self.select, str(e))
            document = values[0] if values else None
        return document

    def changes(self) -> list[Change]:
        return self.engine.observe(self.left, self.right, prefilter=self.prefilter)

    def report(self) -> DeltaReport:
        changes = self.changes()
        _log.info("Compared %s with %s: %d change(s)",
                  self.left_path, self.right_path, len(changes))
        return DeltaReport(
            str(self.left_path),
            str(self.right_path),
            changes,
            order_independent=self.engine.config.order_independent
        )


def diff_files(
    left_path: str | Path,
    right_path: str | Path,
    engine_config: Optional[EngineConfig] = None,
    ignore: Optional[list[str]] = None
) -> DeltaReport:
    """Compare two YAML/JSON files and return a DeltaReport."""
    return DeltaRunner(left_path, right_path, engine_config, ignore).report()


def patch_document(
    target_path: str | Path,
    changes_path: str | Path,
    revert: bool = False
) -> Any:
    """
    Apply (or revert) a stored change list to a document loaded from disk.

    The file itself is not modified.

    Returns:
        The patched document
    """
    document = load_document(target_path)
    changes = load_changes(changes_path)
    engine = DeltaEngine()

    if revert:
        engine.revert(document, document, changes)
    else:
        engine.apply(document, changes)

    _log.info("%s %d change(s) on %s",
              "Reverted" if revert else "Applied", len(changes), target_path)
    return document
