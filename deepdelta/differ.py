"""Recursive structural comparison for the deepdelta engine."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional

from .exceptions import MaxDepthExceededError, ValidationError
from .models import (
    UNDEFINED,
    ArrayChange,
    Change,
    DeletedChange,
    DiffFilter,
    EditedChange,
    NewChange,
)
from .utils import (
    has_member,
    is_container,
    is_nan,
    order_independent_hash,
    pattern_source,
    real_type_of,
    render_path,
)

_log = logging.getLogger(__name__)


def resolve_filter(prefilter: Any) -> tuple[Optional[Callable], Optional[Callable]]:
    """
    Split a filter argument into its (prefilter, normalize) hooks.

    Accepts None, a bare predicate, a DiffFilter, or a mapping with
    'prefilter' and/or 'normalize' entries.
    """
    if prefilter is None:
        return None, None
    if isinstance(prefilter, DiffFilter):
        return prefilter.prefilter, prefilter.normalize
    if isinstance(prefilter, Mapping):
        return prefilter.get("prefilter"), prefilter.get("normalize")
    if callable(prefilter):
        return prefilter, None
    raise ValidationError(
        "prefilter must be a callable, a DiffFilter or a mapping",
        {"type": type(prefilter).__name__}
    )


class Differ:
    """
    Performs a depth-first comparison of two values.

    Changes are appended to ``changes`` in emission order:
    - keys present on one side only become NewChange / DeletedChange
    - differently classified values and differing dates become EditedChange
    - lists and mappings are recursed into, guarded by an identity stack
      so that cyclic structures terminate
    - list elements past the end of the shorter list are wrapped in an
      ArrayChange; overlapping indices produce plain path-qualified changes
    """

    def __init__(
        self,
        prefilter: Any = None,
        order_independent: bool = False,
        max_depth: Optional[int] = None,
        changes: Optional[list[Change]] = None,
        stack: Optional[list[tuple[Any, Any]]] = None
    ):
        self.prefilter, self.normalize = resolve_filter(prefilter)
        self.order_independent = order_independent
        self.max_depth = max_depth
        self.changes: list[Change] = changes if changes is not None else []
        self.stack: list[tuple[Any, Any]] = stack if stack is not None else []

    def diff(
        self,
        lhs: Any,
        rhs: Any,
        path: Optional[list] = None,
        key: Any = UNDEFINED
    ) -> list[Change]:
        """
        Compare ``lhs`` against ``rhs`` and record the differences.

        Args:
            lhs: The left/original value
            rhs: The right/updated value
            path: Keys leading to ``lhs``/``rhs`` from the compared roots
            key: The key under which the values sit in their parents

        Returns:
            The accumulated change list
        """
        current_path = list(path or ())

        if key is not UNDEFINED:
            if self.prefilter and self.prefilter(tuple(current_path), key):
                return self.changes

            if self.normalize:
                alt = self.normalize(tuple(current_path), key, lhs, rhs)
                if alt:
                    lhs, rhs = alt[0], alt[1]

            current_path.append(key)

        ltype = real_type_of(lhs)
        rtype = real_type_of(rhs)

        if ltype == "regexp" and rtype == "regexp":
            lhs = pattern_source(lhs)
            rhs = pattern_source(rhs)
            ltype = rtype = "string"

        ldefined = lhs is not UNDEFINED or self._parent_has(0, key)
        rdefined = rhs is not UNDEFINED or self._parent_has(1, key)

        if not ldefined and rdefined:
            self.changes.append(NewChange(current_path, rhs))
        elif not rdefined and ldefined:
            self.changes.append(DeletedChange(current_path, lhs))
        elif ltype != rtype:
            self.changes.append(EditedChange(current_path, lhs, rhs))
        elif ltype == "date" and lhs != rhs:
            self.changes.append(EditedChange(current_path, lhs, rhs))
        elif is_container(lhs) and is_container(rhs):
            self._diff_containers(lhs, rhs, current_path)
        elif lhs != rhs and not (is_nan(lhs) and is_nan(rhs)):
            self.changes.append(EditedChange(current_path, lhs, rhs))

        return self.changes

    def _parent_has(self, side: int, key: Any) -> bool:
        """Ask the enclosing container whether ``key`` is an own member."""
        if not self.stack or key is UNDEFINED:
            return False
        return has_member(self.stack[-1][side], key)

    def _diff_containers(self, lhs: Any, rhs: Any, path: list):
        """Recurse into two lists or two mappings unless a cycle is found."""
        for frame_lhs, _ in reversed(self.stack):
            if frame_lhs is lhs:
                if lhs is not rhs:
                    if _log.isEnabledFor(logging.DEBUG):
                        _log.debug("Repeated reference at %s; recording a terminal edit",
                                   render_path(tuple(path)))
                    self.changes.append(EditedChange(path, lhs, rhs))
                return

        if self.max_depth is not None and len(self.stack) >= self.max_depth:
            raise MaxDepthExceededError(self.max_depth, render_path(tuple(path)))

        self.stack.append((lhs, rhs))
        try:
            if isinstance(lhs, list):
                self._diff_arrays(lhs, rhs, path)
            else:
                self._diff_objects(lhs, rhs, path)
        finally:
            self.stack.pop()

    def _diff_arrays(self, lhs: list, rhs: list, path: list):
        """Compare two lists, tail elements first, then overlapping indices."""
        if self.order_independent:
            if _log.isEnabledFor(logging.DEBUG):
                _log.debug("Sorting %d/%d elements by structural hash at %s",
                           len(lhs), len(rhs), render_path(tuple(path)))
            lhs = sorted(lhs, key=order_independent_hash)
            rhs = sorted(rhs, key=order_independent_hash)

        i = len(rhs) - 1
        j = len(lhs) - 1

        while i > j:
            self.changes.append(ArrayChange(path, i, NewChange(None, rhs[i])))
            i -= 1

        while j > i:
            self.changes.append(ArrayChange(path, j, DeletedChange(None, lhs[j])))
            j -= 1

        while i >= 0:
            self.diff(lhs[i], rhs[i], path, i)
            i -= 1

    def _diff_objects(self, lhs: Mapping, rhs: Mapping, path: list):
        """Compare two mappings in the left side's key order."""
        consumed = set()

        for key in list(lhs.keys()):
            if has_member(rhs, key):
                self.diff(lhs[key], rhs[key], path, key)
                consumed.add(key)
            else:
                self.diff(lhs[key], UNDEFINED, path, key)

        for key in list(rhs.keys()):
            if key not in consumed:
                self.diff(UNDEFINED, rhs[key], path, key)
