"""Main entry points of the deepdelta engine."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .differ import Differ
from .models import UNDEFINED, Change, EngineConfig, LogLevel
from .patcher import apply_change, revert_change

_log = logging.getLogger(__name__)

_LOG_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def deep_diff(
    lhs: Any,
    rhs: Any,
    changes: Optional[list[Change]] = None,
    prefilter: Any = None,
    path: Optional[list] = None,
    key: Any = UNDEFINED,
    stack: Optional[list] = None,
    order_independent: bool = False
) -> list[Change]:
    """
    Recursively find the differences between two values.

    Args:
        lhs: The left-hand side value
        rhs: The right-hand side value
        changes: List to accumulate changes into
        prefilter: Predicate ``(path, key) -> bool``, DiffFilter or mapping
        path: Path of ``lhs``/``rhs`` relative to the compared roots
        key: Key of ``lhs``/``rhs`` in their parents
        stack: Traversal stack of (lhs, rhs) frames being descended into
        order_independent: Compare lists irrespective of element order

    Returns:
        The change list (``changes`` when one was given)
    """
    differ = Differ(
        prefilter=prefilter,
        order_independent=order_independent,
        changes=changes,
        stack=stack
    )
    return differ.diff(lhs, rhs, path, key)


def order_independent_deep_diff(
    lhs: Any,
    rhs: Any,
    changes: Optional[list[Change]] = None,
    prefilter: Any = None,
    path: Optional[list] = None,
    key: Any = UNDEFINED,
    stack: Optional[list] = None
) -> list[Change]:
    """``deep_diff`` with order-independent list comparison."""
    return deep_diff(lhs, rhs, changes, prefilter, path, key, stack, True)


def observable_diff(
    lhs: Any,
    rhs: Any,
    observer: Optional[Callable[[Change], Any]] = None,
    prefilter: Any = None,
    order_independent: bool = False
) -> list[Change]:
    """
    Diff two values and notify ``observer`` once per change, in order.

    The observer is only called after the comparison has finished, so it
    may safely mutate either input.

    Returns:
        The full ordered change list
    """
    changes = deep_diff(lhs, rhs, prefilter=prefilter, order_independent=order_independent)

    if observer:
        for change in changes:
            observer(change)

    return changes


def _accumulate(lhs, rhs, prefilter, accum, order_independent):
    observer = None
    if accum is not None:
        def observer(difference):
            if difference:
                accum.append(difference)

    changes = observable_diff(lhs, rhs, observer, prefilter, order_independent)

    if accum is not None:
        return accum
    return changes if changes else None


def accumulate_diff(
    lhs: Any,
    rhs: Any,
    prefilter: Any = None,
    accum: Optional[list] = None
) -> Optional[list[Change]]:
    """
    Diff two values.

    Returns:
        ``accum`` with the changes appended when given; otherwise the
        change list, or None when the values do not differ
    """
    return _accumulate(lhs, rhs, prefilter, accum, False)


def accumulate_order_independent_diff(
    lhs: Any,
    rhs: Any,
    prefilter: Any = None,
    accum: Optional[list] = None
) -> Optional[list[Change]]:
    """Like ``accumulate_diff``, ignoring the order of list elements."""
    return _accumulate(lhs, rhs, prefilter, accum, True)


diff = accumulate_diff


class DeltaEngine:
    """
    Configured front end over the diff and patch operations.

    Usage:
        engine = DeltaEngine(EngineConfig(order_independent=True))
        changes = engine.diff(old, new)
        engine.apply(target, changes)
        engine.revert(target, new, changes)
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (uses defaults if not provided)
        """
        self.config = config or EngineConfig()
        if self.config.log_level is not None:
            logging.getLogger("deepdelta").setLevel(_LOG_LEVELS[self.config.log_level])

    def diff(self, lhs: Any, rhs: Any, prefilter: Any = None) -> Optional[list[Change]]:
        """Diff two values; None when they do not differ."""
        changes = self.observe(lhs, rhs, prefilter=prefilter)
        return changes if changes else None

    def observe(
        self,
        lhs: Any,
        rhs: Any,
        observer: Optional[Callable[[Change], Any]] = None,
        prefilter: Any = None
    ) -> list[Change]:
        """Diff two values, notifying ``observer`` per change."""
        differ = Differ(
            prefilter=prefilter,
            order_independent=self.config.order_independent,
            max_depth=self.config.max_depth
        )
        changes = differ.diff(lhs, rhs)
        _log.debug("Found %d change(s)", len(changes))

        if observer:
            for change in changes:
                observer(change)

        return changes

    def apply(self, target: Any, changes: Optional[list[Change]]):
        """Apply changes to ``target`` in emission order."""
        for change in changes or ():
            apply_change(target, change)

    def revert(self, target: Any, source: Any, changes: Optional[list[Change]]):
        """Undo changes previously applied to ``target``, last change first."""
        for change in reversed(changes or ()):
            revert_change(target, source, change)
