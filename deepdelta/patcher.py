"""Applying and reverting change records against a mutable target."""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any, Callable, Optional

from .differ import Differ
from .models import UNDEFINED, Change, ChangeKind
from .utils import get_member, has_member, is_index, render_path

_log = logging.getLogger(__name__)


def _is_absent(value: Any) -> bool:
    return value is None or value is UNDEFINED


def _set_member(container: Any, key: Any, value: Any):
    """Assign ``container[key]``, padding lists with UNDEFINED holes."""
    if isinstance(container, list):
        if not is_index(key) or key < 0:
            _log.debug("Cannot assign list position %r", key)
            return
        while len(container) <= key:
            container.append(UNDEFINED)
        container[key] = value
    elif isinstance(container, MutableMapping):
        container[key] = value
    else:
        _log.debug("Cannot assign %r on a %s", key, type(container).__name__)


def _remove_member(container: Any, key: Any):
    """Remove ``container[key]``; list elements after it shift down."""
    if isinstance(container, list):
        if has_member(container, key):
            del container[key]
    elif isinstance(container, MutableMapping):
        container.pop(key, None)
    else:
        _log.debug("Cannot remove %r from a %s", key, type(container).__name__)


def _descend(target: Any, path: tuple, create_lists: bool) -> Any:
    """
    Walk ``target`` along all but the last segment of ``path``.

    Missing intermediate nodes are created: a list when the next segment is
    an index and ``create_lists`` is set, a dict otherwise. Existing nodes
    are never replaced.
    """
    it = target
    for position, key in enumerate(path[:-1]):
        child = get_member(it, key)
        if child is UNDEFINED:
            child = [] if create_lists and is_index(path[position + 1]) else {}
            _set_member(it, key, child)
        it = child
    return it


def _walk(container: Any, path: tuple) -> Any:
    """Follow all but the last segment of ``path`` without creating nodes."""
    it = container
    for key in path[:-1]:
        it = get_member(it, key)
    return it


def apply_array_change(arr: Any, index: int, change: Change) -> Any:
    """
    Apply ``change`` to the element of ``arr`` at ``index``.

    When ``change`` carries its own path the change is applied inside the
    element at ``index``; otherwise it applies to the position itself, and a
    deletion closes the gap.

    Returns:
        ``arr``
    """
    if change.path:
        it = _walk(get_member(arr, index), change.path)
        last = change.path[-1]

        if change.kind == ChangeKind.ARRAY:
            apply_array_change(get_member(it, last), change.index, change.item)
        elif change.kind == ChangeKind.DELETED:
            _remove_member(it, last)
        elif change.kind in (ChangeKind.EDITED, ChangeKind.NEW):
            _set_member(it, last, change.new_value)
    else:
        if change.kind == ChangeKind.ARRAY:
            apply_array_change(get_member(arr, index), change.index, change.item)
        elif change.kind == ChangeKind.DELETED:
            _remove_member(arr, index)
        elif change.kind in (ChangeKind.EDITED, ChangeKind.NEW):
            _set_member(arr, index, change.new_value)

    return arr


def apply_change(target: Any, source: Any, change: Optional[Change] = None):
    """
    Apply a single change to ``target`` in place.

    Accepts either ``apply_change(target, change)`` or
    ``apply_change(target, source, change)``; ``source`` is not consulted.
    Does nothing when ``target`` is absent or the change is not recognized.
    """
    if change is None and isinstance(source, Change):
        change = source

    if _is_absent(target) or not isinstance(change, Change):
        _log.debug("Skipping apply: target=%r change=%r", type(target).__name__, change)
        return

    path = change.path or ()
    it = _descend(target, path, create_lists=True)

    if change.kind == ChangeKind.ARRAY:
        if path:
            arr = get_member(it, path[-1])
            if arr is UNDEFINED:
                arr = []
                _set_member(it, path[-1], arr)
        else:
            arr = it
        apply_array_change(arr, change.index, change.item)
    elif not path:
        _log.debug("Skipping apply of %s at the root", change.kind.name)
        return
    elif change.kind == ChangeKind.DELETED:
        _remove_member(it, path[-1])
    elif change.kind in (ChangeKind.EDITED, ChangeKind.NEW):
        _set_member(it, path[-1], change.new_value)
    else:
        return

    if _log.isEnabledFor(logging.DEBUG):
        _log.debug("Applied %s at %s", change.kind.name, render_path(change.path))


def revert_array_change(arr: Any, index: int, change: Change) -> Any:
    """
    Undo ``change`` on the element of ``arr`` at ``index``.

    Returns:
        ``arr``
    """
    if change.path:
        it = _walk(get_member(arr, index), change.path)
        last = change.path[-1]

        if change.kind == ChangeKind.ARRAY:
            revert_array_change(get_member(it, last), change.index, change.item)
        elif change.kind in (ChangeKind.DELETED, ChangeKind.EDITED):
            _set_member(it, last, change.old_value)
        elif change.kind == ChangeKind.NEW:
            _remove_member(it, last)
    else:
        if change.kind == ChangeKind.ARRAY:
            revert_array_change(get_member(arr, index), change.index, change.item)
        elif change.kind in (ChangeKind.DELETED, ChangeKind.EDITED):
            _set_member(arr, index, change.old_value)
        elif change.kind == ChangeKind.NEW:
            _remove_member(arr, index)

    return arr


def revert_change(target: Any, source: Any, change: Change):
    """
    Undo a single change previously applied to ``target``.

    New keys are removed, deleted and edited values are restored. Both
    ``target`` and ``source`` must be present, otherwise nothing happens.
    """
    if _is_absent(target) or _is_absent(source) or not isinstance(change, Change):
        _log.debug("Skipping revert: change=%r", change)
        return

    path = change.path or ()
    it = _descend(target, path, create_lists=False)

    if change.kind == ChangeKind.ARRAY:
        arr = get_member(it, path[-1]) if path else it
        revert_array_change(arr, change.index, change.item)
    elif not path:
        _log.debug("Skipping revert of %s at the root", change.kind.name)
        return
    elif change.kind in (ChangeKind.DELETED, ChangeKind.EDITED):
        _set_member(it, path[-1], change.old_value)
    elif change.kind == ChangeKind.NEW:
        _remove_member(it, path[-1])
    else:
        return

    if _log.isEnabledFor(logging.DEBUG):
        _log.debug("Reverted %s at %s", change.kind.name, render_path(change.path))


def apply_diff(
    target: Any,
    source: Any,
    filter: Optional[Callable[[Any, Any, Change], bool]] = None
):
    """
    Converge ``target`` towards ``source`` in place.

    Every change found between ``target`` and ``source`` is applied to
    ``target``, unless ``filter(target, source, change)`` returns false.
    """
    if _is_absent(target) or _is_absent(source):
        return

    def on_change(change: Change):
        if not filter or filter(target, source, change):
            apply_change(target, source, change)

    for change in Differ().diff(target, source):
        on_change(change)
