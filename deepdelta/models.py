"""Data models for the deepdelta engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Optional

from .exceptions import ChangeFormatError


class _Undefined:
    """Marker for a value that does not exist (as opposed to ``None``)."""

    _instance: Optional[_Undefined] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class ChangeKind(Enum):
    NEW = "N"
    DELETED = "D"
    EDITED = "E"
    ARRAY = "A"


def _normalize_path(path: Any) -> Optional[tuple]:
    if path is None or path is UNDEFINED:
        return None
    path = tuple(path)
    return path or None


class Change:
    """
    Base class of the change records produced by a diff.

    Every record carries a ``kind`` and a ``path``. The path is ``None`` when
    the change concerns the compared root itself, never an empty tuple.
    """

    kind: ClassVar[ChangeKind]
    path: Optional[tuple]

    def __post_init__(self):
        object.__setattr__(self, "path", _normalize_path(self.path))

    def to_dict(self) -> dict:
        result: dict = {"kind": self.kind.value}
        if self.path is not None:
            result["path"] = list(self.path)
        return result

    @staticmethod
    def from_dict(data: dict) -> Change:
        """
        Rebuild a change record from its ``to_dict`` form.

        Raises:
            ChangeFormatError: if the kind is unknown or a field is missing
        """
        if not isinstance(data, dict):
            raise ChangeFormatError("Change must be an object", data)

        try:
            kind = ChangeKind(data.get("kind"))
        except ValueError:
            raise ChangeFormatError(f"Unknown change kind: {data.get('kind')!r}", data)

        path = data.get("path")
        try:
            if kind == ChangeKind.NEW:
                return NewChange(path, data["rhs"])
            if kind == ChangeKind.DELETED:
                return DeletedChange(path, data["lhs"])
            if kind == ChangeKind.EDITED:
                return EditedChange(path, data["lhs"], data["rhs"])
            return ArrayChange(path, data["index"], Change.from_dict(data["item"]))
        except KeyError as e:
            raise ChangeFormatError(f"Change of kind '{kind.value}' is missing field {e}", data)


@dataclass(frozen=True)
class NewChange(Change):
    """A key or index present only on the right side."""
    path: Optional[tuple]
    new_value: Any

    kind: ClassVar[ChangeKind] = ChangeKind.NEW

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["rhs"] = self.new_value
        return result


@dataclass(frozen=True)
class DeletedChange(Change):
    """A key or index present only on the left side."""
    path: Optional[tuple]
    old_value: Any

    kind: ClassVar[ChangeKind] = ChangeKind.DELETED

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["lhs"] = self.old_value
        return result


@dataclass(frozen=True)
class EditedChange(Change):
    """Same key or index on both sides, holding different values."""
    path: Optional[tuple]
    old_value: Any
    new_value: Any

    kind: ClassVar[ChangeKind] = ChangeKind.EDITED

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["lhs"] = self.old_value
        result["rhs"] = self.new_value
        return result


@dataclass(frozen=True)
class ArrayChange(Change):
    """
    A change inside a sequence at ``index``.

    Only emitted for indices past the end of the shorter sequence; ``item``
    is then a path-less NewChange or DeletedChange for that element.
    """
    path: Optional[tuple]
    index: int
    item: Change

    kind: ClassVar[ChangeKind] = ChangeKind.ARRAY

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["index"] = self.index
        result["item"] = self.item.to_dict()
        return result


@dataclass
class DiffFilter:
    """
    Hooks consulted before descending into a key.

    ``prefilter(path, key)`` returning true skips the key entirely.
    ``normalize(path, key, lhs, rhs)`` may return a replacement
    ``(lhs, rhs)`` pair; a falsy return leaves the values alone.
    """
    prefilter: Optional[Callable[[list, Any], bool]] = None
    normalize: Optional[Callable[[list, Any, Any, Any], Any]] = None


@dataclass
class EngineConfig:
    """Global configuration for the diff engine."""
    order_independent: bool = False
    max_depth: Optional[int] = None
    log_level: Optional[LogLevel] = None
