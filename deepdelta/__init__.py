"""
deepdelta - Structural diff and patch for nested data

Computes an ordered list of typed change records between two arbitrarily
nested values (mappings, lists, dates, patterns, scalars) and applies or
reverts those records against a mutable target.
"""

from .engine import (
    DeltaEngine,
    deep_diff,
    order_independent_deep_diff,
    observable_diff,
    accumulate_diff,
    accumulate_order_independent_diff,
    diff,
)
from .patcher import (
    apply_change,
    apply_array_change,
    revert_change,
    revert_array_change,
    apply_diff,
)
from .models import (
    UNDEFINED,
    Change,
    ChangeKind,
    NewChange,
    DeletedChange,
    EditedChange,
    ArrayChange,
    DiffFilter,
    EngineConfig,
    LogLevel,
)
from .utils import (
    real_type_of,
    hash_string,
    order_independent_hash,
)
from .jsonpath_utils import ignore_paths

__version__ = "1.0.0"
__all__ = [
    # Diff
    "DeltaEngine",
    "deep_diff",
    "order_independent_deep_diff",
    "observable_diff",
    "accumulate_diff",
    "accumulate_order_independent_diff",
    "diff",
    # Patch
    "apply_change",
    "apply_array_change",
    "revert_change",
    "revert_array_change",
    "apply_diff",
    # Change model
    "UNDEFINED",
    "Change",
    "ChangeKind",
    "NewChange",
    "DeletedChange",
    "EditedChange",
    "ArrayChange",
    # Configuration
    "DiffFilter",
    "EngineConfig",
    "LogLevel",
    "ignore_paths",
    # Structural helpers
    "real_type_of",
    "hash_string",
    "order_independent_hash",
]
