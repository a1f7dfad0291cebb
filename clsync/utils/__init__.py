# clsync Utilities Module
# Helper functions for path handling

from clsync.utils.paths import (
    atomic_write,
    ensure_dir,
    expand_path,
    get_relative_path,
    is_within,
    safe_copy,
    safe_delete,
)

__all__ = [
    "expand_path",
    "safe_copy",
    "safe_delete",
    "ensure_dir",
    "atomic_write",
    "get_relative_path",
    "is_within",
]
