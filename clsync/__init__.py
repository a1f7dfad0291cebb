"""clsync - settings sync for Claude Code.

Stages, pushes, pulls and moves skills, agents and output-styles between
the user root (~/.claude/), project roots and GitHub repositories.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "ClsyncEngine",
    "ClsyncConfig",
    "ClsyncError",
    "Item",
    "ItemType",
    "Scope",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name == "ClsyncEngine":
        from clsync.sync.engine import ClsyncEngine

        return ClsyncEngine
    if name == "ClsyncConfig":
        from clsync.config.schema import ClsyncConfig

        return ClsyncConfig
    if name == "ClsyncError":
        from clsync.errors import ClsyncError

        return ClsyncError
    if name in ("Item", "ItemType"):
        from clsync.sync import item

        return getattr(item, name)
    if name == "Scope":
        from clsync.sync.scope import Scope

        return Scope
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
