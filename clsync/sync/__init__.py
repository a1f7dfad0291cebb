# clsync Sync Module
# Items, scopes, local stores and the operations over them

from clsync.sync.descriptor import RepositoryDescriptor, build_descriptor, render_readme
from clsync.sync.home import ClsyncHome
from clsync.sync.item import Item, ItemType, ScanResult, scan_items, scan_root
from clsync.sync.journal import MoveEntry, MoveJournal
from clsync.sync.manifest import Manifest, ManifestStore, RepoEntry
from clsync.sync.mover import MoveResult, ScopeMover, suggest_unique_name
from clsync.sync.scope import Scope, ScopeKind

__all__ = [
    # Item
    "Item",
    "ItemType",
    "ScanResult",
    "scan_items",
    "scan_root",
    # Scope
    "Scope",
    "ScopeKind",
    # Stores
    "ClsyncHome",
    "Manifest",
    "ManifestStore",
    "RepoEntry",
    "MoveEntry",
    "MoveJournal",
    # Descriptor
    "RepositoryDescriptor",
    "build_descriptor",
    "render_readme",
    # Mover
    "MoveResult",
    "ScopeMover",
    "suggest_unique_name",
    # Staging and engine
    "StagingArea",
    "StageResult",
    "ClsyncEngine",
]


def __getattr__(name: str):
    """Lazy import, staging and the engine depend on clsync.remote."""
    if name in ("StagingArea", "StageResult", "ExportResult"):
        from clsync.sync import staging

        return getattr(staging, name)
    if name in ("ClsyncEngine", "EngineStatus"):
        from clsync.sync import engine

        return getattr(engine, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
