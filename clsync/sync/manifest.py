# clsync Manifest
# Repository-level bookkeeping persisted as manifest.json

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from clsync.utils.paths import atomic_write

MANIFEST_VERSION = "1.0.0"


def utc_now() -> str:
    """Current time as ISO-8601 UTC."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class RepoEntry:
    """Bookkeeping for one pulled repository."""

    url: str
    last_pulled: Optional[str] = None  # ISO format datetime
    items_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RepoEntry":
        """Create from dictionary."""
        return cls(
            url=str(data.get("url", "")),
            last_pulled=data.get("last_pulled"),
            items_count=int(data.get("items_count", 0) or 0),
        )


@dataclass
class Manifest:
    """Which repositories are cached locally and when they were pulled."""

    version: str = MANIFEST_VERSION
    repos: dict[str, RepoEntry] = field(default_factory=dict)
    last_updated: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "version": self.version,
            "repos": {slug: entry.to_dict() for slug, entry in self.repos.items()},
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Manifest":
        """Create from dictionary."""
        repos_data = data.get("repos") or {}
        if not isinstance(repos_data, dict):
            repos_data = {}
        repos = {
            str(slug): RepoEntry.from_dict(entry) for slug, entry in repos_data.items() if isinstance(entry, dict)
        }
        return cls(
            version=str(data.get("version", MANIFEST_VERSION)),
            repos=repos,
            last_updated=data.get("last_updated"),
        )


class ManifestStore:
    """
    Loads and saves the manifest file.

    Nothing is cached: every call reads or rewrites the whole file, so
    concurrent writers race and the last one wins.
    """

    def __init__(self, path: Path):
        """
        Initialize manifest store.

        Args:
            path: Location of manifest.json.
        """
        self.path = path

    def load(self) -> Manifest:
        """Load the manifest, treating a missing or corrupt file as empty."""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return Manifest()

        if not isinstance(data, dict):
            return Manifest()
        try:
            return Manifest.from_dict(data)
        except (TypeError, ValueError):
            return Manifest()

    def save(self, manifest: Manifest) -> Manifest:
        """Stamp ``last_updated`` and write the manifest in full."""
        manifest.last_updated = utc_now()
        atomic_write(self.path, json.dumps(manifest.to_dict(), indent=2) + "\n")
        return manifest

    def ensure(self) -> bool:
        """
        Create a fresh manifest if none exists.

        Returns:
            True if the file was created.
        """
        if self.path.exists():
            return False
        self.save(Manifest())
        return True

    def record_pull(self, slug: str, url: str, items_count: int) -> RepoEntry:
        """Record a successful pull of ``slug``."""
        manifest = self.load()
        entry = RepoEntry(url=url, last_pulled=utc_now(), items_count=items_count)
        manifest.repos[slug] = entry
        self.save(manifest)
        return entry

    def get_repo(self, slug: str) -> Optional[RepoEntry]:
        """Get the entry for a cached repository."""
        return self.load().repos.get(slug)
