# clsync Staging Area
# Copy items into and out of the local staging root

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from clsync.config.schema import ClsyncConfig
from clsync.errors import ClsyncError, ItemNotFoundError
from clsync.remote.github import parse_repo_reference
from clsync.sync.descriptor import (
    RepositoryDescriptor,
    build_descriptor,
    refresh_descriptor,
    save_descriptor,
)
from clsync.sync.home import ClsyncHome
from clsync.sync.item import Item, copy_item, find_item, scan_items
from clsync.sync.scope import Scope
from clsync.utils.paths import ensure_dir, safe_delete


@dataclass
class StageResult:
    """Outcome for one item of a stage or apply operation."""

    item: Item
    path: Optional[Path] = None
    source: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        """Check if the item was copied."""
        return self.error is None


@dataclass
class ExportResult:
    """Result of exporting the staging area to a directory."""

    exported: int
    output_dir: Path
    items: list[Item] = field(default_factory=list)
    descriptor: Optional[RepositoryDescriptor] = None


class StagingArea:
    """
    The local staging root and the copy operations around it.

    Every call rescans; the filesystem is the only state.
    """

    def __init__(self, home: ClsyncHome, config: ClsyncConfig, cwd: Optional[Path] = None):
        """
        Initialize staging area.

        Args:
            home: clsync home holding the staging root.
            config: Configuration used to resolve scopes.
            cwd: Working directory for project scope resolution.
        """
        self.home = home
        self.config = config
        self.cwd = cwd

    @property
    def root(self) -> Path:
        """Staging root directory."""
        return self.home.local_dir

    def _resolve(self, scope: Scope) -> Path:
        return scope.resolve(self.config, self.cwd)

    def _refresh_descriptor(self) -> None:
        refresh_descriptor(
            self.root,
            name="local",
            description=self.config.push.description,
            author=self.config.push.author,
        )

    def list_staged(self) -> list[Item]:
        """List items currently staged."""
        self.home.init()
        return scan_items(self.root)

    def stage(self, name: str, scope: Scope) -> StageResult:
        """
        Copy an item from a scope into the staging area.

        An existing staged copy is replaced.

        Args:
            name: Item name (first match across types).
            scope: Scope to copy from.

        Returns:
            StageResult with the staged path.

        Raises:
            ItemNotFoundError: If the item isn't in the scope.
        """
        source_root = self._resolve(scope)
        item = find_item(scan_items(source_root), name)
        if item is None:
            raise ItemNotFoundError(f'Item "{name}" not found in {scope.label} scope ({source_root})')

        self.home.init()
        path = copy_item(item, source_root, self.root)
        self._refresh_descriptor()
        return StageResult(item=item, path=path, source=scope.label)

    def stage_all(self, scope: Scope) -> list[StageResult]:
        """
        Stage every item of a scope, recording failures per item.

        Args:
            scope: Scope to copy from.

        Returns:
            One StageResult per item found.
        """
        self.home.init()
        source_root = self._resolve(scope)
        results: list[StageResult] = []

        # Items are copied as scanned, a skill and an agent may share a name
        for item in scan_items(source_root):
            try:
                path = copy_item(item, source_root, self.root)
                results.append(StageResult(item=item, path=path, source=scope.label))
            except (ClsyncError, OSError) as e:
                results.append(StageResult(item=item, source=scope.label, error=str(e)))

        self._refresh_descriptor()
        return results

    def unstage(self, name: str) -> Item:
        """
        Remove an item from the staging area.

        Args:
            name: Item name.

        Returns:
            The removed item.

        Raises:
            ItemNotFoundError: If nothing with that name is staged.
        """
        item = find_item(self.list_staged(), name)
        if item is None:
            raise ItemNotFoundError(f'Item "{name}" not found in local staging')

        safe_delete(item.location(self.root), missing_ok=True)
        self._refresh_descriptor()
        return item

    def source_root(self, source: Optional[str] = None) -> Path:
        """
        Root to apply from: the staging area or a repository cache.

        Args:
            source: None for the staging area, or ``owner/repo``.

        Returns:
            Root directory.
        """
        if source is None or source == "local":
            return self.root
        reference = parse_repo_reference(source, self.config.github.default_branch)
        return self.home.repo_dir(reference.slug)

    def apply(self, name: str, scope: Scope, source: Optional[str] = None) -> StageResult:
        """
        Copy an item from the staging area or a repo cache into a scope.

        Args:
            name: Item name.
            scope: Destination scope.
            source: None for the staging area, or ``owner/repo``.

        Returns:
            StageResult with the destination path.

        Raises:
            ItemNotFoundError: If the item isn't in the source.
        """
        source_root = self.source_root(source)
        item = find_item(scan_items(source_root), name)
        if item is None:
            raise ItemNotFoundError(f'Item "{name}" not found in {source or "local"}')

        path = copy_item(item, source_root, self._resolve(scope))
        return StageResult(item=item, path=path, source=source or "local")

    def apply_all(self, scope: Scope, source: Optional[str] = None) -> list[StageResult]:
        """
        Apply every item of a source, recording failures per item.

        Args:
            scope: Destination scope.
            source: None for the staging area, or ``owner/repo``.

        Returns:
            One StageResult per item found.
        """
        source_root = self.source_root(source)
        dest_root = self._resolve(scope)
        results: list[StageResult] = []

        for item in scan_items(source_root):
            try:
                path = copy_item(item, source_root, dest_root)
                results.append(StageResult(item=item, path=path, source=source or "local"))
            except (ClsyncError, OSError) as e:
                results.append(StageResult(item=item, source=source or "local", error=str(e)))

        return results

    def export(
        self,
        output_dir: Path,
        *,
        author: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ExportResult:
        """
        Materialize the staged items into a directory with a descriptor.

        Args:
            output_dir: Directory to write into.
            author: Descriptor author.
            description: Descriptor description.

        Returns:
            ExportResult with the written descriptor.
        """
        staged = self.list_staged()
        ensure_dir(output_dir)

        for item in staged:
            copy_item(item, self.root, output_dir)

        descriptor = build_descriptor(
            staged,
            name=output_dir.name,
            description=description or self.config.push.description,
            author=author or self.config.push.author,
        )
        save_descriptor(output_dir, descriptor)
        return ExportResult(exported=len(staged), output_dir=output_dir, items=staged, descriptor=descriptor)
