# clsync Scope Mover
# Promote (project -> user) and demote (user -> project) with conflict handling

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from clsync.config.schema import ClsyncConfig
from clsync.errors import ConflictError, InvalidMoveError, ItemNotFoundError
from clsync.sync.home import ClsyncHome
from clsync.sync.item import Item, ItemType, copy_item, find_item, item_target_path, scan_items
from clsync.sync.journal import PHASE_COPIED, MoveEntry
from clsync.sync.scope import Scope
from clsync.utils.paths import safe_delete


@dataclass
class MoveResult:
    """Result of a promote or demote."""

    item: Item
    source: str
    destination: str
    original_name: str
    new_name: str
    renamed: bool
    path: Optional[Path] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "item": self.item.to_dict(),
            "from": self.source,
            "to": self.destination,
            "originalName": self.original_name,
            "newName": self.new_name,
            "renamed": self.renamed,
        }


@dataclass
class ReconcileResult:
    """What ``reconcile`` did with one leftover journal entry."""

    entry: MoveEntry
    action: str


def suggest_unique_name(name: str, item_type: ItemType, root: Path) -> str:
    """
    Find a name free at ``root`` by appending ``-1``, ``-2``, ...

    Args:
        name: Desired name.
        item_type: Type the name must be unique for.
        root: Destination root.

    Returns:
        ``name`` itself if free, otherwise the first free suffixed name.
    """
    items = scan_items(root)
    taken = {i.name for i in items if i.item_type == item_type}

    candidate = name
    counter = 1
    while candidate in taken:
        candidate = f"{name}-{counter}"
        counter += 1
    return candidate


def validate_item_name(name: str) -> str:
    """
    Check that a caller-supplied name is a single path component.

    Raises:
        InvalidMoveError: If the name is empty or contains a separator or ``..``.
    """
    if not name or name.strip() != name or "/" in name or "\\" in name or ".." in name:
        raise InvalidMoveError(f'Invalid item name: "{name}" (use a plain name without "/", "\\" or "..")')
    return name


class ScopeMover:
    """
    Moves items between the project and user roots.

    A move is copy-then-delete with a journal entry written before the copy
    and advanced before the delete. There is no rollback, an interrupted
    move stays in the journal until ``reconcile`` runs.
    """

    def __init__(self, home: ClsyncHome, config: ClsyncConfig, cwd: Optional[Path] = None):
        """
        Initialize mover.

        Args:
            home: clsync home holding the move journal.
            config: Configuration used to resolve scopes.
            cwd: Working directory for project scope resolution.
        """
        self.home = home
        self.config = config
        self.cwd = cwd

    def promote(self, name: str, *, force: bool = False, rename: Optional[str] = None) -> MoveResult:
        """Move an item from the project root to the user root."""
        return self.move(name, Scope.project(), Scope.user(), force=force, rename=rename)

    def demote(self, name: str, *, force: bool = False, rename: Optional[str] = None) -> MoveResult:
        """Move an item from the user root to the project root."""
        return self.move(name, Scope.user(), Scope.project(), force=force, rename=rename)

    def move(
        self,
        name: str,
        source: Scope,
        destination: Scope,
        *,
        force: bool = False,
        rename: Optional[str] = None,
    ) -> MoveResult:
        """
        Move an item between two scopes.

        Args:
            name: Item name in the source scope.
            source: Scope to move from.
            destination: Scope to move to.
            force: Overwrite an existing item at the destination.
            rename: Name to use at the destination.

        Returns:
            MoveResult describing the move.

        Raises:
            ItemNotFoundError: If the item isn't in the source scope.
            ConflictError: If the target name is taken and force is False.
            InvalidMoveError: If both scopes share a root or rename isn't a plain name.
        """
        source_root = source.resolve(self.config, self.cwd)
        dest_root = destination.resolve(self.config, self.cwd)

        # Copying onto itself and then deleting the source would lose the item
        if source_root.resolve() == dest_root.resolve():
            raise InvalidMoveError(
                f"{source.label.capitalize()} and {destination.label} scope are the same directory "
                f"({source_root}). Run this from a project directory."
            )
        if rename is not None:
            validate_item_name(rename)

        item = find_item(scan_items(source_root), name)
        if item is None:
            raise ItemNotFoundError(f'Item "{name}" not found in {source.label} ({source_root})')

        target_name = rename or name
        existing = find_item(scan_items(dest_root), target_name, item.item_type)

        if existing is not None and not force:
            suggested = suggest_unique_name(target_name, item.item_type, dest_root)
            raise ConflictError(
                f'{item.item_type.value} "{target_name}" already exists in {destination.label} ({dest_root}).\n\n'
                f"Options:\n"
                f"  --force    Overwrite existing\n"
                f'  --rename   Rename to avoid conflict (suggested: "{suggested}")',
                suggested_name=suggested,
            )

        source_path = item.location(source_root)
        dest_path = item_target_path(dest_root, item.item_type, target_name)

        entry = self.home.journal.begin(
            item_type=item.item_type.value,
            name=name,
            new_name=target_name,
            source=source_path,
            destination=dest_path,
            overwrite=existing is not None,
        )
        copy_item(item, source_root, dest_root, name=target_name)
        self.home.journal.mark_copied(entry)
        safe_delete(source_path, missing_ok=True)
        self.home.journal.complete(entry)

        return MoveResult(
            item=item,
            source=source.label,
            destination=destination.label,
            original_name=name,
            new_name=target_name,
            renamed=target_name != name,
            path=dest_path,
        )

    def pending_moves(self) -> list[MoveEntry]:
        """Moves that started but never finished."""
        return self.home.journal.entries()

    def reconcile(self) -> list[ReconcileResult]:
        """
        Resolve interrupted moves left in the journal.

        Copies land by atomic rename, so a destination that exists is
        complete unless the move was overwriting an earlier item. A finished
        copy is completed by deleting the source. When an overwrite was
        interrupted before the copy was confirmed, both sides are kept.

        Returns:
            One ReconcileResult per journal entry processed.
        """
        results: list[ReconcileResult] = []

        for entry in self.home.journal.entries():
            source = Path(entry.source)
            destination = Path(entry.destination)

            if source.exists() and destination.exists():
                if entry.phase == PHASE_COPIED or not entry.overwrite:
                    safe_delete(source, missing_ok=True)
                    action = "removed source"
                else:
                    action = "kept both"
            elif destination.exists():
                action = "already moved"
            else:
                action = "not moved"

            self.home.journal.complete(entry)
            results.append(ReconcileResult(entry=entry, action=action))

        return results

    def list_both_scopes(self) -> dict[str, list[Item]]:
        """Items in the project and user roots side by side."""
        return {
            "project": scan_items(Scope.project().resolve(self.config, self.cwd)),
            "user": scan_items(Scope.user().resolve(self.config, self.cwd)),
        }
