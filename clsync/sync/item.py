# clsync Items
# Item model, front matter parsing and root scanning

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from clsync.utils.paths import ensure_dir, safe_copy

SKILL_FILE = "SKILL.md"
ITEM_SUFFIX = ".md"

_FRONTMATTER_PATTERN = re.compile(r"^---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|$)", re.DOTALL)


class ItemType(str, Enum):
    """Kinds of settings items, each living in a fixed subdirectory."""

    SKILL = "skill"
    AGENT = "agent"
    OUTPUT_STYLE = "output-style"

    @property
    def directory(self) -> str:
        """Name of the type subdirectory under a root."""
        return _TYPE_DIRS[self]

    @property
    def is_directory(self) -> bool:
        """Skills are directories, everything else is a single file."""
        return self is ItemType.SKILL

    @classmethod
    def from_directory(cls, directory: str) -> Optional[ItemType]:
        """Look up the type owning a subdirectory name."""
        for item_type, name in _TYPE_DIRS.items():
            if name == directory:
                return item_type
        return None


_TYPE_DIRS: dict[ItemType, str] = {
    ItemType.SKILL: "skills",
    ItemType.AGENT: "agents",
    ItemType.OUTPUT_STYLE: "output-styles",
}

SETTINGS_DIRS: tuple[str, ...] = tuple(_TYPE_DIRS.values())


@dataclass
class Item:
    """A named, typed settings item found under a root."""

    item_type: ItemType
    name: str
    path: str
    metadata: dict[str, Any] = field(default_factory=dict)
    mtime: float = 0.0

    @property
    def description(self) -> str:
        """Description from the front matter, empty when absent."""
        value = self.metadata.get("description")
        return "" if value is None else str(value)

    @property
    def updated_at(self) -> Optional[str]:
        """Modification time as ISO-8601 UTC, None for items not on disk."""
        if not self.mtime:
            return None
        return datetime.fromtimestamp(self.mtime, tz=timezone.utc).isoformat()

    @property
    def key(self) -> tuple[ItemType, str]:
        """Identity of the item within one root."""
        return self.item_type, self.name

    def location(self, root: Path) -> Path:
        """Absolute location of this item under ``root``."""
        return root / self.path

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": self.item_type.value,
            "name": self.name,
            "path": self.path,
            "description": self.description or None,
            "metadata": dict(self.metadata),
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"Item(type={self.item_type.value!r}, name={self.name!r}, path={self.path!r})"


@dataclass
class ScanError:
    """A type directory that could not be read."""

    directory: Path
    message: str


@dataclass
class ScanResult:
    """Items found under a root plus the directories that failed to read."""

    root: Path
    items: list[Item] = field(default_factory=list)
    errors: list[ScanError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when every type directory was readable (or absent)."""
        return not self.errors


def parse_metadata(content: str) -> dict[str, Any]:
    """
    Parse the leading YAML front matter block of a markdown document.

    Args:
        content: Document text.

    Returns:
        Mapping of front matter keys, empty when the block is missing or invalid.
    """
    match = _FRONTMATTER_PATTERN.match(content)
    if not match:
        return {}

    try:
        frontmatter = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        return {}

    if not isinstance(frontmatter, dict):
        return {}
    return {str(key): value for key, value in frontmatter.items()}


def item_relative_path(item_type: ItemType, name: str) -> str:
    """Relative path of an item under any root."""
    if item_type.is_directory:
        return f"{item_type.directory}/{name}"
    return f"{item_type.directory}/{name}{ITEM_SUFFIX}"


def item_target_path(root: Path, item_type: ItemType, name: str) -> Path:
    """Absolute path an item of this type and name occupies under ``root``."""
    return root / item_relative_path(item_type, name)


def scan_root(root: Path) -> ScanResult:
    """
    Scan the three type directories of a root.

    A missing type directory counts as empty. Any other read failure is
    recorded in ``errors`` and contributes zero items, so the result is
    always partial rather than raising.

    Args:
        root: Settings root (user, project, staging area or repo cache).

    Returns:
        ScanResult with items ordered skills, agents, output-styles.
    """
    result = ScanResult(root=root)
    seen: set[tuple[ItemType, str]] = set()

    for item_type in ItemType:
        type_dir = root / item_type.directory
        try:
            entries = sorted(type_dir.iterdir(), key=lambda p: p.name)
        except FileNotFoundError:
            continue
        except OSError as e:
            result.errors.append(ScanError(directory=type_dir, message=str(e)))
            continue

        for entry in entries:
            if entry.name.startswith("."):
                continue
            try:
                item = _read_entry(item_type, entry)
            except (OSError, UnicodeDecodeError) as e:
                result.errors.append(ScanError(directory=entry, message=str(e)))
                continue
            if item is None or item.key in seen:
                continue
            seen.add(item.key)
            result.items.append(item)

    return result


def scan_items(root: Path) -> list[Item]:
    """Scan a root and return only the items."""
    return scan_root(root).items


def _read_entry(item_type: ItemType, entry: Path) -> Optional[Item]:
    """Build an Item from one directory entry, None if it isn't one."""
    if item_type.is_directory:
        if not entry.is_dir():
            return None
        descriptor = entry / SKILL_FILE
        if not descriptor.is_file():
            return None
        name = entry.name
    else:
        if not entry.is_file() or entry.suffix != ITEM_SUFFIX:
            return None
        descriptor = entry
        name = entry.stem

    content = descriptor.read_text(encoding="utf-8")
    return Item(
        item_type=item_type,
        name=name,
        path=item_relative_path(item_type, name),
        metadata=parse_metadata(content),
        mtime=descriptor.stat().st_mtime,
    )


def find_item(items: list[Item], name: str, item_type: Optional[ItemType] = None) -> Optional[Item]:
    """
    Find the first item with a given name.

    Args:
        items: Scanned items.
        name: Item name.
        item_type: Restrict the match to one type.

    Returns:
        Matching item or None.
    """
    for item in items:
        if item.name == name and (item_type is None or item.item_type == item_type):
            return item
    return None


def copy_item(item: Item, source_root: Path, dest_root: Path, name: Optional[str] = None) -> Path:
    """
    Copy an item between roots, replacing whatever is at the destination.

    Args:
        item: Item to copy.
        source_root: Root the item was scanned from.
        dest_root: Root to copy into.
        name: Optional new name at the destination.

    Returns:
        Destination path.
    """
    source = item.location(source_root)
    dest = item_target_path(dest_root, item.item_type, name or item.name)
    ensure_dir(dest.parent)
    safe_copy(source, dest)
    return dest
