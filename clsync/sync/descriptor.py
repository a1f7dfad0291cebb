# clsync Repository Descriptor
# clsync.json generation and README rendering from a live item list

import getpass
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from clsync.sync.item import Item, ItemType, scan_items
from clsync.sync.manifest import utc_now
from clsync.utils.paths import atomic_write

DESCRIPTOR_FILE = "clsync.json"
README_FILE = "README.md"
DESCRIPTOR_VERSION = "1.0.0"
DEFAULT_DESCRIPTION = "Claude Code settings repository"


class DescriptorItem(BaseModel):
    """One item entry of a descriptor."""

    type: ItemType
    name: str
    path: str
    description: Optional[str] = None

    def to_item(self) -> Item:
        """Convert to an Item with no on-disk timestamp."""
        metadata = {"description": self.description} if self.description else {}
        return Item(item_type=self.type, name=self.name, path=self.path, metadata=metadata)


class DescriptorStats(BaseModel):
    """Aggregate counts per item type."""

    skills: int = 0
    agents: int = 0
    output_styles: int = 0
    total: int = 0


class RepositoryDescriptor(BaseModel):
    """Contents of clsync.json."""

    version: str = DESCRIPTOR_VERSION
    name: str = ""
    description: str = DEFAULT_DESCRIPTION
    author: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    items: list[DescriptorItem] = Field(default_factory=list)
    stats: DescriptorStats = Field(default_factory=DescriptorStats)

    def to_items(self) -> list[Item]:
        """Item list in descriptor order."""
        return [entry.to_item() for entry in self.items]


def default_author() -> str:
    """Login name of the current user."""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def compute_stats(items: list[Item]) -> DescriptorStats:
    """Count items per type."""
    return DescriptorStats(
        skills=sum(1 for i in items if i.item_type == ItemType.SKILL),
        agents=sum(1 for i in items if i.item_type == ItemType.AGENT),
        output_styles=sum(1 for i in items if i.item_type == ItemType.OUTPUT_STYLE),
        total=len(items),
    )


def build_descriptor(
    items: list[Item],
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    author: Optional[str] = None,
    previous: Optional[RepositoryDescriptor] = None,
    now: Optional[str] = None,
) -> RepositoryDescriptor:
    """
    Build a descriptor from a live item list.

    Items and stats are always recomputed. From ``previous`` only the name,
    description, author and creation time are carried over, and explicit
    arguments win over them.

    Args:
        items: Items from a fresh scan.
        name: Repository name.
        description: Repository description.
        author: Author name.
        previous: Descriptor saved earlier for the same root.
        now: Timestamp to stamp, defaults to the current time.

    Returns:
        RepositoryDescriptor ready to save.
    """
    timestamp = now or utc_now()
    return RepositoryDescriptor(
        name=name or (previous.name if previous else "") or "",
        description=description or (previous.description if previous else None) or DEFAULT_DESCRIPTION,
        author=author or (previous.author if previous else None) or default_author(),
        created_at=(previous.created_at if previous else None) or timestamp,
        updated_at=timestamp,
        items=[
            DescriptorItem(
                type=item.item_type,
                name=item.name,
                path=item.path,
                description=item.description or None,
            )
            for item in items
        ],
        stats=compute_stats(items),
    )


def parse_descriptor(content: str | bytes) -> Optional[RepositoryDescriptor]:
    """Parse descriptor JSON, None when it is not a valid descriptor."""
    try:
        data = json.loads(content)
        return RepositoryDescriptor.model_validate(data)
    except (ValueError, ValidationError):
        return None


def load_descriptor(root: Path) -> Optional[RepositoryDescriptor]:
    """Load ``clsync.json`` from a root, None if missing or invalid."""
    try:
        content = (root / DESCRIPTOR_FILE).read_text(encoding="utf-8")
    except OSError:
        return None
    return parse_descriptor(content)


def save_descriptor(root: Path, descriptor: RepositoryDescriptor) -> Path:
    """Write ``clsync.json`` into a root."""
    path = root / DESCRIPTOR_FILE
    atomic_write(path, descriptor.model_dump_json(indent=2) + "\n")
    return path


def refresh_descriptor(
    root: Path,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    author: Optional[str] = None,
) -> RepositoryDescriptor:
    """Rescan a root and rewrite its descriptor."""
    previous = load_descriptor(root)
    descriptor = build_descriptor(
        scan_items(root),
        name=name or (previous.name if previous else None) or root.name,
        description=description,
        author=author,
        previous=previous,
    )
    save_descriptor(root, descriptor)
    return descriptor


def render_readme(descriptor: RepositoryDescriptor, repo_slug: Optional[str] = None) -> str:
    """
    Render the README pushed alongside the items.

    Args:
        descriptor: Descriptor of the pushed item set.
        repo_slug: ``owner/repo`` used in the usage snippet.

    Returns:
        Markdown text.
    """
    if descriptor.items:
        contents = "\n".join(f"- **{entry.type.value}**: {entry.name}" for entry in descriptor.items)
    else:
        contents = "_No items._"

    updated = descriptor.updated_at or datetime.now(timezone.utc).isoformat()

    return f"""# Claude Code Settings

{descriptor.description}

This repository contains Claude Code settings managed by clsync.

## Contents

{contents}

## Usage

```bash
# Pull and apply these settings
clsync pull {repo_slug or "owner/repo"}
clsync apply <setting-name> --source {repo_slug or "owner/repo"}
```

## Stats

- Skills: {descriptor.stats.skills}
- Agents: {descriptor.stats.agents}
- Output Styles: {descriptor.stats.output_styles}

---
*Last updated: {updated}*
"""
