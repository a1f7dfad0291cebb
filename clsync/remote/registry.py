# clsync Online Registry
# repos.yaml listing shared settings repositories that can be pulled by name

from dataclasses import dataclass
from typing import Any, Optional

import yaml

from clsync.errors import ApiError, RepositoryNotFoundError
from clsync.remote.github import GitHubClient


@dataclass
class RegistryEntry:
    """One repository listed in the online registry."""

    name: str
    url: str
    source: Optional[str] = None
    description: Optional[str] = None
    added_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Optional["RegistryEntry"]:
        """Build an entry, None when name or url is missing."""
        name = data.get("name")
        url = data.get("url")
        if not name or not url:
            return None

        def text(key: str) -> Optional[str]:
            value = data.get(key)
            return None if value is None else str(value)

        return cls(
            name=str(name),
            url=str(url),
            source=text("source"),
            description=text("description"),
            added_at=text("addedAt") or text("added_at"),
        )


def parse_registry(content: str | bytes) -> list[RegistryEntry]:
    """
    Parse repos.yaml.

    The file is either a list of entries or a mapping with a ``repos`` list.
    Entries without a name or url are skipped.

    Args:
        content: YAML text.

    Returns:
        Entries in file order.

    Raises:
        ApiError: If the content is not a registry.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ApiError(f"Invalid registry YAML: {e}") from e

    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("repos") or []
    if not isinstance(data, list):
        raise ApiError("Invalid registry: expected a list of repositories")

    entries = []
    for raw in data:
        if isinstance(raw, dict):
            entry = RegistryEntry.from_dict(raw)
            if entry is not None:
                entries.append(entry)
    return entries


def fetch_registry(client: GitHubClient, url: str) -> list[RegistryEntry]:
    """Download and parse the registry at ``url``."""
    return parse_registry(client.fetch_url(url, label="online repository list"))


def find_entry(entries: list[RegistryEntry], name: str) -> RegistryEntry:
    """
    Look up a registry entry by name.

    Raises:
        RepositoryNotFoundError: If no entry has that name.
    """
    for entry in entries:
        if entry.name == name:
            return entry
    raise RepositoryNotFoundError(f'No repository named "{name}" in the online registry')
