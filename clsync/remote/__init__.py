# clsync Remote Module
# Hosting API client and repository pull / browse / push

from clsync.remote.github import GitHubClient, RepoReference, TreeEntry, parse_repo_reference
from clsync.remote.registry import RegistryEntry, fetch_registry, parse_registry
from clsync.remote.sync import (
    PreparedPush,
    PulledRepo,
    PullResult,
    PushResult,
    RepositorySync,
    infer_items,
)

__all__ = [
    # GitHub
    "GitHubClient",
    "RepoReference",
    "TreeEntry",
    "parse_repo_reference",
    # Registry
    "RegistryEntry",
    "fetch_registry",
    "parse_registry",
    # Sync
    "RepositorySync",
    "PullResult",
    "PushResult",
    "PreparedPush",
    "PulledRepo",
    "infer_items",
]
