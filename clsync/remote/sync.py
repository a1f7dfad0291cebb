# clsync Repository Sync
# Pull into repo caches, browse without writing, push a root through git

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from clsync.config.schema import ClsyncConfig
from clsync.errors import ClsyncError, NoMatchingItemsError, PushError, ToolMissingError
from clsync.git import operations as git
from clsync.remote.github import GitHubClient, RepoReference, TreeEntry, parse_repo_reference
from clsync.remote.registry import RegistryEntry, fetch_registry, find_entry
from clsync.sync.descriptor import (
    DESCRIPTOR_FILE,
    README_FILE,
    build_descriptor,
    render_readme,
)
from clsync.sync.home import ClsyncHome
from clsync.sync.item import (
    ITEM_SUFFIX,
    SETTINGS_DIRS,
    SKILL_FILE,
    Item,
    ItemType,
    copy_item,
    item_relative_path,
    scan_items,
)
from clsync.sync.manifest import RepoEntry
from clsync.sync.scope import Scope
from clsync.utils.paths import atomic_write, is_within

PUSH_BRANCH = "main"

ProgressCallback = Callable[[str], None]


@dataclass
class PullResult:
    """Result of pulling a repository into its cache."""

    repo: str
    downloaded: int = 0
    skipped: int = 0
    failed: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    cache_dir: Optional[Path] = None

    @property
    def has_failures(self) -> bool:
        """Check if any file failed to download."""
        return bool(self.failed)


@dataclass
class PushResult:
    """Result of a push that reached the remote."""

    pushed: int
    items: list[Item]
    repo: str


@dataclass
class PreparedPush:
    """A push prepared in a temp directory for the user to push manually."""

    prepared: int
    items: list[Item]
    temp_path: Path
    instructions: str


@dataclass
class PulledRepo:
    """A cached repository as recorded in the manifest."""

    slug: str
    entry: RepoEntry
    cache_dir: Path
    items: list[Item] = field(default_factory=list)

    @property
    def exists(self) -> bool:
        """Check if the cache directory is still on disk."""
        return self.cache_dir.is_dir()


def is_settings_path(path: str) -> bool:
    """True if a tree path lies under one of the type directories."""
    top, sep, rest = path.partition("/")
    return bool(sep and rest) and top in SETTINGS_DIRS


def infer_items(entries: list[TreeEntry]) -> list[Item]:
    """
    Derive items from a tree listing alone.

    ``skills/<name>/SKILL.md`` marks a skill, ``<dir>/<name>.md`` an agent or
    output-style. Nested files and other layouts are ignored.

    Args:
        entries: Tree entries in API order.

    Returns:
        Items deduplicated by type and name, in tree order.
    """
    items: list[Item] = []
    seen: set[tuple[ItemType, str]] = set()

    for entry in entries:
        if not entry.is_blob:
            continue
        parts = entry.path.split("/")
        item_type = ItemType.from_directory(parts[0]) if len(parts) > 1 else None
        if item_type is None:
            continue

        if item_type.is_directory:
            if len(parts) != 3 or parts[2] != SKILL_FILE:
                continue
            name = parts[1]
        else:
            if len(parts) != 2 or not parts[1].endswith(ITEM_SUFFIX):
                continue
            name = parts[1][: -len(ITEM_SUFFIX)]

        if not name or (item_type, name) in seen:
            continue
        seen.add((item_type, name))
        items.append(Item(item_type=item_type, name=name, path=item_relative_path(item_type, name)))

    return items


class RepositorySync:
    """
    Moves items between local roots and remote repositories.

    Pull and browse go through the HTTP client. Push shells out to git.
    """

    def __init__(
        self,
        home: ClsyncHome,
        config: ClsyncConfig,
        client: Optional[GitHubClient] = None,
        cwd: Optional[Path] = None,
    ):
        """
        Initialize repository sync.

        Args:
            home: clsync home holding caches and the manifest.
            config: Configuration (remote API, push defaults, roots).
            client: HTTP client, created from config when omitted.
            cwd: Working directory for project scope resolution.
        """
        self.home = home
        self.config = config
        self.client = client or GitHubClient(config.github)
        self.cwd = cwd

    def _reference(self, reference: str | RepoReference) -> RepoReference:
        if isinstance(reference, RepoReference):
            return reference
        return parse_repo_reference(reference, self.config.github.default_branch)

    @staticmethod
    def _report(on_progress: Optional[ProgressCallback], message: str) -> None:
        if on_progress is not None:
            on_progress(message)

    # ------------------------------------------------------------------
    # Pull / browse
    # ------------------------------------------------------------------

    def pull(
        self,
        reference: str | RepoReference,
        *,
        force: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PullResult:
        """
        Download a repository's items into its local cache.

        Files already in the cache are skipped unless ``force`` is set, so a
        second pull without force downloads nothing. A file that fails to
        download is recorded and the pull continues.

        Args:
            reference: ``owner/repo`` or a repository URL.
            force: Re-download files that already exist.
            on_progress: Called with a message per file.

        Returns:
            PullResult with per-file outcome.

        Raises:
            InvalidReferenceError: If the reference can't be parsed.
            RepositoryNotFoundError: If the repository doesn't exist.
            NoMatchingItemsError: If the tree has no item files.
            ApiError: If the tree can't be fetched.
        """
        ref = self._reference(reference)
        self._report(on_progress, f"Fetching tree of {ref.slug} ({ref.branch})")
        entries = self.client.fetch_tree(ref)

        wanted = [e for e in entries if e.is_blob and is_settings_path(e.path)]
        if not wanted:
            raise NoMatchingItemsError(
                f"No skills, agents or output-styles found in {ref.slug}. "
                f"Expected files under {', '.join(SETTINGS_DIRS)}."
            )
        has_descriptor = any(e.is_blob and e.path == DESCRIPTOR_FILE for e in entries)

        self.home.init()
        cache_dir = self.home.repo_dir(ref.slug)
        result = PullResult(repo=ref.slug, cache_dir=cache_dir)

        for entry in wanted:
            target = cache_dir / entry.path
            if not is_within(target, cache_dir):
                result.failed.append(entry.path)
                self._report(on_progress, f"Refusing path outside cache: {entry.path}")
                continue

            if target.exists() and not force:
                result.skipped += 1
                continue

            try:
                content = self.client.fetch_file(ref, entry.path)
                atomic_write(target, content)
            except (OSError, ClsyncError) as e:
                result.failed.append(entry.path)
                self._report(on_progress, f"Failed: {entry.path} ({e})")
                continue

            result.downloaded += 1
            result.files.append(entry.path)
            self._report(on_progress, f"Downloaded: {entry.path}")

        if has_descriptor and (force or not (cache_dir / DESCRIPTOR_FILE).exists()):
            try:
                atomic_write(cache_dir / DESCRIPTOR_FILE, self.client.fetch_file(ref, DESCRIPTOR_FILE))
            except (OSError, ClsyncError) as e:
                self._report(on_progress, f"Skipped {DESCRIPTOR_FILE} ({e})")

        self.home.manifest.record_pull(
            ref.slug,
            ref.clone_url(self.config.github.web_url),
            len(scan_items(cache_dir)),
        )
        return result

    def browse(self, reference: str | RepoReference) -> list[Item]:
        """
        List a repository's items without writing anything.

        A valid ``clsync.json`` in the tree is trusted as is. Otherwise the
        items are inferred from the tree paths.

        Args:
            reference: ``owner/repo`` or a repository URL.

        Returns:
            Items of the repository.
        """
        ref = self._reference(reference)
        entries = self.client.fetch_tree(ref)

        if any(e.is_blob and e.path == DESCRIPTOR_FILE for e in entries):
            descriptor = self.client.fetch_descriptor(ref)
            if descriptor is not None:
                return descriptor.to_items()

        return infer_items(entries)

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    def _push_url(self, repo: str) -> tuple[str, str]:
        """Remote URL and display name for a push target."""
        if repo.startswith(("http://", "https://", "git@")):
            return repo, repo
        ref = self._reference(repo)
        return ref.clone_url(self.config.github.web_url), ref.slug

    def push(
        self,
        source: Optional[Scope] = None,
        *,
        repo: Optional[str] = None,
        message: Optional[str] = None,
        force: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PushResult | PreparedPush:
        """
        Publish a root as a fresh single-commit git repository.

        The items are materialized into a new temp directory together with a
        regenerated ``clsync.json`` and ``README.md``. Without a target repo
        (argument or ``push.linked_repo``) the prepared directory is returned
        for a manual push.

        Args:
            source: Scope to push, None for the staging area.
            repo: Target repository, defaults to the linked repo.
            message: Commit message, defaults to ``push.message``.
            force: Force-push over the remote history.
            on_progress: Called with progress messages.

        Returns:
            PushResult after a successful push, PreparedPush otherwise.

        Raises:
            ToolMissingError: If git is not installed.
            NoMatchingItemsError: If the source has no items.
            PushError: If committing or pushing fails.
        """
        if not git.is_git_available():
            raise ToolMissingError("git is not installed or not on PATH")

        source_root = self.home.local_dir if source is None else source.resolve(self.config, self.cwd)
        source_label = "local" if source is None else source.label
        items = scan_items(source_root)
        if not items:
            raise NoMatchingItemsError(f"Nothing to push: no items in {source_label} ({source_root})")

        target = repo or self.config.push.linked_repo
        url, display = self._push_url(target) if target else (None, None)

        temp_path = Path(tempfile.mkdtemp(prefix="clsync-push-"))
        self._report(on_progress, f"Preparing {len(items)} item(s) in {temp_path}")

        for item in items:
            copy_item(item, source_root, temp_path)

        descriptor = build_descriptor(
            items,
            name=display.split("/")[-1] if display else source_label,
            description=self.config.push.description,
            author=self.config.push.author,
        )
        atomic_write(temp_path / DESCRIPTOR_FILE, descriptor.model_dump_json(indent=2) + "\n")
        atomic_write(temp_path / README_FILE, render_readme(descriptor, display))

        self._report(on_progress, "Initializing git repository")
        try:
            git.init_repo(temp_path)
            git.stage_all(temp_path)
            git.commit(message or self.config.push.message, temp_path)
        except git.GitError as e:
            raise PushError(f"Failed to create commit: {e}", temp_path=str(temp_path)) from e

        if url is None:
            return PreparedPush(
                prepared=len(items),
                items=items,
                temp_path=temp_path,
                instructions=(
                    f"Files prepared at: {temp_path}\n\n"
                    f"To push manually:\n"
                    f"  cd {temp_path}\n"
                    f"  git remote add origin https://github.com/YOUR/REPO.git\n"
                    f"  git push -u origin {PUSH_BRANCH}"
                ),
            )

        self._report(on_progress, f"Pushing to {display}")
        # A remote that already exists is reused
        git.add_remote(url, temp_path)
        try:
            git.push(temp_path, branch=PUSH_BRANCH, set_upstream=True, force=force)
        except git.GitError as first:
            try:
                git.rename_branch("master", PUSH_BRANCH, temp_path)
                git.push(temp_path, branch=PUSH_BRANCH, set_upstream=True, force=force)
            except git.GitError:
                raise PushError(
                    f"Failed to push to {display}.\n\n"
                    f"Make sure:\n"
                    f"  1. The repository exists\n"
                    f"  2. You have push access to it\n"
                    f"  3. You're authenticated with git\n\n"
                    f"Error: {first}\n"
                    f"Prepared files are kept at: {temp_path}",
                    temp_path=str(temp_path),
                ) from first

        shutil.rmtree(temp_path, ignore_errors=True)
        return PushResult(pushed=len(items), items=items, repo=display)

    # ------------------------------------------------------------------
    # Online registry
    # ------------------------------------------------------------------

    def online_repos(self) -> list[RegistryEntry]:
        """Repositories listed in the configured online registry."""
        return fetch_registry(self.client, self.config.github.registry_url)

    def pull_online(
        self,
        name: str,
        *,
        force: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PullResult:
        """
        Pull a registry entry by name.

        Raises:
            RepositoryNotFoundError: If the registry has no such entry.
            InvalidReferenceError: If the entry's url isn't a repository.
        """
        entry = find_entry(self.online_repos(), name)
        self._report(on_progress, f"Registry entry {entry.name}: {entry.url}")
        return self.pull(entry.url, force=force, on_progress=on_progress)

    # ------------------------------------------------------------------
    # Cached repositories
    # ------------------------------------------------------------------

    def list_pulled_repos(self) -> list[PulledRepo]:
        """Repositories in the manifest with a fresh scan of each cache."""
        repos: list[PulledRepo] = []
        for slug, entry in sorted(self.home.manifest.load().repos.items()):
            cache_dir = self.home.repo_dir(slug)
            repos.append(PulledRepo(slug=slug, entry=entry, cache_dir=cache_dir, items=scan_items(cache_dir)))
        return repos

    def list_repo_items(self, slug: str) -> list[Item]:
        """Items in one repository cache."""
        ref = self._reference(slug)
        return scan_items(self.home.repo_dir(ref.slug))
