# clsync Engine
# Facade wiring the home, staging area, scope mover and repository sync together

from dataclasses import dataclass, field
from pathlib import Path

from clsync.config.schema import ClsyncConfig
from clsync.remote.github import GitHubClient
from clsync.remote.sync import PulledRepo, RepositorySync
from clsync.sync.home import ClsyncHome
from clsync.sync.item import Item, ScanError, scan_root
from clsync.sync.journal import MoveEntry
from clsync.sync.mover import ScopeMover
from clsync.sync.scope import Scope
from clsync.sync.staging import StagingArea


@dataclass
class RootStatus:
    """Items found under one root."""

    label: str
    path: Path
    items: list[Item] = field(default_factory=list)
    errors: list[ScanError] = field(default_factory=list)


@dataclass
class EngineStatus:
    """Overview of every root the engine knows about."""

    home: Path
    roots: list[RootStatus] = field(default_factory=list)
    repos: list[PulledRepo] = field(default_factory=list)
    pending_moves: list[MoveEntry] = field(default_factory=list)
    linked_repo: str | None = None

    @property
    def total_items(self) -> int:
        """Count of items across user, project and staging roots."""
        return sum(len(root.items) for root in self.roots)


class ClsyncEngine:
    """
    Entry point for all engine operations.

    Holds no item state. Each component rescans the filesystem per call and
    shares the home and configuration passed in here.
    """

    def __init__(
        self,
        config: ClsyncConfig,
        home: ClsyncHome | None = None,
        client: GitHubClient | None = None,
        cwd: Path | None = None,
    ):
        """
        Initialize engine.

        Args:
            config: clsync configuration.
            home: Optional home (built from config if not provided).
            client: Optional HTTP client (built from config if not provided).
            cwd: Working directory for project scope resolution.
        """
        self.config = config
        self.home = home or ClsyncHome.from_config(config)
        self.cwd = cwd
        self.staging = StagingArea(self.home, config, cwd)
        self.mover = ScopeMover(self.home, config, cwd)
        self.remote = RepositorySync(self.home, config, client, cwd)

    def close(self) -> None:
        """Release the HTTP client."""
        self.remote.client.close()

    def __enter__(self) -> "ClsyncEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def init(self) -> list[Path]:
        """Create the home layout. Returns directories that were created."""
        return self.home.init()

    def resolve(self, scope: Scope) -> Path:
        """Resolve a scope against this engine's configuration."""
        return scope.resolve(self.config, self.cwd)

    def status(self) -> EngineStatus:
        """
        Collect a status overview.

        Returns:
            EngineStatus for the user, project and staging roots plus pulled
            repositories and interrupted moves.
        """
        roots = []
        for label, path in (
            ("user", self.resolve(Scope.user())),
            ("project", self.resolve(Scope.project())),
            ("local", self.staging.root),
        ):
            scan = scan_root(path)
            roots.append(RootStatus(label=label, path=path, items=scan.items, errors=scan.errors))

        return EngineStatus(
            home=self.home.root,
            roots=roots,
            repos=self.remote.list_pulled_repos(),
            pending_moves=self.mover.pending_moves(),
            linked_repo=self.config.push.linked_repo,
        )
