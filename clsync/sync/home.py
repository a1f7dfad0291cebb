# clsync Home
# The on-disk store (manifest, staging area, repo caches) passed into every engine call

from pathlib import Path

from clsync.config.schema import ClsyncConfig
from clsync.sync.item import SETTINGS_DIRS
from clsync.sync.journal import MoveJournal
from clsync.sync.manifest import ManifestStore
from clsync.utils.paths import ensure_dir

MANIFEST_FILE = "manifest.json"
JOURNAL_FILE = "journal.yaml"
LOCAL_DIR = "local"
REPOS_DIR = "repos"


class ClsyncHome:
    """
    Layout of the clsync home directory.

    ::

        <root>/
          manifest.json
          journal.yaml
          local/            staging area
          repos/<owner>/<repo>/
    """

    def __init__(self, root: Path):
        """
        Initialize home.

        Args:
            root: Home directory, created lazily by ``init``.
        """
        self.root = root
        self.local_dir = root / LOCAL_DIR
        self.repos_dir = root / REPOS_DIR
        self.manifest = ManifestStore(root / MANIFEST_FILE)
        self.journal = MoveJournal(root / JOURNAL_FILE)

    @classmethod
    def from_config(cls, config: ClsyncConfig) -> "ClsyncHome":
        """Build the home configured in ``paths.home``."""
        return cls(config.home_path)

    def init(self) -> list[Path]:
        """
        Create the directory structure and an empty manifest if missing.

        Returns:
            Directories that did not exist before.
        """
        created: list[Path] = []
        for directory in (self.root, self.local_dir, self.repos_dir, *(self.local_dir / d for d in SETTINGS_DIRS)):
            if not directory.exists():
                ensure_dir(directory)
                created.append(directory)
        self.manifest.ensure()
        return created

    def repo_dir(self, slug: str) -> Path:
        """Cache directory for ``owner/repo``."""
        owner, _, repo = slug.partition("/")
        return self.repos_dir / owner / repo
