# clsync Repository Sync Tests
# Tests for pull, browse and push against a fake remote

import json
from pathlib import Path
from typing import Optional
from unittest.mock import patch

import httpx
import pytest

from clsync.config.schema import ClsyncConfig
from clsync.errors import ApiError, NoMatchingItemsError, PushError, RepositoryNotFoundError, ToolMissingError
from clsync.git.operations import GitError
from clsync.remote.github import GitHubClient, TreeEntry
from clsync.remote.sync import PreparedPush, PushResult, RepositorySync, infer_items, is_settings_path
from clsync.sync.home import ClsyncHome
from clsync.sync.item import ItemType, scan_items
from clsync.sync.scope import Scope

SKILL = b"---\nname: x\ndescription: does x\n---\n\n# x\n"
AGENT = b"---\nname: y\n---\n\n# y\n"
REGISTRY_URL = "https://registry.test/repos.yaml"


class FakeRemote:
    """In-memory repository served through httpx.MockTransport."""

    def __init__(self, files: dict[str, bytes], *, extra_tree: Optional[list[dict]] = None):
        self.files = files
        self.extra_tree = extra_tree or []
        self.raw_requests: list[str] = []
        self.failing: set[str] = set()
        self.registry: Optional[bytes] = None
        self.registry_requests = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if request.url.host == "registry.test":
            self.registry_requests += 1
            if self.registry is None:
                return httpx.Response(404)
            return httpx.Response(200, content=self.registry)
        if "/git/trees/" in url:
            tree = [{"path": path, "type": "blob", "sha": str(i)} for i, path in enumerate(self.files)]
            return httpx.Response(200, json={"tree": tree + self.extra_tree})

        path = request.url.path.split("/", 4)[4]
        self.raw_requests.append(path)
        if path in self.failing or path not in self.files:
            return httpx.Response(404)
        return httpx.Response(200, content=self.files[path])


@pytest.fixture
def remote() -> FakeRemote:
    """Remote with one skill, one agent and an unrelated doc."""
    return FakeRemote(
        {
            "skills/x/SKILL.md": SKILL,
            "agents/y.md": AGENT,
            "docs/readme.md": b"# docs",
        }
    )


def make_sync(home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, cwd: Path) -> RepositorySync:
    client = GitHubClient(config.github, transport=httpx.MockTransport(remote.handler))
    return RepositorySync(home, config, client, cwd=cwd)


class TestTreeHelpers:
    """Tests for tree path filtering and item inference."""

    def test_is_settings_path(self):
        assert is_settings_path("skills/x/SKILL.md")
        assert is_settings_path("agents/y.md")
        assert not is_settings_path("docs/readme.md")
        assert not is_settings_path("skills")
        assert not is_settings_path("README.md")

    def test_infer_items(self):
        entries = [
            TreeEntry("skills", "tree"),
            TreeEntry("skills/x/SKILL.md", "blob"),
            TreeEntry("skills/x/scripts/run.sh", "blob"),
            TreeEntry("skills/incomplete/notes.md", "blob"),
            TreeEntry("agents/y.md", "blob"),
            TreeEntry("agents/nested/z.md", "blob"),
            TreeEntry("output-styles/terse.md", "blob"),
            TreeEntry("output-styles/terse.txt", "blob"),
            TreeEntry("docs/readme.md", "blob"),
        ]

        items = infer_items(entries)

        assert [(i.item_type, i.name) for i in items] == [
            (ItemType.SKILL, "x"),
            (ItemType.AGENT, "y"),
            (ItemType.OUTPUT_STYLE, "terse"),
        ]
        assert items[0].path == "skills/x"


class TestPull:
    """Tests for RepositorySync.pull."""

    def test_pull_downloads_matching_files(
        self, home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path
    ):
        sync = make_sync(home, config, remote, project_dir)

        result = sync.pull("owner/repo")

        assert result.downloaded == 2
        assert result.skipped == 0
        assert result.failed == []
        assert result.files == ["skills/x/SKILL.md", "agents/y.md"]
        assert "docs/readme.md" not in remote.raw_requests

        cache = home.repo_dir("owner/repo")
        assert (cache / "skills" / "x" / "SKILL.md").read_bytes() == SKILL
        assert not (cache / "docs").exists()

    def test_pull_updates_manifest(
        self, home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path
    ):
        make_sync(home, config, remote, project_dir).pull("owner/repo")

        entry = home.manifest.get_repo("owner/repo")
        assert entry.items_count == 2
        assert entry.url == "https://github.test/owner/repo.git"
        assert entry.last_pulled is not None

    def test_second_pull_skips_everything(
        self, home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path
    ):
        remote.files["clsync.json"] = json.dumps({"name": "settings"}).encode()
        sync = make_sync(home, config, remote, project_dir)
        sync.pull("owner/repo")
        remote.raw_requests.clear()
        remote.files["clsync.json"] = json.dumps({"name": "renamed"}).encode()

        second = sync.pull("owner/repo")

        assert second.downloaded == 0
        assert second.skipped == 2
        assert remote.raw_requests == []
        cached = json.loads((home.repo_dir("owner/repo") / "clsync.json").read_text(encoding="utf-8"))
        assert cached["name"] == "settings"

    def test_force_refreshes_descriptor(
        self, home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path
    ):
        remote.files["clsync.json"] = json.dumps({"name": "settings"}).encode()
        sync = make_sync(home, config, remote, project_dir)
        sync.pull("owner/repo")
        remote.files["clsync.json"] = json.dumps({"name": "renamed"}).encode()

        sync.pull("owner/repo", force=True)

        cached = json.loads((home.repo_dir("owner/repo") / "clsync.json").read_text(encoding="utf-8"))
        assert cached["name"] == "renamed"

    def test_force_redownloads(self, home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path):
        sync = make_sync(home, config, remote, project_dir)
        sync.pull("owner/repo")
        remote.files["agents/y.md"] = b"# changed"

        result = sync.pull("owner/repo", force=True)

        assert result.downloaded == 2
        assert (home.repo_dir("owner/repo") / "agents" / "y.md").read_bytes() == b"# changed"

    def test_failed_download_recorded(
        self, home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path
    ):
        remote.failing.add("agents/y.md")
        messages: list[str] = []

        result = make_sync(home, config, remote, project_dir).pull("owner/repo", on_progress=messages.append)

        assert result.downloaded == 1
        assert result.failed == ["agents/y.md"]
        assert result.has_failures
        assert any("Failed: agents/y.md" in m for m in messages)

    def test_path_escaping_cache_rejected(self, home: ClsyncHome, config: ClsyncConfig, project_dir: Path):
        remote = FakeRemote({"agents/ok.md": AGENT, "agents/../../../escape.md": b"bad"})

        result = make_sync(home, config, remote, project_dir).pull("owner/repo")

        assert result.failed == ["agents/../../../escape.md"]
        assert result.downloaded == 1
        assert not (home.repos_dir / "escape.md").exists()
        assert "agents/../../../escape.md" not in remote.raw_requests

    def test_no_matching_items(self, home: ClsyncHome, config: ClsyncConfig, project_dir: Path):
        remote = FakeRemote({"README.md": b"# readme", "docs/a.md": b"a"})

        with pytest.raises(NoMatchingItemsError):
            make_sync(home, config, remote, project_dir).pull("owner/repo")

        assert not home.repo_dir("owner/repo").exists()
        assert home.manifest.get_repo("owner/repo") is None

    def test_descriptor_stored_in_cache(self, home: ClsyncHome, config: ClsyncConfig, project_dir: Path):
        descriptor = json.dumps({"name": "settings", "items": []}).encode()
        remote = FakeRemote({"agents/y.md": AGENT, "clsync.json": descriptor})

        make_sync(home, config, remote, project_dir).pull("owner/repo")

        assert (home.repo_dir("owner/repo") / "clsync.json").read_bytes() == descriptor

    def test_list_pulled_repos(self, home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path):
        sync = make_sync(home, config, remote, project_dir)
        sync.pull("owner/repo")

        repos = sync.list_pulled_repos()

        assert [r.slug for r in repos] == ["owner/repo"]
        assert repos[0].exists
        assert len(repos[0].items) == 2
        assert [i.name for i in sync.list_repo_items("owner/repo")] == ["x", "y"]


class TestBrowse:
    """Tests for RepositorySync.browse."""

    def test_browse_prefers_descriptor(self, home: ClsyncHome, config: ClsyncConfig, project_dir: Path):
        descriptor = {
            "name": "settings",
            "items": [
                {"type": "agent", "name": "listed", "path": "agents/listed.md", "description": "from descriptor"},
            ],
        }
        remote = FakeRemote(
            {"skills/x/SKILL.md": SKILL, "agents/y.md": AGENT, "clsync.json": json.dumps(descriptor).encode()}
        )

        items = make_sync(home, config, remote, project_dir).browse("owner/repo")

        assert [(i.name, i.description) for i in items] == [("listed", "from descriptor")]
        assert remote.raw_requests == ["clsync.json"]
        assert not home.root.exists()

    def test_browse_infers_from_tree(
        self, home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path
    ):
        items = make_sync(home, config, remote, project_dir).browse("owner/repo")

        assert [(i.item_type, i.name) for i in items] == [(ItemType.SKILL, "x"), (ItemType.AGENT, "y")]
        assert remote.raw_requests == []

    def test_browse_invalid_descriptor_falls_back(self, home: ClsyncHome, config: ClsyncConfig, project_dir: Path):
        remote = FakeRemote({"agents/y.md": AGENT, "clsync.json": b"{broken"})

        items = make_sync(home, config, remote, project_dir).browse("owner/repo")

        assert [i.name for i in items] == ["y"]


REGISTRY = b"""\
- name: team-settings
  url: https://github.com/owner/repo
  description: Shared team agents
  source: community
  addedAt: 2025-01-15
- name: no-url
  description: skipped
"""


class TestOnlineRegistry:
    """Tests for listing and pulling repositories from the online registry."""

    @pytest.fixture
    def online(self, home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path) -> RepositorySync:
        config.github.registry_url = REGISTRY_URL
        remote.registry = REGISTRY
        return make_sync(home, config, remote, project_dir)

    def test_online_repos(self, online: RepositorySync):
        entries = online.online_repos()

        assert [(e.name, e.url) for e in entries] == [("team-settings", "https://github.com/owner/repo")]
        assert entries[0].description == "Shared team agents"
        assert entries[0].added_at == "2025-01-15"

    def test_pull_online(self, online: RepositorySync, home: ClsyncHome, remote: FakeRemote):
        messages = []

        result = online.pull_online("team-settings", on_progress=messages.append)

        assert result.repo == "owner/repo"
        assert result.downloaded == 2
        assert (home.repo_dir("owner/repo") / "agents" / "y.md").read_bytes() == AGENT
        assert remote.registry_requests == 1
        assert messages[0] == "Registry entry team-settings: https://github.com/owner/repo"

    def test_pull_online_unknown_name(self, online: RepositorySync, home: ClsyncHome):
        with pytest.raises(RepositoryNotFoundError, match="ghost"):
            online.pull_online("ghost")

        assert not home.repo_dir("owner/repo").exists()

    def test_registry_unavailable(self, online: RepositorySync, remote: FakeRemote):
        remote.registry = None

        with pytest.raises(ApiError, match="online repository list") as exc_info:
            online.online_repos()

        assert exc_info.value.status_code == 404

    def test_registry_not_a_list(self, online: RepositorySync, remote: FakeRemote):
        remote.registry = b"just a string"

        with pytest.raises(ApiError, match="expected a list"):
            online.online_repos()


@pytest.fixture
def git_mocks():
    """Patch every git call made by push."""
    with patch("clsync.git.operations.is_git_available", return_value=True) as available, patch(
        "clsync.git.operations.init_repo"
    ) as init_repo, patch("clsync.git.operations.stage_all") as stage_all, patch(
        "clsync.git.operations.commit", return_value="abc123"
    ) as commit, patch(
        "clsync.git.operations.add_remote", return_value=True
    ) as add_remote, patch(
        "clsync.git.operations.push"
    ) as push, patch(
        "clsync.git.operations.rename_branch"
    ) as rename_branch:
        yield {
            "available": available,
            "init_repo": init_repo,
            "stage_all": stage_all,
            "commit": commit,
            "add_remote": add_remote,
            "push": push,
            "rename_branch": rename_branch,
        }


class TestPush:
    """Tests for RepositorySync.push."""

    @pytest.fixture
    def staged(self, home: ClsyncHome, make_item) -> ClsyncHome:
        home.init()
        make_item(home.local_dir, "skill", "reviewer", "reviews PRs")
        make_item(home.local_dir, "agent", "notifier")
        return home

    def test_git_missing(self, home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path):
        with patch("clsync.git.operations.is_git_available", return_value=False):
            with pytest.raises(ToolMissingError):
                make_sync(home, config, remote, project_dir).push()

    def test_nothing_to_push(
        self, home: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path, git_mocks
    ):
        with pytest.raises(NoMatchingItemsError):
            make_sync(home, config, remote, project_dir).push()

        git_mocks["init_repo"].assert_not_called()

    def test_prepare_without_repo(
        self, staged: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path, git_mocks
    ):
        result = make_sync(staged, config, remote, project_dir).push(message="Initial")

        assert isinstance(result, PreparedPush)
        assert result.prepared == 2
        assert result.temp_path.is_dir()
        assert "git push -u origin main" in result.instructions
        assert len(scan_items(result.temp_path)) == 2

        data = json.loads((result.temp_path / "clsync.json").read_text(encoding="utf-8"))
        assert data["stats"]["total"] == 2
        assert data["author"] == "tester"
        assert "- **skill**: reviewer" in (result.temp_path / "README.md").read_text(encoding="utf-8")

        git_mocks["commit"].assert_called_once_with("Initial", result.temp_path)
        git_mocks["push"].assert_not_called()

    def test_push_to_repo(
        self, staged: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path, git_mocks
    ):
        result = make_sync(staged, config, remote, project_dir).push(repo="owner/settings", force=True)

        assert isinstance(result, PushResult)
        assert result.pushed == 2
        assert result.repo == "owner/settings"

        temp_path = git_mocks["init_repo"].call_args.args[0]
        assert not temp_path.exists()
        git_mocks["commit"].assert_called_once_with("Update clsync settings", temp_path)
        git_mocks["add_remote"].assert_called_once_with("https://github.test/owner/settings.git", temp_path)
        git_mocks["push"].assert_called_once_with(temp_path, branch="main", set_upstream=True, force=True)
        git_mocks["rename_branch"].assert_not_called()

    def test_push_uses_linked_repo(
        self, staged: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path, git_mocks
    ):
        config.push.linked_repo = "owner/linked"

        result = make_sync(staged, config, remote, project_dir).push()

        assert isinstance(result, PushResult)
        assert result.repo == "owner/linked"

    def test_push_retries_after_branch_rename(
        self, staged: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path, git_mocks
    ):
        git_mocks["push"].side_effect = [GitError("src refspec main does not match any"), None]

        result = make_sync(staged, config, remote, project_dir).push(repo="owner/settings")

        assert isinstance(result, PushResult)
        temp_path = git_mocks["init_repo"].call_args.args[0]
        git_mocks["rename_branch"].assert_called_once_with("master", "main", temp_path)
        assert git_mocks["push"].call_count == 2

    def test_push_failure_keeps_temp_dir(
        self, staged: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path, git_mocks
    ):
        git_mocks["push"].side_effect = GitError("denied")

        with pytest.raises(PushError) as exc_info:
            make_sync(staged, config, remote, project_dir).push(repo="owner/settings")

        assert exc_info.value.temp_path is not None
        assert Path(exc_info.value.temp_path).is_dir()
        assert "owner/settings" in exc_info.value.message

    def test_commit_failure_is_push_error(
        self, staged: ClsyncHome, config: ClsyncConfig, remote: FakeRemote, project_dir: Path, git_mocks
    ):
        git_mocks["commit"].side_effect = GitError("Please tell me who you are")

        with pytest.raises(PushError, match="Failed to create commit"):
            make_sync(staged, config, remote, project_dir).push()

    def test_push_scope(
        self,
        home: ClsyncHome,
        config: ClsyncConfig,
        remote: FakeRemote,
        project_dir: Path,
        project_root: Path,
        make_item,
        git_mocks,
    ):
        make_item(project_root, "output-style", "terse")

        result = make_sync(home, config, remote, project_dir).push(Scope.project())

        assert isinstance(result, PreparedPush)
        assert [i.name for i in result.items] == ["terse"]
