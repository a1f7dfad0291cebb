# Tests for clsync.cli
# CLI commands using Click testing

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from clsync import __version__
from clsync.cli import cli
from clsync.config.schema import ClsyncConfig


@pytest.fixture
def run(config_file: Path, project_dir: Path, monkeypatch: pytest.MonkeyPatch):
    """Invoke the CLI against the temp config from inside the project."""
    monkeypatch.chdir(project_dir)
    runner = CliRunner()

    def _run(*args: str):
        return runner.invoke(cli, ["--config", str(config_file), *args])

    return _run


class TestCliGroup:
    """Tests for main CLI group."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "clsync" in result.output
        assert "promote" in result.output
        assert "pull" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "clsync" in result.output
        assert __version__ in result.output


class TestInitAndStatus:
    """Tests for init and status."""

    def test_init_creates_home(self, run, config: ClsyncConfig):
        result = run("init")

        assert result.exit_code == 0
        assert "Configuration exists" in result.output
        assert (config.home_path / "local" / "skills").is_dir()
        assert (config.home_path / "manifest.json").is_file()

    def test_init_writes_missing_config(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CLSYNC_HOME", str(temp_dir / "home"))
        config_path = temp_dir / "fresh" / "config.yaml"

        result = CliRunner().invoke(cli, ["--config", str(config_path), "init"])

        assert result.exit_code == 0
        assert config_path.is_file()
        assert (temp_dir / "home" / "local").is_dir()

    def test_status(self, run, user_root: Path, make_item):
        make_item(user_root, "agent", "notifier")

        result = run("status")

        assert result.exit_code == 0
        assert "clsync status" in result.output
        assert "User: 1 item(s)" in result.output


class TestStaging:
    """Tests for stage, list and unstage."""

    def test_stage_list_unstage(self, run, user_root: Path, make_item):
        make_item(user_root, "agent", "notifier", "sends alerts")

        staged = run("stage", "notifier")
        assert staged.exit_code == 0
        assert "Staged agent notifier from user" in staged.output

        listed = run("list", "--local")
        assert listed.exit_code == 0
        assert "notifier" in listed.output
        assert "sends alerts" in listed.output

        unstaged = run("unstage", "notifier")
        assert unstaged.exit_code == 0
        assert "Unstaged agent notifier" in unstaged.output
        assert "No items" in run("list", "-l").output

    def test_stage_all_from_project(self, run, project_root: Path, make_item):
        make_item(project_root, "skill", "reviewer")
        make_item(project_root, "output-style", "terse")

        result = run("stage", "--all", "-p")

        assert result.exit_code == 0
        assert "reviewer" in result.output
        assert "terse" in result.output

    def test_stage_missing_item(self, run):
        result = run("stage", "ghost")
        assert result.exit_code == 1
        assert "ghost" in result.output

    def test_stage_requires_name(self, run):
        result = run("stage")
        assert result.exit_code == 2
        assert "NAME or --all" in result.output

    def test_conflicting_scope_flags(self, run):
        result = run("list", "-p", "-u")
        assert result.exit_code == 2
        assert "only one of" in result.output

    def test_list_empty_repo_cache(self, run):
        result = run("list", "-r", "owner/repo")
        assert result.exit_code == 0
        assert "No items in owner/repo" in result.output


class TestScopeMoves:
    """Tests for promote, demote and scopes."""

    def test_promote(self, run, project_root: Path, user_root: Path, make_item):
        make_item(project_root, "skill", "x")

        result = run("promote", "x")

        assert result.exit_code == 0
        assert "Moved skill x" in result.output
        assert (user_root / "skills" / "x" / "SKILL.md").is_file()

    def test_promote_conflict_shows_suggestion(self, run, project_root: Path, user_root: Path, make_item):
        make_item(project_root, "skill", "x")
        make_item(user_root, "skill", "x")

        result = run("promote", "x")

        assert result.exit_code == 1
        assert "Suggested name: x-1" in result.output
        assert (project_root / "skills" / "x").exists()

    def test_demote_with_rename(self, run, project_root: Path, user_root: Path, make_item):
        make_item(user_root, "agent", "notifier")
        make_item(project_root, "agent", "notifier")

        result = run("demote", "notifier", "--rename", "notifier-1")

        assert result.exit_code == 0
        assert (project_root / "agents" / "notifier-1.md").is_file()
        assert not (user_root / "agents" / "notifier.md").exists()

    def test_promote_short_rename_flag(self, run, project_root: Path, user_root: Path, make_item):
        make_item(project_root, "skill", "x")

        result = run("promote", "x", "-r", "y")

        assert result.exit_code == 0
        assert (user_root / "skills" / "y" / "SKILL.md").is_file()

    def test_rename_outside_scope_refused(self, run, project_root: Path, user_root: Path, make_item):
        make_item(project_root, "skill", "x")

        result = run("promote", "x", "-r", "../x")

        assert result.exit_code == 1
        assert "Invalid item name" in result.output
        assert (project_root / "skills" / "x" / "SKILL.md").is_file()
        assert not (user_root / "x").exists()

    def test_promote_same_root_refused(
        self, run, config_file: Path, sample_config: dict, project_dir: Path, make_item
    ):
        sample_config["paths"]["user_root"] = str(project_dir / ".claude")
        config_file.write_text(yaml.dump(sample_config, default_flow_style=False), encoding="utf-8")
        make_item(project_dir / ".claude", "agent", "notifier")

        result = run("promote", "notifier", "--force")

        assert result.exit_code == 1
        assert "same directory" in result.output
        assert (project_dir / ".claude" / "agents" / "notifier.md").is_file()

    def test_scopes(self, run, project_root: Path, user_root: Path, make_item):
        make_item(project_root, "skill", "p")
        make_item(user_root, "agent", "u")

        result = run("scopes")

        assert result.exit_code == 0
        assert "p" in result.output
        assert "u" in result.output

    def test_reconcile_nothing_pending(self, run):
        result = run("reconcile")
        assert result.exit_code == 0


class TestRemoteCommands:
    """Tests for remote commands that fail before any request."""

    def test_browse_invalid_reference(self, run):
        result = run("browse", "not a repo")
        assert result.exit_code == 1

    def test_online_help(self):
        result = CliRunner().invoke(cli, ["online", "--help"])
        assert result.exit_code == 0
        assert "online repository registry" in result.output
        assert "--force" in result.output

    def test_repos_empty(self, run):
        result = run("repos")
        assert result.exit_code == 0
        assert "No repositories pulled yet" in result.output


class TestLinkCommand:
    """Tests for link."""

    def test_link_and_unlink(self, run, config_file: Path):
        result = run("link", "https://github.com/owner/settings")
        assert result.exit_code == 0
        assert "Linked owner/settings" in result.output

        data = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        assert data["push"]["linked_repo"] == "owner/settings"
        assert data["push"]["author"] == "tester"
        assert "Linked repository: owner/settings" in run("link").output

        assert run("link", "--unlink").exit_code == 0
        data = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        assert data["push"]["linked_repo"] is None

    def test_link_shows_none(self, run):
        result = run("link")
        assert result.exit_code == 0
        assert "No repository linked" in result.output


class TestConfigCommands:
    """Tests for config subcommands."""

    def test_validate(self, run):
        result = run("config", "validate")
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_validate_invalid(self, run, config_file: Path):
        config_file.write_text("output:\n  verbose: notabool\n", encoding="utf-8")

        result = run("config", "validate")

        assert result.exit_code == 1
        assert "verbose" in result.output

    def test_show(self, run):
        result = run("config", "show")
        assert result.exit_code == 0
        assert "api.github.test" in result.output
        assert "linked_repo" in result.output

    def test_config_init_existing(self, run):
        result = run("config", "init")
        assert result.exit_code == 0
        assert "already exists" in result.output
