# clsync Test Fixtures
# Pytest fixtures for clsync tests

import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Optional

import pytest
import yaml

from clsync.config.schema import ClsyncConfig
from clsync.sync.home import ClsyncHome


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep environment overrides from leaking into tests."""
    for name in ("CLSYNC_CONFIG", "CLSYNC_HOME", "GITHUB_TOKEN"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Working directory of a project."""
    project = temp_dir / "project"
    project.mkdir()
    return project


@pytest.fixture
def sample_config(temp_dir: Path) -> dict:
    """Configuration dict pointing every root into the temp dir."""
    return {
        "paths": {
            "home": str(temp_dir / "clsync-home"),
            "user_root": str(temp_dir / "user" / ".claude"),
            "project_root": ".claude",
        },
        "github": {
            "api_url": "https://api.github.test",
            "raw_url": "https://raw.github.test",
            "web_url": "https://github.test",
        },
        "push": {"author": "tester"},
        "output": {"verbose": False, "colored": False},
    }


@pytest.fixture
def config(sample_config: dict) -> ClsyncConfig:
    """Validated configuration."""
    return ClsyncConfig.model_validate(sample_config)


@pytest.fixture
def config_file(temp_dir: Path, sample_config: dict) -> Path:
    """Write the sample configuration to a file."""
    config_path = temp_dir / "config" / "config.yaml"
    config_path.parent.mkdir(parents=True)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config, f, default_flow_style=False)

    return config_path


@pytest.fixture
def home(config: ClsyncConfig) -> ClsyncHome:
    """clsync home inside the temp dir."""
    return ClsyncHome.from_config(config)


@pytest.fixture
def user_root(config: ClsyncConfig) -> Path:
    """User-level settings root."""
    return config.user_root_path


@pytest.fixture
def project_root(config: ClsyncConfig, project_dir: Path) -> Path:
    """Project-level settings root."""
    return config.project_root_path(project_dir)


@pytest.fixture
def make_item() -> Callable[..., Path]:
    """Factory writing an item under a root."""

    def _make(
        root: Path,
        item_type: str,
        name: str,
        description: Optional[str] = None,
        body: str = "Body",
    ) -> Path:
        frontmatter = f"---\nname: {name}\ndescription: {description}\n---\n\n" if description else ""
        content = f"{frontmatter}# {name}\n\n{body}\n"

        if item_type == "skill":
            path = root / "skills" / name
            path.mkdir(parents=True, exist_ok=True)
            (path / "SKILL.md").write_text(content, encoding="utf-8")
            return path

        directory = {"agent": "agents", "output-style": "output-styles"}[item_type]
        path = root / directory / f"{name}.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _make
