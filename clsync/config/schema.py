# clsync Configuration Schema
# Pydantic models for YAML configuration validation

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class PathsConfig(BaseModel):
    """Root directories used by the engine."""

    home: str = Field(default="~/.clsync", description="clsync home (manifest, staging area, repo caches)")
    user_root: str = Field(default="~/.claude", description="User-level settings root")
    project_root: str = Field(
        default=".claude",
        description="Project-level settings root, relative paths resolve against the working directory",
    )

    @field_validator("home", "user_root")
    @classmethod
    def expand_paths(cls, v: str) -> str:
        """Expand ~ in paths."""
        return str(Path(v).expanduser())


class GitHubConfig(BaseModel):
    """Remote hosting API settings."""

    api_url: str = Field(default="https://api.github.com", description="REST API base URL")
    raw_url: str = Field(default="https://raw.githubusercontent.com", description="Raw content base URL")
    web_url: str = Field(default="https://github.com", description="Base URL used to build clone URLs")
    default_branch: str = Field(default="main", description="Branch used when a reference names none")
    token_env: str = Field(default="GITHUB_TOKEN", description="Environment variable holding a bearer token")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    registry_url: str = Field(
        default="https://raw.githubusercontent.com/workromancer/clsync-repos/refs/heads/main/repos.yaml",
        description="repos.yaml listing shared settings repositories",
    )

    @field_validator("api_url", "raw_url", "web_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs."""
        return v.rstrip("/")


class PushConfig(BaseModel):
    """Defaults for push and descriptor generation."""

    linked_repo: str | None = Field(default=None, description="Repository pushed to when none is given")
    message: str = Field(default="Update clsync settings", description="Default commit message")
    author: str | None = Field(default=None, description="Descriptor author, defaults to the login name")
    description: str = Field(default="Claude Code settings repository", description="Descriptor description")


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")
    log_file: str | None = Field(default=None, description="Path to log file")

    @field_validator("log_file")
    @classmethod
    def expand_optional_paths(cls, v: str | None) -> str | None:
        """Expand ~ in optional paths."""
        if v is None:
            return None
        return str(Path(v).expanduser())


class ClsyncConfig(BaseModel):
    """Root configuration model for clsync."""

    paths: PathsConfig = Field(default_factory=PathsConfig, description="Root directories")
    github: GitHubConfig = Field(default_factory=GitHubConfig, description="Remote API settings")
    push: PushConfig = Field(default_factory=PushConfig, description="Push defaults")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")

    @property
    def home_path(self) -> Path:
        """clsync home directory."""
        return Path(self.paths.home).expanduser()

    @property
    def user_root_path(self) -> Path:
        """User-level settings root."""
        return Path(self.paths.user_root).expanduser()

    def project_root_path(self, cwd: Path | None = None) -> Path:
        """Project-level settings root for a working directory."""
        root = Path(self.paths.project_root).expanduser()
        if root.is_absolute():
            return root
        return (cwd or Path.cwd()) / root
