# clsync Scopes
# User / project / custom root references resolved at call time

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from clsync.config.schema import ClsyncConfig
from clsync.utils.paths import expand_path


class ScopeKind(str, Enum):
    """Kinds of settings roots."""

    USER = "user"
    PROJECT = "project"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Scope:
    """A reference to a settings root, resolved to a path only when needed."""

    kind: ScopeKind
    custom_path: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.kind == ScopeKind.CUSTOM and self.custom_path is None:
            raise ValueError("Custom scope requires a path")
        if self.kind != ScopeKind.CUSTOM and self.custom_path is not None:
            raise ValueError(f"{self.kind.value} scope does not take a path")

    @classmethod
    def user(cls) -> Scope:
        return cls(ScopeKind.USER)

    @classmethod
    def project(cls) -> Scope:
        return cls(ScopeKind.PROJECT)

    @classmethod
    def custom(cls, path: str | Path) -> Scope:
        return cls(ScopeKind.CUSTOM, Path(path))

    def resolve(self, config: ClsyncConfig, cwd: Optional[Path] = None) -> Path:
        """
        Resolve the scope to a concrete root directory.

        Args:
            config: Configuration holding the user and project roots.
            cwd: Working directory for project and relative custom roots.

        Returns:
            Absolute root path.
        """
        if self.kind == ScopeKind.USER:
            return config.user_root_path
        if self.kind == ScopeKind.PROJECT:
            return config.project_root_path(cwd)
        return expand_path(self.custom_path, base=cwd or Path.cwd())

    @property
    def label(self) -> str:
        """Short human-readable name."""
        if self.kind == ScopeKind.CUSTOM:
            return str(self.custom_path)
        return self.kind.value

    def __str__(self) -> str:
        return self.label
