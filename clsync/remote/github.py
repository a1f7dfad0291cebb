# clsync GitHub Client
# Repository reference parsing and tree / raw-content fetches over httpx

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urlparse

import httpx

from clsync.config.schema import GitHubConfig
from clsync.errors import (
    ApiError,
    EmptyRepositoryError,
    InvalidReferenceError,
    RateLimitError,
    RepositoryNotFoundError,
)
from clsync.sync.descriptor import DESCRIPTOR_FILE, RepositoryDescriptor, parse_descriptor

USER_AGENT = "clsync"
DEFAULT_BRANCH = "main"

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")
_SSH_PATTERN = re.compile(r"^git@[^:]+:(?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$")


@dataclass(frozen=True)
class RepoReference:
    """A resolved ``owner/repo`` on a branch."""

    owner: str
    repo: str
    branch: str = DEFAULT_BRANCH

    @property
    def slug(self) -> str:
        """``owner/repo`` key used for caches and the manifest."""
        return f"{self.owner}/{self.repo}"

    def clone_url(self, web_url: str = "https://github.com") -> str:
        """HTTPS clone URL."""
        return f"{web_url.rstrip('/')}/{self.slug}.git"

    def __str__(self) -> str:
        return self.slug


@dataclass(frozen=True)
class TreeEntry:
    """One entry of a recursive tree listing."""

    path: str
    type: str
    sha: str = ""

    @property
    def is_blob(self) -> bool:
        return self.type == "blob"


def _validated(owner: str, repo: str, branch: str, original: str) -> RepoReference:
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not owner or not repo or not _NAME_PATTERN.match(owner) or not _NAME_PATTERN.match(repo):
        raise InvalidReferenceError(f"Invalid repository reference: {original!r} (expected owner/repo or a URL)")
    if not branch:
        raise InvalidReferenceError(f"Invalid repository reference: {original!r} (empty branch)")
    return RepoReference(owner=owner, repo=repo, branch=branch)


def parse_repo_reference(value: str, default_branch: str = DEFAULT_BRANCH) -> RepoReference:
    """
    Parse a repository reference.

    Supported forms::

        owner/repo
        https://github.com/owner/repo
        https://github.com/owner/repo.git
        https://github.com/owner/repo/tree/<branch>
        git@github.com:owner/repo.git

    Args:
        value: Reference string.
        default_branch: Branch used unless a URL names one.

    Returns:
        RepoReference.

    Raises:
        InvalidReferenceError: If the reference can't be parsed.
    """
    text = (value or "").strip()
    if not text:
        raise InvalidReferenceError("Repository reference is empty")

    ssh = _SSH_PATTERN.match(text)
    if ssh:
        return _validated(ssh.group("owner"), ssh.group("repo"), default_branch, value)

    if text.startswith(("http://", "https://")):
        parsed = urlparse(text)
        parts = [p for p in parsed.path.split("/") if p]
        if len(parts) < 2:
            raise InvalidReferenceError(f"Invalid repository URL: {value!r}")
        branch = default_branch
        if len(parts) >= 4 and parts[2] == "tree":
            branch = "/".join(parts[3:])
        elif len(parts) > 2:
            raise InvalidReferenceError(f"Invalid repository URL: {value!r}")
        return _validated(parts[0], parts[1], branch, value)

    parts = text.split("/")
    if len(parts) != 2:
        raise InvalidReferenceError(f"Invalid repository reference: {value!r} (expected owner/repo or a URL)")
    return _validated(parts[0], parts[1], default_branch, value)


class GitHubClient:
    """
    Minimal client for the GitHub tree and raw-content endpoints.

    A token from the configured environment variable is sent as a bearer
    credential when present; without one requests are anonymous.
    """

    def __init__(
        self,
        config: Optional[GitHubConfig] = None,
        *,
        token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize client.

        Args:
            config: Remote API settings.
            token: Explicit token, overrides the environment.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self.config = config or GitHubConfig()
        self.token = token if token is not None else os.environ.get(self.config.token_env) or None

        headers = {"User-Agent": USER_AGENT}
        self._client = httpx.Client(
            headers=headers,
            timeout=self.config.timeout,
            follow_redirects=True,
            transport=transport,
        )

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _api_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get(self, url: str, *, headers: Optional[dict[str, str]] = None, params: Optional[dict] = None) -> httpx.Response:
        try:
            return self._client.get(url, headers=headers, params=params)
        except httpx.HTTPError as e:
            raise ApiError(f"Request to {url} failed: {e}") from e

    def fetch_tree(self, ref: RepoReference) -> list[TreeEntry]:
        """
        Fetch the recursive file tree of a branch.

        Args:
            ref: Repository reference.

        Returns:
            Tree entries in the order the API lists them.

        Raises:
            RepositoryNotFoundError: Repository or branch doesn't exist.
            EmptyRepositoryError: Repository has no commits.
            RateLimitError: Rate limit exhausted.
            ApiError: Any other failure.
        """
        url = f"{self.config.api_url}/repos/{ref.owner}/{ref.repo}/git/trees/{quote(ref.branch, safe='')}"
        response = self._get(url, headers=self._api_headers(), params={"recursive": "1"})

        if response.status_code == 404:
            raise RepositoryNotFoundError(f"Repository not found: {ref.slug} (branch: {ref.branch})")
        if response.status_code == 409:
            raise EmptyRepositoryError(f"Repository {ref.slug} is empty (no commits)")
        if response.status_code in (403, 429) and response.headers.get("X-RateLimit-Remaining") == "0":
            raise RateLimitError(
                f"GitHub API rate limit exceeded. Set {self.config.token_env} for a higher limit.",
                status_code=response.status_code,
            )
        if response.is_error:
            raise ApiError(
                f"GitHub API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(f"GitHub API returned invalid JSON for {ref.slug}") from e
        if not isinstance(data, dict):
            raise ApiError(f"GitHub API returned an unexpected tree for {ref.slug}")

        entries: list[TreeEntry] = []
        for raw in data.get("tree") or []:
            if not isinstance(raw, dict) or not raw.get("path"):
                continue
            entries.append(TreeEntry(path=str(raw["path"]), type=str(raw.get("type", "")), sha=str(raw.get("sha", ""))))
        return entries

    def raw_url(self, ref: RepoReference, path: str) -> str:
        """Raw-content URL of a file on the branch."""
        return f"{self.config.raw_url}/{ref.owner}/{ref.repo}/{quote(ref.branch)}/{quote(path)}"

    def fetch_file(self, ref: RepoReference, path: str) -> bytes:
        """
        Fetch raw file content.

        Args:
            ref: Repository reference.
            path: File path inside the repository.

        Returns:
            File bytes.

        Raises:
            ApiError: If the file can't be fetched.
        """
        return self.fetch_url(self.raw_url(ref, path), label=path)

    def fetch_url(self, url: str, *, label: Optional[str] = None) -> bytes:
        """
        Fetch any URL without API headers.

        Raises:
            ApiError: On transport failure or an error status.
        """
        response = self._get(url)
        if response.is_error:
            raise ApiError(f"Failed to fetch {label or url} ({response.status_code})", status_code=response.status_code)
        return response.content

    def fetch_descriptor(self, ref: RepoReference) -> Optional[RepositoryDescriptor]:
        """
        Fetch and parse the repository's clsync.json.

        Returns:
            The descriptor, or None if it is absent or invalid.
        """
        try:
            content = self.fetch_file(ref, DESCRIPTOR_FILE)
        except ApiError:
            return None
        return parse_descriptor(content)
