# clsync Errors
# Exception taxonomy shared by the engine, the remote client and the CLI

from typing import Optional


class ClsyncError(Exception):
    """Base exception for all clsync errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ItemNotFoundError(ClsyncError):
    """An item is not present in the scanned root."""


class RepositoryNotFoundError(ClsyncError):
    """The remote repository or branch does not resolve."""


class ConflictError(ClsyncError):
    """An item with the same name and type already exists at the destination."""

    def __init__(self, message: str, suggested_name: str):
        self.suggested_name = suggested_name
        super().__init__(message)


class InvalidMoveError(ClsyncError):
    """A promote or demote can't run: same root on both sides or a bad target name."""


class InvalidReferenceError(ClsyncError):
    """A repository reference could not be parsed."""


class EmptyRepositoryError(ClsyncError):
    """The remote repository has no commits."""


class NoMatchingItemsError(ClsyncError):
    """A source exists but contains no recognized item layout."""


class ApiError(ClsyncError):
    """Transport-level or HTTP failure talking to the hosting API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(ApiError):
    """The hosting API rate limit is exhausted."""


class ToolMissingError(ClsyncError):
    """The git executable is not available."""


class PushError(ClsyncError):
    """Pushing the prepared directory to the remote failed."""

    def __init__(self, message: str, temp_path: Optional[str] = None):
        self.temp_path = temp_path
        super().__init__(message)
