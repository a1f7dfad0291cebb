# clsync Path Utilities
# Safe file operations with atomic writes

import os
import shutil
import tempfile
from pathlib import Path


def expand_path(path: str | Path, *, base: Path | None = None) -> Path:
    """
    Expand ~ and environment variables in path.

    Relative paths are anchored at ``base`` when given, otherwise at the
    current working directory.

    Args:
        path: Path string or Path object.
        base: Optional directory relative paths are resolved against.

    Returns:
        Expanded absolute Path object.
    """
    path_str = str(path)
    # Expand ~ first, then environment variables
    path_str = os.path.expanduser(path_str)
    path_str = os.path.expandvars(path_str)
    result = Path(path_str)
    if not result.is_absolute() and base is not None:
        result = base / result
    return result.resolve()


def ensure_dir(path: Path) -> Path:
    """
    Ensure directory exists, creating if necessary.

    Args:
        path: Directory path.

    Returns:
        The path that was ensured.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def _temp_sibling(dest: Path) -> Path:
    """Hidden temporary path next to ``dest`` so scanners skip it."""
    return dest.with_name(f".{dest.name}.tmp.{os.getpid()}")


def safe_copy(source: Path, dest: Path, *, preserve_metadata: bool = True) -> None:
    """
    Atomically copy file or directory, replacing any existing destination.

    Uses a temporary file/directory and atomic rename to prevent
    partial copies in case of failure.

    Args:
        source: Source path.
        dest: Destination path.
        preserve_metadata: Whether to preserve file metadata (default True).

    Raises:
        FileNotFoundError: If source doesn't exist.
    """
    if not source.exists():
        raise FileNotFoundError(f"Source does not exist: {source}")

    ensure_dir(dest.parent)
    temp_dest = _temp_sibling(dest)

    if source.is_dir():
        try:
            if temp_dest.exists():
                shutil.rmtree(temp_dest)
            shutil.copytree(source, temp_dest)
            if dest.is_dir():
                shutil.rmtree(dest)
            elif dest.exists():
                dest.unlink()
            temp_dest.rename(dest)
        except OSError:
            if temp_dest.exists():
                shutil.rmtree(temp_dest)
            raise
    else:
        try:
            if preserve_metadata:
                shutil.copy2(source, temp_dest)
            else:
                shutil.copy(source, temp_dest)
            if dest.is_dir():
                shutil.rmtree(dest)
            # Atomic rename
            os.replace(temp_dest, dest)
        except OSError:
            if temp_dest.exists():
                temp_dest.unlink()
            raise


def safe_delete(path: Path, *, missing_ok: bool = False) -> bool:
    """
    Safely delete file or directory.

    Args:
        path: Path to delete.
        missing_ok: If True, don't raise error if path doesn't exist.

    Returns:
        True if something was deleted, False if path didn't exist.

    Raises:
        FileNotFoundError: If path doesn't exist and missing_ok is False.
    """
    if not path.exists():
        if missing_ok:
            return False
        raise FileNotFoundError(f"Path does not exist: {path}")

    if path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink()
    return True


def atomic_write(path: Path, content: str | bytes, *, encoding: str = "utf-8") -> None:
    """
    Atomically write content to file.

    Uses a temporary file and atomic rename.

    Args:
        path: Target file path.
        content: Content to write (str or bytes).
        encoding: Encoding for string content (default utf-8).
    """
    ensure_dir(path.parent)

    # Create temp file in same directory for atomic rename
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        if isinstance(content, str):
            with os.fdopen(fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def get_relative_path(path: Path, base: Path) -> Path | None:
    """
    Get path relative to base, or None if not relative.

    Args:
        path: Path to make relative.
        base: Base path.

    Returns:
        Relative path or None if not relative.
    """
    try:
        return path.relative_to(base)
    except ValueError:
        return None


def is_within(path: Path, base: Path) -> bool:
    """
    Check that ``path`` stays inside ``base`` once resolved.

    Args:
        path: Candidate path.
        base: Directory it must not escape.

    Returns:
        True if path resolves to base or a descendant of it.
    """
    return get_relative_path(path.resolve(), base.resolve()) is not None
