"""
Filesystem utilities for rangekeeper.

Safe helpers for reading manifests, writing files atomically (used for both
the version cache and rewritten manifests) and removing files. Filesystem
errors are normalized to :class:`FileOperationError`.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from datetime import datetime
from typing import Optional, Union

from rangekeeper.utils.logger import get_logger
from rangekeeper.exceptions import FileOperationError
from rangekeeper.constants import MAX_FILE_SIZE

logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Resolve *path*, requiring it to be an existing regular file."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def atomic_write(target: PathLike, content: str) -> None:
    """Write *content* to *target* so readers never see a partial file.

    The text goes to a temporary sibling of *target* which is then renamed
    over it. Missing parent directories are created.

    Raises:
        FileOperationError: The directory, temporary file or rename failed.
    """
    target = Path(target)
    temp_path: Optional[Path] = None

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(target.parent),
            delete=False,
            prefix=f".{target.name}.",
            suffix=".tmp",
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

        os.replace(temp_path, target)

    except OSError as exc:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
                logger.debug("Cleaned up temporary file: %s", temp_path)
            except OSError as cleanup_exc:
                logger.warning(
                    "Failed to clean up temporary file %s: %s",
                    temp_path,
                    cleanup_exc,
                )

        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc


def _create_backup(path: Path) -> Path:
    """Copy *path* to ``<name>.<timestamp>.backup`` next to it."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_path = path.with_name(f"{path.name}.{timestamp}.backup")

    try:
        shutil.copy2(path, backup_path)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to create backup: {exc}",
            file_path=str(path),
            operation="backup",
            original_error=exc,
        ) from exc

    logger.debug("Created backup: %s", backup_path)
    return backup_path


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Read a text file, refusing anything larger than *max_size* bytes.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed size in bytes (``None`` disables the check).
        encoding: Text encoding.

    Returns:
        File contents.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_write_file(
    file_path: PathLike,
    content: str,
    *,
    create_backup: bool = False,
) -> Optional[Path]:
    """Atomically replace a file's contents, optionally keeping a backup.

    Returns:
        Path to the backup, if one was created.
    """
    path = Path(file_path)
    backup: Optional[Path] = None

    if create_backup and path.is_file():
        backup = _create_backup(path)

    atomic_write(path, content)
    return backup


def remove_file(file_path: PathLike) -> bool:
    """Delete a file if it exists.

    Returns:
        ``True`` if the file was removed, ``False`` if it was absent or
        could not be deleted.
    """
    path = Path(file_path)
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.debug("Could not delete %s: %s", path, exc)
        return False
    return True
