"""Atomic placement of files into the cache."""

import logging
import os
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from bincache.errors import BinariesCacheError, CachePermissionError

logger = logging.getLogger(__name__)


def ensure_parent_directory(path: Path) -> None:
    """Create the parent directory of ``path``.

    Raises:
        CachePermissionError: If the directory cannot be created
    """
    try:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        raise CachePermissionError(
            f"Cannot create cache directory {Path(path).parent}: {e}"
        ) from e
    except OSError as e:
        raise BinariesCacheError(f"Cannot create cache directory: {e}") from e


@contextmanager
def staged_file(destination: Path) -> Iterator[Path]:
    """Stage a file next to ``destination`` and rename it into place.

    Yields a path in the destination's directory that does not exist yet. The
    caller writes the artifact there. When the block exits normally and the
    staged file exists, it atomically replaces ``destination``. If the block
    writes nothing, ``destination`` is left untouched. The staged file is
    removed on every exit path, so an interrupted write never becomes visible
    at ``destination``.

    Examples:
        >>> with staged_file(Path("/cache/Foo.framework.zip")) as staging:
        ...     staging.write_bytes(payload)
    """
    destination = Path(destination)
    ensure_parent_directory(destination)
    staging = destination.with_name(f".{destination.name}.{uuid.uuid4().hex}.part")
    try:
        yield staging
        if staging.exists():
            try:
                os.replace(staging, destination)
            except OSError as e:
                logger.error(f"Error moving {staging} to {destination}: {e}")
                raise BinariesCacheError(f"Cannot finalize cache file: {e}") from e
    finally:
        if staging.exists():
            try:
                staging.unlink()
            except OSError as e:
                logger.warning(f"Failed to clean up staged file {staging}: {e}")
