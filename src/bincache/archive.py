"""Archive access needed by the cache.

Only single-entry extraction lives here; unpacking whole archives happens
downstream of the cache.
"""

import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath


class ArchiveError(Exception):
    """Raised when an entry cannot be extracted from an archive."""

    pass


def extract_entry(archive_path: Path, member: str, destination_dir: Path) -> Path:
    """Extract one entry of a zip archive into a directory.

    The entry is written under its base name, so nested member paths never
    escape ``destination_dir``.

    Args:
        archive_path: Path to the zip archive
        member: Path of the entry inside the archive
        destination_dir: Directory to write the entry into

    Returns:
        Path to the extracted file

    Raises:
        ArchiveError: If the archive is unreadable or has no such entry
    """
    output_path = Path(destination_dir) / PurePosixPath(member).name
    try:
        with zipfile.ZipFile(archive_path) as archive:
            with archive.open(member) as source, open(output_path, "wb") as target:
                shutil.copyfileobj(source, target)
    except KeyError as e:
        raise ArchiveError(f"{member} not found in {archive_path}") from e
    except (
        zipfile.BadZipFile,
        zlib.error,
        RuntimeError,
        NotImplementedError,
        EOFError,
        OSError,
    ) as e:
        # Corrupt, encrypted or unsupported entries count as unreadable
        raise ArchiveError(f"Cannot read {member} from {archive_path}: {e}") from e
    return output_path
