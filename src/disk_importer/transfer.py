"""Stream image content to scratch space or straight to its destination."""

import logging
from pathlib import Path
from typing import BinaryIO

from disk_importer.exceptions import TransferError

logger = logging.getLogger(__name__)

# Only one transfer per scratch directory can be in flight at a time,
# since every transfer writes to this same name.
TEMP_FILE = "tmpimage"

DEFAULT_CHUNK_SIZE = 16777216


def scratch_file_path(scratch_dir: str | Path) -> Path:
    """Return the staging file used inside ``scratch_dir``."""
    return Path(scratch_dir) / TEMP_FILE


def stream_to_file(
    reader: BinaryIO,
    destination: str | Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """
    Copy everything left in ``reader`` into ``destination``.

    The destination is created or truncated. A partially written file is left
    in place on failure.

    Args:
        reader: Source stream.
        destination: File to write.
        chunk_size: Size of chunks to copy (default: 16MB).

    Returns:
        int: Number of bytes written.

    Raises:
        TransferError: If the destination cannot be written or the source fails mid-read.
    """
    destination = Path(destination)
    written = 0

    try:
        with destination.open("wb") as f:
            while True:
                chunk = reader.read(chunk_size)
                if not chunk:
                    break
                f.write(chunk)
                written += len(chunk)
    except Exception as e:
        logger.exception("Error writing %s after %d bytes: %s", destination, written, e)
        raise TransferError(f"Failed to write {destination}: {e}") from e

    logger.info("Wrote %d bytes to %s", written, destination)
    return written


def stream_to_scratch(
    reader: BinaryIO,
    scratch_dir: str | Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> tuple[Path, int]:
    """
    Copy everything left in ``reader`` into the scratch file of ``scratch_dir``.

    Returns:
        tuple[Path, int]: The scratch file written and its size in bytes.

    Raises:
        TransferError: If ``scratch_dir`` is not an existing directory, or the copy fails.
    """
    scratch = Path(scratch_dir)
    if not scratch.is_dir():
        raise TransferError(f"Scratch space is not a directory: {scratch}")

    target = scratch_file_path(scratch)
    return target, stream_to_file(reader, target, chunk_size)
