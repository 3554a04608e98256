"""Classify disk images by their leading bytes."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import logging
import lzma
import struct
import zlib

from disk_importer.exceptions import InvalidImageError
from disk_importer.streams import PeekableStream, open_gzip, open_xz

logger = logging.getLogger(__name__)

# Large enough for every header below (the VDI signature sits at 0x40,
# the qcow2 v2 header is 72 bytes).
SNIFF_SIZE = 512


class ImageFormat(Enum):
    """Disk image formats recognized by their header."""

    RAW = "raw"
    QCOW2 = "qcow2"
    VMDK = "vmdk"
    VDI = "vdi"
    VHD = "vhd"
    VHDX = "vhdx"


class Compression(Enum):
    """Stream compression applied on top of an image."""

    GZIP = "gz"
    XZ = "xz"


@dataclass(frozen=True)
class SniffResult:
    """Outcome of probing a stream."""

    stream: PeekableStream
    image_format: ImageFormat
    compression: Compression | None = None

    @property
    def needs_scratch(self) -> bool:
        """Container formats must be staged in scratch space before conversion."""
        return self.image_format is not ImageFormat.RAW


_COMPRESSION_MAGIC: dict[Compression, bytes] = {
    Compression.GZIP: b"\x1f\x8b\x08",
    Compression.XZ: b"\xfd7zXZ\x00",
}

_OPENERS: dict[Compression, Callable[[PeekableStream], PeekableStream]] = {
    Compression.GZIP: open_gzip,
    Compression.XZ: open_xz,
}

# (format, offset, magic)
_IMAGE_MAGIC: list[tuple[ImageFormat, int, bytes]] = [
    (ImageFormat.QCOW2, 0, b"QFI\xfb"),
    (ImageFormat.VMDK, 0, b"KDMV"),
    (ImageFormat.VHDX, 0, b"vhdxfile"),
    (ImageFormat.VHD, 0, b"conectix"),
    (ImageFormat.VDI, 0x40, b"\x7f\x10\xda\xbe"),
]

_QCOW2_HEADER_SIZE = 72


def _check_qcow2(prefix: bytes) -> None:
    if len(prefix) < _QCOW2_HEADER_SIZE:
        raise InvalidImageError(
            f"Truncated qcow2 header: {len(prefix)} of {_QCOW2_HEADER_SIZE} bytes"
        )
    _, version, _, _, cluster_bits = struct.unpack_from(">4sIQII", prefix)
    if version not in (2, 3):
        raise InvalidImageError(f"Unsupported qcow2 version: {version}")
    if not 9 <= cluster_bits <= 21:
        raise InvalidImageError(f"Invalid qcow2 cluster bits: {cluster_bits}")


def _check_vmdk(prefix: bytes) -> None:
    if len(prefix) < 8:
        raise InvalidImageError("Truncated vmdk header")
    (version,) = struct.unpack_from("<I", prefix, 4)
    if version not in (1, 2, 3):
        raise InvalidImageError(f"Unsupported vmdk version: {version}")


_VALIDATORS: dict[ImageFormat, Callable[[bytes], None]] = {
    ImageFormat.QCOW2: _check_qcow2,
    ImageFormat.VMDK: _check_vmdk,
}


def detect_compression(prefix: bytes) -> Compression | None:
    """Return the compression whose magic starts ``prefix``, if any."""
    for compression, magic in _COMPRESSION_MAGIC.items():
        if prefix.startswith(magic):
            return compression
    return None


def detect_format(prefix: bytes) -> ImageFormat:
    """
    Classify an image from its leading bytes.

    Anything non-empty without a known signature is treated as raw.

    Raises:
        InvalidImageError: If the prefix is empty, or carries a known signature
            followed by a truncated or inconsistent header.
    """
    if not prefix:
        raise InvalidImageError("Image is empty")

    for image_format, offset, magic in _IMAGE_MAGIC:
        if prefix[offset : offset + len(magic)] == magic:
            validate = _VALIDATORS.get(image_format)
            if validate is not None:
                validate(prefix)
            return image_format

    return ImageFormat.RAW


def _peek(stream: PeekableStream, size: int) -> bytes:
    try:
        return stream.peek(size)
    except (OSError, ValueError, EOFError, lzma.LZMAError, zlib.error) as e:
        raise InvalidImageError(f"Unable to read image header: {e}") from e


def sniff(stream: PeekableStream, size: int = SNIFF_SIZE) -> SniffResult:
    """
    Probe a stream and classify the image it carries.

    A gzip or xz stream is unwrapped one level and its decompressed content is
    classified instead; the returned stream then yields decompressed bytes.

    Args:
        stream: Stream positioned at the start of the object.
        size: Number of leading bytes to inspect.

    Returns:
        SniffResult: Stream to copy from, detected format and compression.

    Raises:
        InvalidImageError: If the stream cannot be read or is not a usable image.
    """
    prefix = _peek(stream, size)
    compression = detect_compression(prefix)

    if compression is not None:
        logger.debug("Detected %s compression", compression.value)
        stream = _OPENERS[compression](stream)
        prefix = _peek(stream, size)

    image_format = detect_format(prefix)
    logger.debug(
        "Sniffed %d bytes: format=%s compression=%s",
        len(prefix),
        image_format.value,
        compression.value if compression else None,
    )
    return SniffResult(stream=stream, image_format=image_format, compression=compression)
