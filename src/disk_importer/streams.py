"""Byte stream wrappers used while classifying and copying images."""

import gzip
import logging
import lzma
from typing import BinaryIO

logger = logging.getLogger(__name__)


class PeekableStream:
    """
    Read-only stream that can look ahead without consuming data.

    Peeked bytes are buffered and handed out again by ``read()``, so a format
    probe never loses the start of the object. ``close()`` also closes the
    parent stream when this one wraps a decompressor.
    """

    def __init__(self, stream: BinaryIO, parent: "PeekableStream | None" = None) -> None:
        self._stream = stream
        self._parent = parent
        self._buffer = b""
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return True

    def peek(self, size: int) -> bytes:
        """
        Return up to ``size`` leading bytes without consuming them.

        Reads from the underlying stream until ``size`` bytes are buffered or
        the stream is exhausted.
        """
        self._check_open()
        while len(self._buffer) < size:
            chunk = self._stream.read(size - len(self._buffer))
            if not chunk:
                break
            self._buffer += chunk
        return self._buffer[:size]

    def read(self, size: int | None = -1) -> bytes:
        self._check_open()
        if size is None or size < 0:
            data = self._buffer + self._stream.read()
            self._buffer = b""
            return data

        if self._buffer:
            data = self._buffer[:size]
            self._buffer = self._buffer[size:]
            return data

        return self._stream.read(size)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._buffer = b""
        try:
            self._stream.close()
        finally:
            if self._parent is not None:
                self._parent.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed stream")

    def __enter__(self) -> "PeekableStream":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def open_gzip(stream: PeekableStream) -> PeekableStream:
    """Wrap a gzip-compressed stream so reads yield decompressed bytes."""
    logger.debug("Decompressing gzip stream")
    decompressor = gzip.GzipFile(fileobj=stream, mode="rb")  # type: ignore[arg-type]
    return PeekableStream(decompressor, parent=stream)


def open_xz(stream: PeekableStream) -> PeekableStream:
    """Wrap an xz-compressed stream so reads yield decompressed bytes."""
    logger.debug("Decompressing xz stream")
    decompressor = lzma.LZMAFile(stream, mode="rb")  # type: ignore[arg-type]
    return PeekableStream(decompressor, parent=stream)  # type: ignore[arg-type]
