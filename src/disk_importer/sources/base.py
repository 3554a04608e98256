"""Abstract base class for object-storage data sources."""

from abc import ABC, abstractmethod
import logging
from pathlib import Path
from typing import Any, BinaryIO
from urllib.parse import ParseResult, urlparse

from disk_importer.clients import BackendClient, ClientFactory
from disk_importer.exceptions import (
    ClientCreationError,
    ImporterError,
    InvalidPhaseError,
    SourceUnavailableError,
)
from disk_importer.phases import PhaseResult, ProcessingPhase
from disk_importer.sniffer import Compression, ImageFormat, SniffResult, sniff
from disk_importer.streams import PeekableStream
from disk_importer.transfer import DEFAULT_CHUNK_SIZE, stream_to_file, stream_to_scratch

logger = logging.getLogger(__name__)


def build_client(
    client_factory: ClientFactory,
    source_url: str,
    endpoint: str,
    access_key: str,
    secret_key: str,
    cert_dir: str,
) -> BackendClient:
    """
    Invoke a client factory, attaching the source URL to any failure.

    Raises:
        ImportError: If the backend SDK is not installed.
        ClientCreationError: If the factory cannot build a client.
    """
    try:
        return client_factory(endpoint, access_key, secret_key, cert_dir)
    except ImportError:
        raise
    except Exception as e:
        logger.error("Unable to create storage client for %s: %s", source_url, e)
        raise ClientCreationError(f"Unable to create client for {source_url}: {e}") from e


class DataSource(ABC):
    """
    Phase-driven import of one disk image from object storage.

    Callers drive a source through ``info()`` and then whichever transfer the
    returned phase asks for. Every operation returns a :class:`PhaseResult`;
    an ERROR phase is terminal and any further operation raises
    :class:`InvalidPhaseError`.

    The remote object is opened lazily by ``info()``. A stream passed as
    ``reader`` is used in its place.
    """

    def __init__(
        self,
        url: ParseResult,
        bucket: str,
        key: str,
        client: BackendClient,
        reader: BinaryIO | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.bucket = bucket
        self.key = key
        self.chunk_size = chunk_size
        self._client = client
        self._source_url = url
        self._url = url
        self._stream: PeekableStream | None = None
        if reader is not None:
            self._stream = PeekableStream(reader)
        self._phase: ProcessingPhase | None = None
        self._image_format: ImageFormat | None = None
        self._compression: Compression | None = None
        self._bytes_transferred = 0
        self._closed = False

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Short backend name, e.g. ``'s3'``."""
        ...

    @abstractmethod
    def get_metadata(self) -> dict[str, Any]:
        """
        Return metadata about the source.

        Returns:
            dict[str, Any]: Metadata dictionary containing at least:
                - 'source_type': Backend name ('s3', 'gcs')
                - 'bucket' / 'key': Object coordinates
                - 'phase': Current phase value, or None before ``info()``
                - 'image_format' / 'compression': Sniffed format details
                - 'bytes_transferred': Bytes written by the last transfer
        """
        ...

    @property
    def phase(self) -> ProcessingPhase | None:
        return self._phase

    @property
    def bytes_transferred(self) -> int:
        return self._bytes_transferred

    @property
    def image_format(self) -> ImageFormat | None:
        return self._image_format

    @property
    def compression(self) -> Compression | None:
        return self._compression

    def get_url(self) -> ParseResult:
        """
        Return the current location of the image.

        This is the source URL until a transfer succeeds, and the path of the
        written file afterwards.
        """
        return self._url

    def info(self) -> PhaseResult:
        """
        Open the object and classify the image it holds.

        Returns:
            PhaseResult: TRANSFER_SCRATCH for container or compressed container
            formats, TRANSFER_DATA_FILE for raw images, or ERROR if the object
            cannot be opened or is not a usable image.

        Raises:
            InvalidPhaseError: If ``info()`` already ran on this source, or it was closed.
        """
        if self._closed:
            raise InvalidPhaseError(f"info() called after {self._source_url.geturl()} was closed")
        self._require_phase(None, "info")

        try:
            result = self._classify()
        except ImporterError as e:
            self._release_stream()
            return self._fail(e)

        self._stream = result.stream
        self._image_format = result.image_format
        self._compression = result.compression

        if result.needs_scratch:
            phase = ProcessingPhase.TRANSFER_SCRATCH
        else:
            phase = ProcessingPhase.TRANSFER_DATA_FILE

        logger.info(
            "Classified %s as %s (compression=%s), next phase %s",
            self._source_url.geturl(),
            result.image_format.value,
            result.compression.value if result.compression else None,
            phase.value,
        )
        return self._advance(phase)

    def transfer(self, scratch_path: str | Path) -> PhaseResult:
        """
        Stream the image into the scratch file of ``scratch_path``.

        Returns:
            PhaseResult: CONVERT on success, ERROR on any I/O failure.

        Raises:
            InvalidPhaseError: If the current phase is not TRANSFER_SCRATCH.
        """
        self._require_phase(ProcessingPhase.TRANSFER_SCRATCH, "transfer")
        try:
            target, written = stream_to_scratch(self._reader(), scratch_path, self.chunk_size)
        except ImporterError as e:
            return self._fail(e)

        self._finish_transfer(target, written)
        return self._advance(ProcessingPhase.CONVERT)

    def transfer_file(self, file_name: str | Path) -> PhaseResult:
        """
        Stream the image straight to ``file_name``.

        Returns:
            PhaseResult: RESIZE on success, ERROR on any I/O failure.

        Raises:
            InvalidPhaseError: If the current phase is not TRANSFER_DATA_FILE.
        """
        self._require_phase(ProcessingPhase.TRANSFER_DATA_FILE, "transfer_file")
        try:
            written = stream_to_file(self._reader(), file_name, self.chunk_size)
        except ImporterError as e:
            return self._fail(e)

        self._finish_transfer(Path(file_name), written)
        return self._advance(ProcessingPhase.RESIZE)

    def close(self) -> None:
        """Close the object stream. Safe to call more than once."""
        self._closed = True
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()
            logger.debug("Closed stream for %s", self._source_url.geturl())

    def _open(self) -> PeekableStream:
        if self._stream is None:
            try:
                body = self._client.get_object(self.bucket, self.key)
            except Exception as e:
                raise SourceUnavailableError(
                    f"Failed to open {self._source_url.geturl()}: {e}"
                ) from e
            self._stream = PeekableStream(body)
        return self._stream

    def _classify(self) -> SniffResult:
        stream = self._open()
        try:
            return sniff(stream)
        except ImporterError:
            raise
        except Exception as e:
            logger.exception("Error reading %s: %s", self._source_url.geturl(), e)
            raise SourceUnavailableError(
                f"Failed to read {self._source_url.geturl()}: {e}"
            ) from e

    def _release_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.close()
        except Exception as e:
            logger.warning("Error closing stream for %s: %s", self._source_url.geturl(), e)

    def _reader(self) -> PeekableStream:
        if self._stream is None:
            raise SourceUnavailableError(f"Stream for {self._source_url.geturl()} is closed")
        return self._stream

    def _finish_transfer(self, target: Path, written: int) -> None:
        self._bytes_transferred = written
        self._url = urlparse(str(target))

    def _require_phase(self, expected: ProcessingPhase | None, operation: str) -> None:
        if self._phase is not expected:
            current = self._phase.value if self._phase else None
            wanted = expected.value if expected else None
            raise InvalidPhaseError(
                f"{operation}() requires phase {wanted}, but {self._source_url.geturl()} "
                f"is in phase {current}"
            )

    def _advance(self, phase: ProcessingPhase) -> PhaseResult:
        self._phase = phase
        return PhaseResult(phase)

    def _fail(self, error: Exception) -> PhaseResult:
        logger.error("Import of %s failed: %s", self._source_url.geturl(), error)
        self._phase = ProcessingPhase.ERROR
        return PhaseResult(ProcessingPhase.ERROR, error)

    def _base_metadata(self) -> dict[str, Any]:
        return {
            "source_type": self.source_type,
            "url": self._source_url.geturl(),
            "bucket": self.bucket,
            "key": self.key,
            "phase": self._phase.value if self._phase else None,
            "image_format": self._image_format.value if self._image_format else None,
            "compression": self._compression.value if self._compression else None,
            "bytes_transferred": self._bytes_transferred,
        }

    def __enter__(self) -> "DataSource":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
