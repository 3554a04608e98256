"""S3-compatible object storage data source."""

import logging
from typing import Any, BinaryIO

from typing_extensions import override

from disk_importer.clients import ClientFactory, create_s3_client
from disk_importer.locator import locate
from disk_importer.sources.base import DataSource, build_client
from disk_importer.transfer import DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)


class S3DataSource(DataSource):
    """
    Import a disk image from an S3-compatible bucket.

    Accepts ``http(s)://host/bucket/key`` for a specific service endpoint
    (MinIO, Ceph, AWS regional endpoints), or ``s3://bucket/key`` for the
    default AWS endpoint.
    """

    SCHEMES = ("http", "https", "s3")

    def __init__(
        self,
        endpoint: str,
        access_key: str = "",
        secret_key: str = "",
        cert_dir: str = "",
        *,
        client_factory: ClientFactory = create_s3_client,
        reader: BinaryIO | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """
        Initialize S3DataSource.

        Args:
            endpoint: Source URL of the image object.
            access_key: Access key ID. Blank uses the default credential chain.
            secret_key: Secret access key.
            cert_dir: CA bundle file or directory for TLS verification.
            client_factory: Builds the backend client (default: boto3).
            reader: Stream to read instead of fetching the object.
            chunk_size: Size of chunks to copy (default: 16MB).

        Raises:
            InvalidEndpointError: If the endpoint is not a valid bucket/key URL.
            ClientCreationError: If the S3 client cannot be created.
        """
        url, bucket, key = locate(endpoint, self.SCHEMES)
        service = "" if url.scheme == "s3" else f"{url.scheme}://{url.netloc}"
        client = build_client(client_factory, endpoint, service, access_key, secret_key, cert_dir)

        super().__init__(url, bucket, key, client, reader=reader, chunk_size=chunk_size)
        self.service_endpoint = service

        logger.info("S3DataSource initialized for s3://%s/%s", bucket, key)

    @property
    @override
    def source_type(self) -> str:
        return "s3"

    @override
    def get_metadata(self) -> dict[str, Any]:
        metadata = self._base_metadata()
        metadata["endpoint"] = self.service_endpoint or None
        return metadata
