"""Google Cloud Storage data source."""

import logging
from typing import Any, BinaryIO

from typing_extensions import override

from disk_importer.clients import ClientFactory, create_gcs_client
from disk_importer.locator import locate
from disk_importer.sources.base import DataSource, build_client
from disk_importer.transfer import DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)


class GCSDataSource(DataSource):
    """
    Import a disk image from a Google Cloud Storage bucket.

    Accepts ``gs://bucket/key`` or ``http(s)://host/bucket/key``, where the
    host is used as the API endpoint.
    """

    SCHEMES = ("gs", "http", "https")

    def __init__(
        self,
        endpoint: str,
        service_account_key: str = "",
        *,
        client_factory: ClientFactory = create_gcs_client,
        reader: BinaryIO | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """
        Initialize GCSDataSource.

        Args:
            endpoint: Source URL of the image object.
            service_account_key: Path to a service account key file. Blank uses
                Application Default Credentials.
            client_factory: Builds the backend client (default: google-cloud-storage).
            reader: Stream to read instead of fetching the object.
            chunk_size: Size of chunks to copy (default: 16MB).

        Raises:
            InvalidEndpointError: If the endpoint is not a valid bucket/key URL.
            ClientCreationError: If the GCS client cannot be created.
        """
        url, bucket, key = locate(endpoint, self.SCHEMES)
        service = "" if url.scheme == "gs" else f"{url.scheme}://{url.netloc}"
        client = build_client(client_factory, endpoint, service, service_account_key, "", "")

        super().__init__(url, bucket, key, client, reader=reader, chunk_size=chunk_size)
        self.service_endpoint = service
        self.uses_service_account = bool(service_account_key)

        logger.info("GCSDataSource initialized for gs://%s/%s", bucket, key)

    @property
    @override
    def source_type(self) -> str:
        return "gcs"

    @override
    def get_metadata(self) -> dict[str, Any]:
        metadata = self._base_metadata()
        metadata["endpoint"] = self.service_endpoint or None
        metadata["service_account"] = self.uses_service_account
        return metadata
