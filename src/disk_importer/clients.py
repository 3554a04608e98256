"""Backend storage clients and the factories that build them."""

from collections.abc import Callable
import logging
from typing import Any, BinaryIO, Protocol
from urllib.parse import urlparse

from disk_importer.exceptions import ClientCreationError

logger = logging.getLogger(__name__)

DEFAULT_S3_REGION = "us-east-1"


class BackendClient(Protocol):
    """Anything that can fetch an object's content as a readable byte stream."""

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        """
        Open an object for streaming.

        Args:
            bucket: Bucket name.
            key: Object key within the bucket.

        Returns:
            BinaryIO: Readable stream positioned at the start of the object.
        """
        ...


# (endpoint, access_key, secret_key, cert_dir) -> client
ClientFactory = Callable[[str, str, str, str], BackendClient]


class S3BackendClient:
    """BackendClient backed by a boto3 S3 client."""

    def __init__(self, client: Any) -> None:
        self.client = client

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        response = self.client.get_object(Bucket=bucket, Key=key)
        return response["Body"]


class GCSBackendClient:
    """BackendClient backed by a google-cloud-storage client."""

    def __init__(self, client: Any) -> None:
        self.client = client

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        blob = self.client.bucket(bucket).blob(key)
        return blob.open("rb")


def _validate_endpoint(endpoint: str) -> None:
    parsed = urlparse(endpoint)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ClientCreationError(f"Malformed storage endpoint: {endpoint}")


def create_s3_client(
    endpoint: str,
    access_key: str,
    secret_key: str,
    cert_dir: str,
) -> BackendClient:
    """
    Build an S3 client for an S3-compatible endpoint.

    Args:
        endpoint: Service URL (``scheme://host[:port]``). Blank uses the AWS default.
        access_key: Access key ID. Blank falls back to the boto3 credential chain.
        secret_key: Secret access key.
        cert_dir: CA bundle file or directory used to verify TLS. Blank uses system CAs.

    Returns:
        BackendClient: Client wrapping boto3.

    Raises:
        ImportError: If boto3 is not installed.
        ClientCreationError: If the endpoint is malformed or boto3 rejects the configuration.
    """
    try:
        import boto3
        from botocore.config import Config
    except ImportError as e:
        raise ImportError(
            "boto3 is required for S3 sources. Install with: pip install disk-importer[s3]"
        ) from e

    if endpoint:
        _validate_endpoint(endpoint)

    try:
        client = boto3.client(
            "s3",
            endpoint_url=endpoint or None,
            aws_access_key_id=access_key or None,
            aws_secret_access_key=secret_key or None,
            region_name=DEFAULT_S3_REGION,
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
            verify=cert_dir or None,
        )
    except Exception as e:
        logger.exception("Error creating S3 client for %s: %s", endpoint, e)
        raise ClientCreationError(f"Failed to create S3 client for {endpoint}: {e}") from e

    logger.info("S3 client created (endpoint=%s)", endpoint or "default")
    return S3BackendClient(client)


def create_gcs_client(
    endpoint: str,
    access_key: str,
    secret_key: str,
    cert_dir: str,
) -> BackendClient:
    """
    Build a Google Cloud Storage client.

    ``access_key`` carries the path to a service account key file. When it is
    blank, Application Default Credentials are used. ``secret_key`` and
    ``cert_dir`` are ignored.

    Raises:
        ImportError: If google-cloud-storage is not installed.
        ClientCreationError: If no usable credentials can be resolved.
    """
    try:
        from google.cloud import storage
    except ImportError as e:
        raise ImportError(
            "google-cloud-storage is required for GCS sources. "
            "Install with: pip install disk-importer[gcs]"
        ) from e

    client_options = None
    if endpoint:
        _validate_endpoint(endpoint)
        client_options = {"api_endpoint": endpoint}

    try:
        if access_key:
            client = storage.Client.from_service_account_json(
                access_key, client_options=client_options
            )
        else:
            client = storage.Client(client_options=client_options)
    except Exception as e:
        logger.exception("Error creating GCS client: %s", e)
        raise ClientCreationError(f"Failed to create GCS client: {e}") from e

    logger.info(
        "GCS client created (credentials=%s)",
        "service account key" if access_key else "application default",
    )
    return GCSBackendClient(client)
