"""Tests for backend clients and their factories."""

from unittest.mock import MagicMock, patch

import pytest

from disk_importer.clients import (
    GCSBackendClient,
    S3BackendClient,
    create_gcs_client,
    create_s3_client,
)
from disk_importer.exceptions import ClientCreationError

try:
    import moto  # noqa: F401

    HAS_MOTO = True
except ImportError:
    HAS_MOTO = False


def test_s3_backend_client_returns_body() -> None:
    """Test that S3BackendClient hands out the response body."""
    boto_client = MagicMock()
    body = MagicMock()
    boto_client.get_object.return_value = {"Body": body}

    client = S3BackendClient(boto_client)

    assert client.get_object("bucket-1", "dir/object-1") is body
    boto_client.get_object.assert_called_once_with(Bucket="bucket-1", Key="dir/object-1")


def test_s3_backend_client_propagates_errors() -> None:
    """Test that retrieval errors are not swallowed."""
    boto_client = MagicMock()
    boto_client.get_object.side_effect = RuntimeError("Failed to get object")

    with pytest.raises(RuntimeError, match="Failed to get object"):
        S3BackendClient(boto_client).get_object("b", "k")


def test_gcs_backend_client_opens_blob() -> None:
    """Test that GCSBackendClient opens the blob for reading."""
    gcs_client = MagicMock()
    reader = gcs_client.bucket.return_value.blob.return_value.open.return_value

    client = GCSBackendClient(gcs_client)

    assert client.get_object("bucket-bar", "obj-foo") is reader
    gcs_client.bucket.assert_called_once_with("bucket-bar")
    gcs_client.bucket.return_value.blob.assert_called_once_with("obj-foo")
    gcs_client.bucket.return_value.blob.return_value.open.assert_called_once_with("rb")


def test_create_s3_client() -> None:
    """Test building a real boto3 client without touching the network."""
    pytest.importorskip("boto3")

    client = create_s3_client("http://localhost:9000", "access", "secret", "")

    assert isinstance(client, S3BackendClient)
    assert client.client.meta.endpoint_url == "http://localhost:9000"


def test_create_s3_client_default_endpoint() -> None:
    """Test that a blank endpoint uses the AWS default."""
    pytest.importorskip("boto3")

    client = create_s3_client("", "", "", "")

    assert isinstance(client, S3BackendClient)


@pytest.mark.parametrize("endpoint", ["ftp://host", "not a url", "http://"])
def test_create_s3_client_malformed_endpoint(endpoint: str) -> None:
    """Test that a malformed endpoint cannot produce a client."""
    pytest.importorskip("boto3")

    with pytest.raises(ClientCreationError, match="Malformed"):
        create_s3_client(endpoint, "", "", "")


@pytest.mark.skipif(not HAS_MOTO, reason="Requires moto for mocking")
def test_create_s3_client_reads_object() -> None:
    """Test the boto3-backed client against mocked S3."""
    import boto3
    from moto import mock_aws

    with mock_aws():
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket="images")
        s3.put_object(Bucket="images", Key="disks/a.img", Body=b"content")

        client = create_s3_client("", "", "", "")
        body = client.get_object("images", "disks/a.img")

        assert body.read() == b"content"
        body.close()


def test_create_gcs_client_with_bad_service_account_key() -> None:
    """Test that an unusable service account key fails client creation."""
    pytest.importorskip("google.cloud.storage")

    with pytest.raises(ClientCreationError, match="GCS client"):
        create_gcs_client("", "fake-service-account-key", "", "")


def test_create_gcs_client_without_default_credentials() -> None:
    """Test that missing application default credentials fail client creation."""
    pytest.importorskip("google.cloud.storage")
    from google.auth.exceptions import DefaultCredentialsError

    with (
        patch("google.auth.default", side_effect=DefaultCredentialsError("no ADC")),
        pytest.raises(ClientCreationError, match="no ADC"),
    ):
        create_gcs_client("", "", "", "")


def test_create_gcs_client_uses_default_credentials() -> None:
    """Test building a GCS client from application default credentials."""
    storage = pytest.importorskip("google.cloud.storage")

    with patch.object(storage, "Client") as client_cls:
        client = create_gcs_client("", "", "", "")

    assert isinstance(client, GCSBackendClient)
    assert client.client is client_cls.return_value
    client_cls.assert_called_once_with(client_options=None)


def test_create_gcs_client_with_endpoint() -> None:
    """Test that an http endpoint becomes the API endpoint."""
    storage = pytest.importorskip("google.cloud.storage")

    with patch.object(storage, "Client") as client_cls:
        create_gcs_client("https://gcs.example.com", "/keys/sa.json", "", "")

    client_cls.from_service_account_json.assert_called_once_with(
        "/keys/sa.json", client_options={"api_endpoint": "https://gcs.example.com"}
    )
