"""Shared fixtures: synthetic disk images and fake storage clients."""

import io
import struct
from typing import BinaryIO

import pytest

from disk_importer.clients import BackendClient


def make_qcow2(
    size: int = 4096, version: int = 3, virtual_size: int = 10 * 1024 * 1024
) -> bytes:
    """Build a qcow2 header padded with deterministic payload bytes."""
    header = struct.pack(
        ">4sIQIIQIIQQIIQ",
        b"QFI\xfb",
        version,
        0,  # backing file offset
        0,  # backing file size
        16,  # cluster bits
        virtual_size,
        0,  # crypt method
        1,  # l1 size
        0x30000,  # l1 table offset
        0x10000,  # refcount table offset
        1,  # refcount table clusters
        0,  # snapshots
        0,  # snapshots offset
    )
    payload = bytes(i % 251 for i in range(size - len(header)))
    return header + payload


def make_raw(size: int = 10240) -> bytes:
    """Build a raw image with no recognizable header."""
    return bytes(range(256)) * (size // 256)


class FakeClient:
    """BackendClient serving in-memory objects."""

    def __init__(self, objects: dict[tuple[str, str], bytes] | None = None) -> None:
        self.objects = objects or {}
        self.requests: list[tuple[str, str]] = []

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        self.requests.append((bucket, key))
        try:
            return io.BytesIO(self.objects[(bucket, key)])
        except KeyError:
            raise FileNotFoundError(f"NoSuchKey: {bucket}/{key}") from None


class FailingClient:
    """BackendClient whose every request fails."""

    def get_object(self, bucket: str, key: str) -> BinaryIO:
        raise ConnectionError("Failed to get object")


class RecordingFactory:
    """ClientFactory returning a fixed client and remembering its arguments."""

    def __init__(self, client: BackendClient) -> None:
        self.client = client
        self.calls: list[tuple[str, str, str, str]] = []

    def __call__(self, endpoint: str, access_key: str, secret_key: str, cert_dir: str):
        self.calls.append((endpoint, access_key, secret_key, cert_dir))
        return self.client


def failing_factory(endpoint: str, access_key: str, secret_key: str, cert_dir: str):
    raise RuntimeError("Failed to create client")


@pytest.fixture
def qcow2_image() -> bytes:
    return make_qcow2()


@pytest.fixture
def raw_image() -> bytes:
    return make_raw()


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def factory(fake_client: FakeClient) -> RecordingFactory:
    return RecordingFactory(fake_client)

