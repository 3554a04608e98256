"""Resolve source URLs into bucket/object coordinates."""

from collections.abc import Collection
import logging
import re
from urllib.parse import ParseResult, unquote, urlparse

from disk_importer.exceptions import InvalidEndpointError

logger = logging.getLogger(__name__)

# A '%' must always introduce a two-digit hex escape
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def extract_bucket_and_object(path: str) -> tuple[str, str]:
    """
    Split a ``bucket/key...`` path on the first separator.

    The key keeps any further separators, so nested "folders" survive:
    ``"Bucket1/Folder1/Object.tmp"`` -> ``("Bucket1", "Folder1/Object.tmp")``.
    A path without a separator is returned as ``(path, "")``.

    Args:
        path: Path-like string starting with the bucket name.

    Returns:
        tuple[str, str]: Bucket name and object key.
    """
    bucket, _, obj = path.partition("/")
    return bucket, obj


def parse_endpoint(endpoint: str, schemes: Collection[str]) -> ParseResult:
    """
    Parse and validate a source URL.

    Args:
        endpoint: Source URL, e.g. ``gs://bucket/key`` or ``https://host/bucket/key``.
        schemes: URL schemes accepted by the caller.

    Returns:
        ParseResult: The parsed URL.

    Raises:
        InvalidEndpointError: If the URL is empty, malformed, or uses another scheme.
    """
    if not endpoint:
        raise InvalidEndpointError("endpoint must be non-empty")

    if _BAD_ESCAPE.search(endpoint):
        raise InvalidEndpointError(f"Invalid URL escape in endpoint: {endpoint}")

    try:
        parsed = urlparse(endpoint)
    except ValueError as e:
        raise InvalidEndpointError(f"Unable to parse endpoint {endpoint}: {e}") from e

    if parsed.scheme not in schemes:
        raise InvalidEndpointError(
            f"Unsupported scheme in endpoint {endpoint}. Expected one of: {', '.join(schemes)}"
        )

    if not parsed.netloc:
        raise InvalidEndpointError(f"Missing host in endpoint: {endpoint}")

    return parsed


def object_path(parsed: ParseResult) -> str:
    """
    Return the ``bucket/key`` part of a parsed source URL.

    For bucket-addressed schemes (``gs://``, ``s3://``) the host is the bucket.
    For ``http(s)://`` URLs the bucket is the first path segment.
    Percent escapes in the path are decoded.
    """
    if parsed.scheme in ("http", "https"):
        return unquote(parsed.path.lstrip("/"))
    return parsed.netloc + unquote(parsed.path)


def locate(endpoint: str, schemes: Collection[str]) -> tuple[ParseResult, str, str]:
    """
    Parse an endpoint and resolve its bucket and object key.

    Raises:
        InvalidEndpointError: If the URL is invalid or does not name both a bucket and a key.
    """
    parsed = parse_endpoint(endpoint, schemes)
    bucket, obj = extract_bucket_and_object(object_path(parsed))

    if not bucket or not obj:
        raise InvalidEndpointError(
            f"Endpoint {endpoint} must reference an object as bucket/key"
        )

    logger.debug("Resolved %s to bucket=%s key=%s", endpoint, bucket, obj)
    return parsed, bucket, obj
