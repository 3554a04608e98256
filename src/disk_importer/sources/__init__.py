"""Object-storage data sources for disk image imports."""

from disk_importer.sources.base import DataSource
from disk_importer.sources.gcs import GCSDataSource
from disk_importer.sources.s3 import S3DataSource

__all__ = [
    "DataSource",
    "GCSDataSource",
    "S3DataSource",
]
