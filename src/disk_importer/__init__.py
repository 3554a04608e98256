"""disk-importer: stage virtual machine disk images from S3 or GCS for conversion."""

from disk_importer.phases import PhaseResult, ProcessingPhase
from disk_importer.sources import DataSource, GCSDataSource, S3DataSource

__all__ = [
    "DataSource",
    "GCSDataSource",
    "PhaseResult",
    "ProcessingPhase",
    "S3DataSource",
]
