"""Example: Staging a disk image from Google Cloud Storage."""

from disk_importer import GCSDataSource, ProcessingPhase

# Application Default Credentials; pass a key file path as the second
# argument to use a service account instead.
with GCSDataSource("gs://my-bucket/images/fedora.raw.xz") as source:
    result = source.info()
    if result.phase is ProcessingPhase.TRANSFER_DATA_FILE:
        result = source.transfer_file("/tmp/disk.img")
    elif result.phase is ProcessingPhase.TRANSFER_SCRATCH:
        result = source.transfer("/tmp/scratch")

    print("Final phase:", result.phase.value)
    if not result.ok:
        print("Error:", result.error)
    print("Transferred bytes:", source.bytes_transferred)
