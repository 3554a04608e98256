"""Example: Staging a disk image from an S3-compatible bucket."""

from disk_importer import ProcessingPhase, S3DataSource

# MinIO / Ceph style endpoint: http(s)://host/bucket/key
source = S3DataSource(
    "https://minio.example.com:9000/images/cirros/cirros-0.6.2.qcow2",
    access_key="minio",
    secret_key="minio123",
    cert_dir="/etc/ssl/minio-ca",
)

# Or the default AWS endpoint
# source = S3DataSource("s3://my-bucket/path/to/disk.img")

with source:
    phase, err = source.info()
    print("Classified:", source.get_metadata())

    if phase is ProcessingPhase.TRANSFER_SCRATCH:
        phase, err = source.transfer("/tmp/scratch")
    elif phase is ProcessingPhase.TRANSFER_DATA_FILE:
        phase, err = source.transfer_file("/tmp/disk.img")

    if phase is ProcessingPhase.ERROR:
        print(f"Import failed: {err}")
    elif phase is ProcessingPhase.CONVERT:
        print(f"Run format conversion on {source.get_url().geturl()}")
    elif phase is ProcessingPhase.RESIZE:
        print(f"Run resize on {source.get_url().geturl()}")
