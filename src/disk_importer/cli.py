"""Command-line interface for staging disk images."""

from enum import Enum
import logging
from pathlib import Path
import sys

import typer

from disk_importer.phases import PhaseResult, ProcessingPhase
from disk_importer.sources import DataSource, GCSDataSource, S3DataSource

app = typer.Typer(add_completion=False)


class Backend(str, Enum):
    s3 = "s3"
    gcs = "gcs"


def _open_source(
    source: str,
    backend: Backend | None,
    access_key: str,
    secret_key: str,
    cert_dir: str,
    service_account_key: str,
) -> DataSource:
    if backend is None:
        backend = Backend.gcs if source.startswith("gs://") else Backend.s3

    if backend is Backend.gcs:
        return GCSDataSource(source, service_account_key)
    return S3DataSource(source, access_key, secret_key, cert_dir)


def _check(result: PhaseResult) -> ProcessingPhase:
    if result.error is not None:
        raise result.error
    return result.phase


@app.command()
def main(
    source: str = typer.Argument(
        ...,
        help="Image URL: gs://bucket/key, s3://bucket/key or https://host/bucket/key",
    ),
    backend: Backend | None = typer.Option(
        None,
        help="Storage backend (default: gcs for gs:// URLs, otherwise s3)",
    ),
    access_key: str = typer.Option("", help="S3 access key"),
    secret_key: str = typer.Option("", help="S3 secret key"),
    cert_dir: str = typer.Option("", help="CA bundle file or directory for TLS verification"),
    service_account_key: str = typer.Option(
        "",
        help="GCS service account key file (default: application default credentials)",
    ),
    scratch_dir: Path = typer.Option(
        Path("."),
        help="Scratch directory for images that need conversion",
    ),
    dest: Path = typer.Option(
        Path("disk.img"),
        help="Destination file for raw images",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Download a disk image and stage it for conversion or resize.

    Container formats (qcow2, vmdk, ...) are written to the scratch directory;
    raw images are written straight to the destination. The final phase tells
    which external step comes next.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO)

    try:
        with _open_source(
            source, backend, access_key, secret_key, cert_dir, service_account_key
        ) as datasource:
            phase = _check(datasource.info())

            if phase is ProcessingPhase.TRANSFER_SCRATCH:
                phase = _check(datasource.transfer(scratch_dir))
            else:
                phase = _check(datasource.transfer_file(dest))

            typer.echo(f"Phase: {phase.value}")
            typer.echo(f"Image written to: {datasource.get_url().geturl()}", file=sys.stderr)

    except ImportError as e:
        typer.echo(
            f"Error: Missing dependency: {e}\nInstall with: pip install disk-importer[all]",
            err=True,
        )
        raise typer.Exit(code=1) from None
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        if verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        raise typer.Exit(code=1) from None


if __name__ == "__main__":
    app()
