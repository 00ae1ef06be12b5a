"""Command-line interface for drive_uploader."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from drive_uploader import (
    Credential,
    DriveUploader,
    DriveUploaderError,
    FileMetadata,
    UploaderConfig,
)
from drive_uploader._internal.transport import HttpxTransport
from drive_uploader.auth import TokenRefresher

logger = logging.getLogger(__name__)


def credential_options(func):  # type: ignore[no-untyped-def]
    """Attach the OAuth credential options shared by every command."""
    options = [
        click.option(
            "--access-token", envvar="DRIVE_ACCESS_TOKEN", default="", help="OAuth access token"
        ),
        click.option(
            "--refresh-token",
            envvar="DRIVE_REFRESH_TOKEN",
            required=True,
            help="OAuth refresh token",
        ),
        click.option(
            "--client-id", envvar="DRIVE_CLIENT_ID", required=True, help="OAuth client id"
        ),
        click.option(
            "--client-secret",
            envvar="DRIVE_CLIENT_SECRET",
            required=True,
            help="OAuth client secret",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _report_refreshed_token(token: str) -> None:
    """Print a refreshed token so the user can store it."""
    click.echo(f"Access token refreshed: {token}", err=True)


@click.group()
@click.version_option(package_name="drive-uploader")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Google Drive resumable upload CLI."""
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--parent",
    "-p",
    "parents",
    multiple=True,
    help="Parent folder id (repeat for several parents)",
)
@click.option("--name", "-n", default=None, help="Name of the created file (single file only)")
@click.option(
    "--chunk-size",
    type=int,
    default=None,
    help="Chunk size in bytes (default: 2097152)",
)
@credential_options
def upload(
    files: tuple[Path, ...],
    parents: tuple[str, ...],
    name: str | None,
    chunk_size: int | None,
    access_token: str,
    refresh_token: str,
    client_id: str,
    client_secret: str,
) -> None:
    """Upload files to Google Drive.

    FILES: One or more files to upload.

    Examples:

        drive-upload upload report.pdf

        drive-upload upload *.csv --parent 1AbCdEfG

        drive-upload upload backup.tar -n backup-2024.tar
    """
    if name and len(files) > 1:
        click.echo(click.style("--name can only be used with a single file", fg="red"), err=True)
        sys.exit(2)

    try:
        config = UploaderConfig.from_env(chunk_size=chunk_size)
    except ValueError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        sys.exit(2)

    credential = Credential(
        access_token=access_token,
        refresh_token=refresh_token,
        client_id=client_id,
        client_secret=client_secret,
    )

    success_count = 0
    for path in files:
        metadata = FileMetadata(name=name or path.name, parents=list(parents))
        try:
            with DriveUploader(
                metadata,
                path.stat().st_size,
                credential,
                config=config,
                on_token_refreshed=_report_refreshed_token,
            ) as uploader, path.open("rb") as source:
                result = uploader.upload(source)
        except (DriveUploaderError, OSError) as e:
            logger.error(f"Upload of {path} failed: {e}")
            click.echo(click.style("✗ ", fg="red") + f"{path.name}: {e}", err=True)
            continue

        if result is None:
            click.echo(
                click.style("✗ ", fg="red") + f"{path.name}: file ended before upload completed",
                err=True,
            )
            continue

        click.echo(click.style("✓ ", fg="green") + f"{path.name} -> {result.file_id}")
        success_count += 1

    total = len(files)
    if success_count == total:
        click.echo(click.style(f"\nAll {total} file(s) uploaded successfully!", fg="green"))
    else:
        click.echo(f"\n{success_count}/{total} file(s) uploaded.", err=True)
        sys.exit(1)


@main.command()
@credential_options
def refresh(
    access_token: str,
    refresh_token: str,
    client_id: str,
    client_secret: str,
) -> None:
    """Exchange the refresh token for a new access token and print it."""
    config = UploaderConfig.from_env()
    credential = Credential(
        access_token=access_token,
        refresh_token=refresh_token,
        client_id=client_id,
        client_secret=client_secret,
    )
    transport = HttpxTransport(
        connect_timeout=config.connect_timeout,
        timeout=config.timeout,
        user_agent=config.user_agent,
    )
    try:
        refresher = TokenRefresher(transport, token_endpoint=config.token_endpoint)
        refreshed = refresher.refresh(credential)
    finally:
        transport.close()

    if not refreshed:
        click.echo(click.style("Authentication failed: token refresh failed", fg="red"), err=True)
        sys.exit(1)
    click.echo(credential.access_token)


if __name__ == "__main__":
    main()
