"""mediarelay CLI tool."""

import asyncio
import json
import logging
import mimetypes
from dataclasses import asdict
from pathlib import Path

import click
import httpx

from mediarelay.core.exceptions import RelayError
from mediarelay.core.settings import RelaySettings
from mediarelay.storage.base import UploadOptions, classify_resource_type, public_id_for
from mediarelay.storage.downloads import DownloadProxy
from mediarelay.storage.factory import build_storage


def _mask(value: str | None) -> str:
    if not value:
        return "(not set)"
    if len(value) <= 4:
        return "****"
    return f"{value[:2]}{'*' * (len(value) - 4)}{value[-2:]}"


def _configure_logging(settings: RelaySettings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.pass_context
def cli(ctx):
    """mediarelay CLI - Relay uploads to media storage and proxy downloads."""
    ctx.obj = RelaySettings()
    _configure_logging(ctx.obj)


@cli.command()
@click.option("--host", default=None, help="Interface to bind (default: HOST)")
@click.option("--port", type=int, default=None, help="Port to listen on (default: PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
@click.pass_obj
def serve(settings, host, port, reload):
    """Run the relay HTTP server."""
    import uvicorn

    try:
        settings.validate_storage()
    except RelayError as e:
        raise click.ClickException(str(e))

    uvicorn.run(
        "mediarelay.fastapi.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@cli.command()
@click.pass_obj
def check(settings):
    """Validate the configuration for the selected storage backend."""
    click.echo(f"Storage backend: {settings.storage_backend}")
    click.echo(f"Staging directory: {settings.upload_dir}")
    click.echo(f"Remote folder: {settings.upload_folder}")
    click.echo(f"Max upload size: {settings.max_upload_size} bytes")
    if settings.storage_backend == "cloudinary":
        click.echo(f"Cloud name: {settings.cloudinary_cloud_name or '(not set)'}")
        click.echo(f"API key: {_mask(settings.cloudinary_api_key)}")
        click.echo(f"API secret: {_mask(settings.cloudinary_api_secret)}")
    else:
        click.echo(f"Bucket: {settings.aws_bucket_name or '(not set)'}")
        click.echo(f"Endpoint: {settings.aws_url or '(AWS)'}")
        click.echo(f"Access key: {_mask(settings.aws_access_key_id)}")
        click.echo(f"Secret key: {_mask(settings.aws_secret_access_key)}")

    missing = settings.missing_storage_fields()
    if missing:
        raise click.ClickException(f"Missing required configuration: {', '.join(missing)}")
    click.echo("✅ Configuration OK")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--folder", default=None, help="Remote folder (default: UPLOAD_FOLDER)")
@click.pass_obj
def upload(settings, file, folder):
    """Upload a local FILE straight to the storage backend."""
    content_type = mimetypes.guess_type(file.name)[0] or "application/octet-stream"
    options = UploadOptions(
        folder=folder or settings.upload_folder,
        public_id=public_id_for(file.name),
        resource_type=classify_resource_type(content_type),
        overwrite=False,
        content_type=content_type,
    )

    async def _upload():
        storage = build_storage(settings)
        return await storage.upload(file, options)

    try:
        stored = asyncio.run(_upload())
    except RelayError as e:
        raise click.ClickException(str(e))

    result = asdict(stored)
    result.pop("raw", None)
    click.echo(json.dumps(result, indent=2))


@cli.command()
@click.argument("url")
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    help="Directory to write the file to",
)
@click.pass_obj
def download(settings, url, output):
    """Download URL to disk using the relay's filename rules."""

    async def _download() -> Path:
        async with httpx.AsyncClient(
            timeout=settings.outbound_timeout, follow_redirects=True
        ) as client:
            fetched = await DownloadProxy(client).open(url)
            output.mkdir(parents=True, exist_ok=True)
            target = output / fetched.filename
            with open(target, "wb") as f:
                async for chunk in fetched.iter_bytes():
                    f.write(chunk)
            return target

    try:
        target = asyncio.run(_download())
    except RelayError as e:
        raise click.ClickException(e.message)

    click.echo(f"✅ Saved {target}")


@cli.command()
def version():
    """Show mediarelay version."""
    from mediarelay import __version__

    click.echo(f"mediarelay version: {__version__}")


if __name__ == "__main__":
    cli()
