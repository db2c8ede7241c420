# SPDX-License-Identifier: MIT
"""CLI entry point for the nuget-api command."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click
import httpx

from .config import APIConfig


def echo_error(message: str) -> None:
    """Print an error message to stderr."""
    click.secho(f"Error: {message}", fg="red", err=True)


def echo_success(message: str) -> None:
    """Print a success message."""
    click.secho(message, fg="green")


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(message)


@click.group()
@click.version_option(package_name="nuget-api")
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose output.",
)
def cli(verbose: bool) -> None:
    """Hosted NuGet feed.

    \b
    Examples:
        nuget-api serve --base-path /nuget --storage local
        nuget-api push http://localhost:8000/nuget Newtonsoft.Json.12.0.3.nupkg
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind.")
@click.option("--port", default=8000, show_default=True, type=int, help="Port to bind.")
@click.option("--base-path", help="Path the feed is mounted under.")
@click.option(
    "--storage",
    "backend",
    type=click.Choice(["memory", "local", "database"]),
    help="Storage backend for package artifacts.",
)
@click.option(
    "--storage-path",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for the local storage backend.",
)
def serve(
    host: str,
    port: int,
    base_path: Optional[str],
    backend: Optional[str],
    storage_path: Optional[Path],
) -> None:
    """Serve the feed over HTTP.

    Options override the NUGET_* environment configuration.
    """
    import uvicorn

    from .app import create_app

    config = APIConfig.from_env()
    if base_path is not None:
        config.base_path = base_path
    if backend is not None:
        config.storage.backend = backend
    if storage_path is not None:
        config.storage.local_path = str(storage_path)

    uvicorn.run(create_app(config), host=host, port=port)


@cli.command()
@click.argument("feed_url")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--timeout", default=60.0, show_default=True, help="Request timeout in seconds.")
def push(feed_url: str, files: tuple[Path, ...], timeout: float) -> None:
    """Upload .nupkg files to a feed.

    FEED_URL is the feed root, e.g. http://localhost:8000/base
    """
    url = f"{feed_url.rstrip('/')}/package"
    failed = 0

    with httpx.Client(timeout=timeout) as client:
        for path in files:
            echo_info(f"Uploading: {path.name} ({path.stat().st_size:,} bytes)")
            try:
                response = client.put(url, content=path.read_bytes())
            except httpx.HTTPError as e:
                echo_error(f"{path.name}: {e}")
                failed += 1
                continue

            if response.status_code == 201:
                echo_success(f"  Published {path.name}")
            elif response.status_code == 409:
                echo_info(f"  Skipped {path.name}: version already exists")
            else:
                echo_error(f"{path.name}: {response.status_code} {_error_message(response)}")
                failed += 1

    if failed:
        raise SystemExit(1)


def _error_message(response: httpx.Response) -> str:
    """Extract the error message from an API error response."""
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
