"""Unified CLI for azs-tools.

Subcommands:
    azs-tools publish       – package, upload and register marketplace items
    azs-tools api-versions  – list API versions of a resource type
    azs-tools gallery       – list or remove gallery items
    azs-tools mcp           – run the MCP server (stdio or SSE transport)
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from azs_tools import __version__
from azs_tools.azure_api.providers import ResourceProvider
from azs_tools.settings import settings

logger = logging.getLogger(__name__)


def _setup_logging(level: int = logging.WARNING) -> None:
    """Configure the root ``azs_tools`` logger with uvicorn-style colours."""
    from uvicorn.logging import DefaultFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(
        DefaultFormatter(fmt="%(levelprefix)s %(name)s - %(message)s", use_colors=True)
    )
    app_logger = logging.getLogger("azs_tools")
    app_logger.handlers = [handler]
    app_logger.setLevel(level)
    app_logger.propagate = False

    # Silence noisy third-party loggers
    logging.getLogger("azure").setLevel(logging.WARNING)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _run(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call *fn*, turning failures into a CLI error (exit status 1)."""
    try:
        return fn(*args, **kwargs)
    except (OSError, ValueError, LookupError, RuntimeError) as exc:
        logger.debug("Command failed", exc_info=True)
        raise click.ClickException(str(exc)) from exc
    except Exception as exc:
        # requests / azure-core errors
        logger.debug("Command failed", exc_info=True)
        raise click.ClickException(f"{type(exc).__name__}: {exc}") from exc


verbose_option = click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose logging.",
)


@click.group()
@click.version_option(version=__version__, prog_name="azs-tools")
def cli() -> None:
    """Azure Stack marketplace and resource provider tools."""


@cli.command()
@click.option(
    "--packager",
    "packager_path",
    required=True,
    type=click.Path(path_type=Path),
    help="Path to the marketplace packager executable.",
)
@click.option(
    "--manifest",
    "manifest_paths",
    required=True,
    multiple=True,
    type=click.Path(path_type=Path),
    help="Manifest JSON file. Repeat to publish several items.",
)
@click.option(
    "--destination",
    "destination_path",
    required=True,
    type=click.Path(path_type=Path),
    help="Directory the packager writes packages to.",
)
@click.option("--container", "container_name", required=True, help="Blob container name.")
@click.option(
    "--account-name",
    default=lambda: settings.storage_account_name or None,
    help="Storage account name [env: AZS_STORAGE_ACCOUNT_NAME].",
)
@click.option(
    "--account-key",
    default=lambda: settings.storage_account_key or None,
    help="Storage account key [env: AZS_STORAGE_ACCOUNT_KEY].",
)
@click.option("--tenant-id", default=None, help="Tenant ID for the gallery registration.")
@verbose_option
def publish(
    packager_path: Path,
    manifest_paths: tuple[Path, ...],
    destination_path: Path,
    container_name: str,
    account_name: str | None,
    account_key: str | None,
    tenant_id: str | None,
    verbose: bool,
) -> None:
    """Package, upload and register marketplace items."""
    from azs_tools.publisher import PublishError, publish_marketplace_items

    _setup_logging(level=logging.DEBUG if verbose else logging.INFO)
    try:
        results = _run(
            publish_marketplace_items,
            packager_path,
            list(manifest_paths),
            destination_path,
            container_name,
            account_name=account_name,
            account_key=account_key,
            tenant_id=tenant_id,
        )
    except click.ClickException as exc:
        cause = exc.__cause__
        if isinstance(cause, PublishError) and cause.completed:
            click.echo("Published before the failure:", err=True)
            for result in cause.completed:
                click.echo(f"  {result.blobUri}", err=True)
        raise
    _echo_json([r.model_dump(mode="json") for r in results])


@cli.command("api-versions")
@click.option(
    "--provider",
    required=True,
    type=click.Choice([p.name for p in ResourceProvider], case_sensitive=False),
    help="Resource provider.",
)
@click.option("--resource-type", required=True, help="Exact resource type name.")
@click.option("--subscription-id", default=None, help="Subscription ID to query.")
@click.option("--tenant-id", default=None, help="Optional tenant ID.")
@verbose_option
def api_versions(
    provider: str,
    resource_type: str,
    subscription_id: str | None,
    tenant_id: str | None,
    verbose: bool,
) -> None:
    """List the API versions supported by a resource type."""
    from azs_tools import azure_api

    _setup_logging(level=logging.DEBUG if verbose else logging.WARNING)
    result = _run(
        azure_api.get_api_versions,
        ResourceProvider.parse(provider),
        resource_type,
        subscription_id,
        tenant_id,
    )
    _echo_json(result)


@cli.group()
def gallery() -> None:
    """Manage marketplace gallery items."""


@gallery.command("list")
@click.option("--subscription-id", default=None, help="Subscription ID to query.")
@click.option("--tenant-id", default=None, help="Optional tenant ID.")
@verbose_option
def gallery_list(subscription_id: str | None, tenant_id: str | None, verbose: bool) -> None:
    """List registered gallery items."""
    from azs_tools import azure_api

    _setup_logging(level=logging.DEBUG if verbose else logging.WARNING)
    _echo_json(_run(azure_api.list_gallery_items, subscription_id, tenant_id))


@gallery.command("remove")
@click.argument("name")
@click.option("--subscription-id", default=None, help="Subscription ID to query.")
@click.option("--tenant-id", default=None, help="Optional tenant ID.")
@verbose_option
def gallery_remove(
    name: str, subscription_id: str | None, tenant_id: str | None, verbose: bool
) -> None:
    """Remove the gallery item NAME (publisher.name.version)."""
    from azs_tools import azure_api

    _setup_logging(level=logging.DEBUG if verbose else logging.WARNING)
    if _run(azure_api.remove_gallery_item, name, subscription_id, tenant_id):
        click.echo(f"Removed {name}")
    else:
        click.echo(f"{name} is not registered")


@cli.command()
@click.option(
    "--sse",
    is_flag=True,
    default=False,
    help="Use SSE transport instead of stdio.",
)
@click.option(
    "--port",
    default=8080,
    show_default=True,
    help="Port for SSE transport.",
)
@verbose_option
def mcp(sse: bool, port: int, verbose: bool) -> None:
    """Run the MCP server."""
    from azs_tools.mcp_server import mcp as mcp_server

    _setup_logging(level=logging.INFO if verbose else logging.WARNING)

    if sse:
        mcp_server.settings.port = port
        mcp_server.run(transport="sse")
    else:
        mcp_server.run(transport="stdio")
