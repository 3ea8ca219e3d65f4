"""Marketplace item publishing: package, upload, register."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel

from azs_tools.azure_api import add_gallery_item
from azs_tools.manifest import load_manifest
from azs_tools.packager import run_packager
from azs_tools.storage import StorageContext, resolve_storage_context, upload_block_blob

logger = logging.getLogger(__name__)


class PublishResult(BaseModel):
    """Outcome of publishing one manifest."""

    manifest: Path
    packageFile: Path
    blobUri: str
    galleryItem: dict


class PublishError(RuntimeError):
    """Publishing stopped at *manifest*.

    *completed* holds the results of the manifests published before the
    failure; those uploads and registrations are left in place.
    """

    def __init__(self, manifest: Path, completed: list[PublishResult], reason: str) -> None:
        super().__init__(f"Publishing {manifest} failed: {reason}")
        self.manifest = manifest
        self.completed = completed


def _check_preconditions(
    packager_path: Path, manifest_paths: list[Path], destination_path: Path
) -> None:
    if not packager_path.exists():
        logger.error("Packager not found: %s", packager_path)
        raise FileNotFoundError(f"Packager not found: {packager_path}")
    if not destination_path.exists():
        logger.error("Destination directory not found: %s", destination_path)
        raise FileNotFoundError(f"Destination directory not found: {destination_path}")
    if not destination_path.is_dir():
        logger.error("Destination is not a directory: %s", destination_path)
        raise NotADirectoryError(f"Destination is not a directory: {destination_path}")
    for manifest_path in manifest_paths:
        if not manifest_path.is_file():
            logger.error("Manifest not found: %s", manifest_path)
            raise FileNotFoundError(f"Manifest not found: {manifest_path}")


def publish_marketplace_item(
    packager_path: Path,
    manifest_path: Path,
    destination_path: Path,
    container_name: str,
    context: StorageContext,
    tenant_id: str | None = None,
) -> PublishResult:
    """Package one manifest, upload the package and register it in the gallery."""
    manifest = load_manifest(manifest_path)
    run_packager(packager_path, manifest_path, destination_path)

    package_file = destination_path / manifest.package_filename
    if not package_file.is_file():
        raise FileNotFoundError(
            f"Packager did not produce {manifest.package_filename} in {destination_path}"
        )

    uri = upload_block_blob(context, container_name, package_file)
    gallery_item = add_gallery_item(uri, force=True, identity=manifest.identity, tenant_id=tenant_id)
    logger.info("Published %s", manifest.identity)
    return PublishResult(
        manifest=manifest_path,
        packageFile=package_file,
        blobUri=uri,
        galleryItem=gallery_item,
    )


def publish_marketplace_items(
    packager_path: str | Path,
    manifest_paths: str | Path | Sequence[str | Path],
    destination_path: str | Path,
    container_name: str,
    context: StorageContext | None = None,
    account_name: str | None = None,
    account_key: str | None = None,
    tenant_id: str | None = None,
) -> list[PublishResult]:
    """Publish every manifest in *manifest_paths*, in order.

    Missing prerequisites are reported before anything is packaged or
    uploaded.  The first manifest that fails stops the run with a
    :class:`PublishError`; the original exception is its ``__cause__``.
    """
    if isinstance(manifest_paths, (str, Path)):
        manifest_paths = [manifest_paths]
    manifests = [Path(p) for p in manifest_paths]
    packager = Path(packager_path)
    destination = Path(destination_path)

    _check_preconditions(packager, manifests, destination)
    storage_context = resolve_storage_context(context, account_name, account_key)

    results: list[PublishResult] = []
    for manifest_path in manifests:
        try:
            results.append(
                publish_marketplace_item(
                    packager,
                    manifest_path,
                    destination,
                    container_name,
                    storage_context,
                    tenant_id=tenant_id,
                )
            )
        except Exception as exc:
            logger.error("Publishing %s failed: %s", manifest_path, exc)
            raise PublishError(manifest_path, results, str(exc)) from exc
    return results
