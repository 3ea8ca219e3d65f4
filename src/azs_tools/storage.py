"""Blob storage access for package uploads."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from azure.storage.blob import BlobServiceClient

from azs_tools.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageContext:
    """An authorized handle on one storage account's blob service."""

    account_name: str
    blob_endpoint: str
    client: BlobServiceClient

    @classmethod
    def from_client(cls, client: BlobServiceClient) -> StorageContext:
        endpoint = client.url if client.url.endswith("/") else f"{client.url}/"
        return cls(account_name=client.account_name or "", blob_endpoint=endpoint, client=client)


def create_storage_context(account_name: str, account_key: str) -> StorageContext:
    """Build a context from a storage account name and access key."""
    account_url = f"https://{account_name}.blob.{settings.storage_endpoint_suffix}/"
    client = BlobServiceClient(
        account_url=account_url,
        credential={"account_name": account_name, "account_key": account_key},
    )
    return StorageContext.from_client(client)


def resolve_storage_context(
    context: StorageContext | None = None,
    account_name: str | None = None,
    account_key: str | None = None,
) -> StorageContext:
    """Return *context* unchanged, or one built from *account_name* / *account_key*.

    The key is not checked here; an unauthorized key surfaces on upload.
    """
    if context is not None:
        return context
    if not account_name or not account_key:
        raise ValueError("A storage context or both a storage account name and key are required")
    logger.debug("Creating storage context for account %s", account_name)
    return create_storage_context(account_name, account_key)


def blob_uri(context: StorageContext, container: str, blob_name: str) -> str:
    """Return ``<blob endpoint><container>/<blob name>``."""
    return f"{context.blob_endpoint}{container}/{blob_name}"


def upload_block_blob(context: StorageContext, container: str, file_path: str | Path) -> str:
    """Upload *file_path* to *container* as a block blob and return its URI.

    The blob is named after the file and replaces any existing blob.
    """
    path = Path(file_path)
    blob_client = context.client.get_blob_client(container=container, blob=path.name)
    logger.info("Uploading %s to container %s", path.name, container)
    with path.open("rb") as data:
        blob_client.upload_blob(data, blob_type="BlockBlob", overwrite=True)
    return blob_uri(context, container, path.name)
