"""Azure Stack gallery item registration (``Microsoft.Gallery.Admin``)."""

from __future__ import annotations

import logging

import requests

from azs_tools.azure_api._auth import _get_headers
from azs_tools.azure_api._pagination import _paginate
from azs_tools.azure_api.subscriptions import resolve_subscription_id
from azs_tools.settings import settings

logger = logging.getLogger(__name__)


def _gallery_items_url(subscription_id: str, name: str | None = None) -> str:
    base = (
        f"{settings.gallery_endpoint}/subscriptions/{subscription_id}"
        "/providers/Microsoft.Gallery.Admin/galleryItems"
    )
    if name:
        base = f"{base}/{name}"
    return f"{base}?api-version={settings.gallery_api_version}"


def _json_or_empty(resp: requests.Response) -> dict:
    if not resp.content:
        return {}
    data: dict = resp.json()
    return data


def list_gallery_items(
    subscription_id: str | None = None,
    tenant_id: str | None = None,
) -> list[dict]:
    """Return all registered gallery items."""
    sub_id = resolve_subscription_id(subscription_id, tenant_id)
    headers = _get_headers(tenant_id, endpoint=settings.gallery_endpoint)
    return _paginate(_gallery_items_url(sub_id), headers)


def remove_gallery_item(
    name: str,
    subscription_id: str | None = None,
    tenant_id: str | None = None,
) -> bool:
    """Delete the gallery item *name*.

    Returns ``False`` when no such item exists.
    """
    sub_id = resolve_subscription_id(subscription_id, tenant_id)
    headers = _get_headers(tenant_id, endpoint=settings.gallery_endpoint)
    resp = requests.delete(
        _gallery_items_url(sub_id, name), headers=headers, timeout=settings.request_timeout
    )
    if resp.status_code == 404:
        logger.info("Gallery item %s not found, nothing to remove", name)
        return False
    resp.raise_for_status()
    logger.info("Removed gallery item %s", name)
    return True


def add_gallery_item(
    gallery_item_uri: str,
    force: bool = False,
    identity: str | None = None,
    subscription_id: str | None = None,
    tenant_id: str | None = None,
) -> dict:
    """Register the package at *gallery_item_uri* as a gallery item.

    With *force* a conflicting registration (HTTP 409) named *identity*
    (``publisher.name.version``) is removed and the registration is
    submitted once more.  Returns the registration payload from the platform.
    """
    sub_id = resolve_subscription_id(subscription_id, tenant_id)
    headers = _get_headers(tenant_id, endpoint=settings.gallery_endpoint)
    url = _gallery_items_url(sub_id)
    body = {"galleryItemUri": gallery_item_uri}

    resp = requests.post(url, headers=headers, json=body, timeout=settings.request_timeout)
    if resp.status_code == 409 and force and identity:
        logger.warning("Gallery item %s already registered, overwriting", identity)
        remove_gallery_item(identity, sub_id, tenant_id)
        resp = requests.post(url, headers=headers, json=body, timeout=settings.request_timeout)
    resp.raise_for_status()

    logger.info("Registered gallery item from %s", gallery_item_uri)
    return _json_or_empty(resp)
