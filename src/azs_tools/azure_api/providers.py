"""Resource provider metadata and API version lookup."""

from __future__ import annotations

import logging
import time
from enum import StrEnum

import requests

from azs_tools.azure_api._auth import _get_headers
from azs_tools.azure_api.subscriptions import resolve_subscription_id
from azs_tools.settings import settings

logger = logging.getLogger(__name__)

# Provider registrations change rarely; entries older than this are refetched.
_PROVIDER_CACHE_TTL = 300
_provider_cache: dict[str, tuple[float, list[dict]]] = {}


def _cached_resource_types(key: str) -> list[dict] | None:
    """Return the cached resource types for *key*, dropping expired entries."""
    now = time.monotonic()
    for stale in [k for k, (ts, _) in _provider_cache.items() if now - ts >= _PROVIDER_CACHE_TTL]:
        del _provider_cache[stale]
    entry = _provider_cache.get(key)
    return entry[1] if entry is not None else None


class ResourceProvider(StrEnum):
    """Resource provider namespaces supported by the lookup."""

    Compute = "Microsoft.Compute"
    Insights = "Microsoft.Insights"
    KeyVault = "Microsoft.KeyVault"
    Network = "Microsoft.Network"
    Storage = "Microsoft.Storage"
    Resources = "Microsoft.Resources"

    @classmethod
    def parse(cls, value: str | ResourceProvider) -> ResourceProvider:
        """Accept a short name (``Storage``) or a namespace (``Microsoft.Storage``)."""
        if isinstance(value, cls):
            return value
        wanted = value.strip().lower()
        for member in cls:
            if wanted in (member.name.lower(), member.value.lower()):
                return member
        allowed = ", ".join(m.name for m in cls)
        raise ValueError(f"Unsupported resource provider {value!r} (expected one of: {allowed})")


def get_resource_types(
    provider: str | ResourceProvider,
    subscription_id: str | None = None,
    tenant_id: str | None = None,
) -> list[dict]:
    """Return the resource types registered under *provider*.

    Each entry is the raw ARM descriptor, e.g.::

        {"resourceType": "storageAccounts",
         "locations": [...], "apiVersions": ["2023-05-01", ...]}

    Results are cached per subscription / namespace / tenant.
    """
    namespace = ResourceProvider.parse(provider)
    sub_id = resolve_subscription_id(subscription_id, tenant_id)

    cache_key = f"providers:{sub_id}:{namespace.value.lower()}:{tenant_id or ''}"
    cached = _cached_resource_types(cache_key)
    if cached is not None:
        return cached

    headers = _get_headers(tenant_id)
    url = (
        f"{settings.arm_endpoint}/subscriptions/{sub_id}/providers/{namespace.value}"
        f"?api-version={settings.providers_api_version}"
    )
    logger.info("Fetching resource types for %s", namespace.value)
    resp = requests.get(url, headers=headers, timeout=settings.request_timeout)
    resp.raise_for_status()

    resource_types: list[dict] = resp.json().get("resourceTypes", [])
    _provider_cache[cache_key] = (time.monotonic(), resource_types)
    return resource_types


def get_api_versions(
    provider: str | ResourceProvider,
    resource_type: str,
    subscription_id: str | None = None,
    tenant_id: str | None = None,
) -> list[dict]:
    """Return the descriptors of *provider* whose type name equals *resource_type*.

    The comparison is exact and case-sensitive.  An unknown type yields an
    empty list; uniqueness is not assumed.
    """
    resource_types = get_resource_types(provider, subscription_id, tenant_id)
    matches = [rt for rt in resource_types if rt.get("resourceType") == resource_type]
    logger.debug(
        "%d of %d resource types matched %r", len(matches), len(resource_types), resource_type
    )
    return matches
