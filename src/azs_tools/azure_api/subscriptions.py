"""Subscription discovery."""

from __future__ import annotations

import logging

from azs_tools.azure_api._auth import _get_headers
from azs_tools.azure_api._pagination import _paginate
from azs_tools.settings import settings

logger = logging.getLogger(__name__)


def list_subscriptions(tenant_id: str | None = None) -> list[dict]:
    """Return enabled subscriptions as ``[{"id": ..., "name": ...}, ...]``."""
    headers = _get_headers(tenant_id)
    url = (
        f"{settings.arm_endpoint}/subscriptions"
        f"?api-version={settings.subscriptions_api_version}"
    )
    all_subs = _paginate(url, headers)

    subs = [
        {"id": s["subscriptionId"], "name": s.get("displayName") or s["subscriptionId"]}
        for s in all_subs
        if s.get("state") == "Enabled"
    ]
    return sorted(subs, key=lambda x: x["name"].lower())


def resolve_subscription_id(
    subscription_id: str | None = None,
    tenant_id: str | None = None,
) -> str:
    """Return the subscription to query.

    Falls back to ``AZS_SUBSCRIPTION_ID`` and then to the first enabled
    subscription (sorted by ID).
    """
    if subscription_id:
        return subscription_id
    if settings.subscription_id:
        return settings.subscription_id

    enabled = sorted(s["id"] for s in list_subscriptions(tenant_id))
    if not enabled:
        raise LookupError("No enabled subscriptions found")
    logger.debug("No subscription configured, using %s", enabled[0])
    return enabled[0]
