"""Authentication helpers for Azure / Azure Stack management calls."""

from __future__ import annotations

from azure.identity import DefaultAzureCredential

from azs_tools.settings import settings

credential = DefaultAzureCredential()


def _get_headers(tenant_id: str | None = None, endpoint: str | None = None) -> dict[str, str]:
    """Return authorization headers using *DefaultAzureCredential*.

    The token audience is *endpoint* (the ARM endpoint by default).  When
    *tenant_id* is provided the token is scoped to that tenant.
    """
    audience = (endpoint or settings.arm_endpoint).rstrip("/")
    kwargs: dict[str, str] = {}
    if tenant_id:
        kwargs["tenant_id"] = tenant_id
    token = credential.get_token(f"{audience}/.default", **kwargs)
    return {
        "Authorization": f"Bearer {token.token}",
        "Content-Type": "application/json",
    }
