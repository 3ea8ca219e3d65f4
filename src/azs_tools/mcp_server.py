"""MCP server for Azure Stack resource provider and gallery queries.

Exposes the read-only lookups of azs-tools as MCP tools so that AI agents
can query them directly.

Run with:
    azs-tools mcp            # stdio transport (default)
    azs-tools mcp --sse      # SSE transport on port 8080
"""

import json
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from azs_tools import azure_api

mcp = FastMCP(
    "azs-tools",
    instructions=(
        "Azure / Azure Stack management tools. "
        "Use these tools to look up the API versions supported by a resource "
        "type and to list registered marketplace gallery items. "
        "All tools require valid credentials via DefaultAzureCredential "
        "(e.g. `az login`)."
    ),
)


@mcp.tool()
def get_api_versions(
    provider: Annotated[
        str,
        Field(
            description=(
                "Resource provider: Compute, Insights, KeyVault, Network, Storage "
                "or Resources (the Microsoft.* namespace is accepted too)."
            )
        ),
    ],
    resource_type: Annotated[
        str, Field(description="Exact resource type name (e.g. storageAccounts).")
    ],
    subscription_id: Annotated[
        str | None, Field(description="Subscription ID. Auto-discovered if omitted.")
    ] = None,
    tenant_id: Annotated[str | None, Field(description="Optional tenant ID.")] = None,
) -> str:
    """Get the API versions supported by a resource type.

    Returns a JSON array of resource type descriptors (``resourceType``,
    ``apiVersions``, ``locations`` ...) whose name matches exactly.  An
    empty array means the provider has no such type.
    """
    result = azure_api.get_api_versions(provider, resource_type, subscription_id, tenant_id)
    return json.dumps(result, indent=2)


@mcp.tool()
def list_gallery_items(
    subscription_id: Annotated[
        str | None, Field(description="Subscription ID. Auto-discovered if omitted.")
    ] = None,
    tenant_id: Annotated[str | None, Field(description="Optional tenant ID.")] = None,
) -> str:
    """List the marketplace gallery items registered on the stamp."""
    result = azure_api.list_gallery_items(subscription_id, tenant_id)
    return json.dumps(result, indent=2)
