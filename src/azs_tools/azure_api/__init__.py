"""Azure / Azure Stack management API helpers.

Every public function returns plain Python objects (dicts / lists) so the
CLI and the MCP server can share them.  This package re-exports the public
names so that ``from azs_tools import azure_api`` is enough for callers.
"""

import requests as requests  # noqa: F401  # re-export for mock patching

from azs_tools.azure_api._auth import _get_headers, credential  # noqa: F401
from azs_tools.azure_api._pagination import _paginate  # noqa: F401
from azs_tools.azure_api.gallery import (  # noqa: F401
    add_gallery_item,
    list_gallery_items,
    remove_gallery_item,
)
from azs_tools.azure_api.providers import (  # noqa: F401
    ResourceProvider,
    _provider_cache,
    get_api_versions,
    get_resource_types,
)
from azs_tools.azure_api.subscriptions import (  # noqa: F401
    list_subscriptions,
    resolve_subscription_id,
)
