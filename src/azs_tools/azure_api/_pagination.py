"""ARM list pagination."""

from __future__ import annotations

from collections.abc import Iterator

import requests

from azs_tools.settings import settings


def _iter_pages(url: str, headers: dict[str, str], timeout: int) -> Iterator[dict]:
    next_url: str | None = url
    while next_url:
        resp = requests.get(next_url, headers=headers, timeout=timeout)
        resp.raise_for_status()
        page: dict = resp.json()
        yield page
        next_url = page.get("nextLink")


def _paginate(url: str, headers: dict[str, str], timeout: int | None = None) -> list[dict]:
    """Follow ``nextLink`` from *url* and return the concatenated ``value`` arrays."""
    return [
        item
        for page in _iter_pages(url, headers, timeout or settings.request_timeout)
        for item in page.get("value", [])
    ]
