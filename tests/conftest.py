"""Shared test fixtures for azs-tools tests."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from azs_tools.settings import settings


@pytest.fixture(autouse=True)
def _mock_credential():
    """Prevent real Azure credential calls in every test."""
    mock_token = MagicMock()
    mock_token.token = "fake-token"
    with patch("azs_tools.azure_api._auth.credential") as cred:
        cred.get_token.return_value = mock_token
        yield cred


@pytest.fixture(autouse=True)
def _clear_provider_cache():
    """Clear the provider metadata cache between tests."""
    from azs_tools.azure_api import _provider_cache

    _provider_cache.clear()
    yield
    _provider_cache.clear()


@pytest.fixture(autouse=True)
def _default_settings(monkeypatch):
    """Isolate tests from AZS_* variables set in the environment."""
    monkeypatch.setattr(settings, "arm_endpoint", "https://management.azure.com")
    monkeypatch.setattr(settings, "admin_endpoint", "")
    monkeypatch.setattr(settings, "subscription_id", "")
    monkeypatch.setattr(settings, "storage_endpoint_suffix", "core.windows.net")
    monkeypatch.setattr(settings, "packager_timeout", 600)
    monkeypatch.setattr(settings, "request_timeout", 30)


@pytest.fixture()
def make_response():
    """Return a factory building ``requests.Response`` stand-ins."""
    import requests

    def _make(status_code: int = 200, payload: object = None) -> MagicMock:
        resp = MagicMock()
        resp.status_code = status_code
        resp.content = b"" if payload is None else b"{...}"
        resp.json.return_value = payload
        if status_code >= 400:
            resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
        return resp

    return _make
