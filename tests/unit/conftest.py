"""Unit test configuration - runs before any test collection or imports.

Forces the keyring null backend so tests never touch the real system
keyring, points the config directory at a temporary path, and replaces
``requests.get`` with an in-memory fake of the PagerDuty REST API.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse

import keyring
import pytest
import requests
from keyring.backends.null import Keyring as NullKeyring

# Force the null backend BEFORE any test triggers a real keyring call.
keyring.set_keyring(NullKeyring())

API_URL = "https://api.pagerduty.com"


class MockResponse:
    """Mock HTTP response for preventing real network calls."""

    def __init__(self, json_data: Optional[Any] = None, status_code: int = 200) -> None:
        """Initialize mock response.

        Args:
            json_data: JSON data to return from json() method
            status_code: HTTP status code
        """
        self._json_data = json_data if json_data is not None else {}
        self.status_code = status_code
        self.text = ""

    def json(self) -> Any:
        """Return the JSON data."""
        return self._json_data

    def raise_for_status(self) -> None:
        """Raise an HTTPError if status code indicates an error."""
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)  # type: ignore


Handler = Union[Dict[str, Any], MockResponse, Callable[[Dict[str, List[str]]], Any]]


class FakePagerDuty:
    """In-memory stand-in for the PagerDuty REST API.

    Routes are registered by path (``incidents``, ``users/me``...). A route
    is either a response body, a MockResponse, or a callable receiving the
    query parameters (as a mapping of name to list of values).
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Handler] = {}
        self.calls: List[Tuple[str, Dict[str, List[str]]]] = []

    def route(self, path: str, handler: Handler) -> None:
        self.routes[path] = handler

    def fail(self, path: str, status_code: int) -> None:
        self.routes[path] = MockResponse({"error": {"message": "failed"}}, status_code)

    def paths(self) -> List[str]:
        return [path for path, _ in self.calls]

    def params_for(self, path: str) -> Dict[str, List[str]]:
        for call_path, params in self.calls:
            if call_path == path:
                return params
        raise AssertionError(f"No request made to {path}")

    def get(self, url: str, headers: Any = None, params: Any = None, **kwargs: Any) -> MockResponse:
        path = urlparse(url).path.strip("/")
        query: Dict[str, List[str]] = {}
        for key, value in params or []:
            query.setdefault(key, []).append(str(value))
        self.calls.append((path, query))

        handler = self.routes.get(path)
        if handler is None:
            return MockResponse({"error": {"message": "Not Found"}}, status_code=404)
        if isinstance(handler, MockResponse):
            return handler
        if callable(handler):
            result = handler(query)
            return result if isinstance(result, MockResponse) else MockResponse(result)
        return MockResponse(handler)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests away from the user's config, token and network."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("PAGERDUTY_TOKEN", "test-token")
    monkeypatch.delenv("PAGERDUTY_API_URL", raising=False)
    monkeypatch.delenv("PDCLI_SSL_VERIFY", raising=False)

    def mock_requests_method(*args: Any, **kwargs: Any) -> MockResponse:
        """Return empty mock response for any unpatched HTTP call."""
        return MockResponse()

    monkeypatch.setattr("requests.get", mock_requests_method)
    monkeypatch.setattr("requests.post", mock_requests_method)


@pytest.fixture
def fake_api(monkeypatch: pytest.MonkeyPatch) -> FakePagerDuty:
    """Install a FakePagerDuty in place of requests.get."""
    api = FakePagerDuty()
    monkeypatch.setattr("requests.get", api.get)
    return api
