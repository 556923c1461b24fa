"""
Shared fixtures for the registry, invoker and toolbox tests.
"""

from typing import Callable, List

import httpx
import pytest

from openapi_mcp.invoker import ApiInvoker
from openapi_mcp.models import ApiDefinition, ApiParameter, HttpMethod, ParameterLocation
from openapi_mcp.registry import ApiRegistry
from openapi_mcp.store import Store
from openapi_mcp.toolbox import Toolbox


@pytest.fixture
def store_path(tmp_path):
    """Backing file inside a directory that does not exist yet."""
    return tmp_path / "config" / "apis.json"


@pytest.fixture
def store(store_path) -> Store:
    return Store.load(store_path)


@pytest.fixture
def registry(store) -> ApiRegistry:
    return ApiRegistry(store)


@pytest.fixture
def make_api() -> Callable[..., ApiDefinition]:
    """Factory for a GET /users/{id} definition with optional overrides."""

    def _make(name: str = "get_user", **overrides) -> ApiDefinition:
        fields = {
            "description": "Fetch a user by id",
            "base_url": "https://api.example.com",
            "path": "/users/{id}",
            "method": HttpMethod.GET,
            "parameters": [
                ApiParameter(name="id", location=ParameterLocation.PATH, required=True),
                ApiParameter(name="verbose", location=ParameterLocation.QUERY),
            ],
            "tags": ["users"],
        }
        fields.update(overrides)
        return ApiDefinition.new(name=name, **fields)

    return _make


class RecordingTransport:
    """Mock upstream that records every request and answers with a fixed response."""

    def __init__(self, status_code: int = 200, json=None, text: str = None, error: Exception = None):
        self.requests: List[httpx.Request] = []
        self.status_code = status_code
        self.json = {"ok": True} if json is None and text is None else json
        self.text = text
        self.error = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def upstream() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def invoker(upstream) -> ApiInvoker:
    return ApiInvoker(client=upstream.client())


@pytest.fixture
def toolbox(registry, invoker) -> Toolbox:
    return Toolbox(registry, invoker)


@pytest.fixture
def make_upstream():
    """Factory for upstreams with a non-default response or a transport error."""
    return RecordingTransport
