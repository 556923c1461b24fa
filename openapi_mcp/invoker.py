"""
API Invocation Engine

Turns an ApiDefinition plus a caller-supplied argument document into an
outbound HTTP request, sends it and normalizes the response.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .base import DisabledError, MissingParameterError, UpstreamUnreachableError, ValidationError
from .models import (
    ApiDefinition,
    ApiKeyAuth,
    BasicAuth,
    BearerAuth,
    HttpMethod,
    NoAuth,
    ParameterLocation,
    build_url,
)
from .variables import expand_definition

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

HTTP_METHODS: Dict[HttpMethod, str] = {
    HttpMethod.GET: "GET",
    HttpMethod.POST: "POST",
    HttpMethod.PUT: "PUT",
    HttpMethod.DELETE: "DELETE",
    HttpMethod.PATCH: "PATCH",
    HttpMethod.HEAD: "HEAD",
    HttpMethod.OPTIONS: "OPTIONS",
}


@dataclass
class BoundArguments:
    """Call arguments classified by where they go in the request."""
    path_params: Dict[str, str] = field(default_factory=dict)
    query_params: List[Tuple[str, str]] = field(default_factory=list)
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Any = None
    has_body: bool = False


@dataclass
class ApiCallResult:
    """Outcome of a completed HTTP call, whatever its status code."""
    status_code: int
    reason: str
    body: str

    @property
    def is_error(self) -> bool:
        return not 200 <= self.status_code < 300

    @property
    def status_line(self) -> str:
        return f"{self.status_code} {self.reason}".rstrip()

    def to_text(self) -> str:
        return f"Status: {self.status_line}\n\nResponse:\n{self.body}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status_code": self.status_code,
            "status": self.status_line,
            "body": self.body,
            "is_error": self.is_error,
        }


def stringify(value: Any) -> str:
    """Render an argument value as text, stripping surrounding quote characters."""
    if isinstance(value, str):
        return value.strip('"')
    return json.dumps(value, ensure_ascii=False, separators=(",", ":")).strip('"')


def format_body(text: str) -> str:
    """Pretty-print JSON bodies; anything else passes through unchanged."""
    try:
        data = json.loads(text)
    except ValueError:
        return text
    return json.dumps(data, ensure_ascii=False, indent=2)


def bind_arguments(api: ApiDefinition, arguments: Dict[str, Any]) -> BoundArguments:
    """
    Classify every declared parameter by location and collect its value.

    A missing (or null) argument for a required path/query/header parameter
    raises MissingParameterError. The request body is taken from
    `arguments["body"]` as a whole whenever the key is present, null included.
    """
    bound = BoundArguments(headers=httpx.Headers(api.headers))

    for param in api.parameters:
        value = arguments.get(param.name)
        location = param.location

        if location == ParameterLocation.BODY:
            continue

        if value is None:
            if param.required:
                raise MissingParameterError(
                    f"Required {location.value} parameter '{param.name}' is missing",
                    details={"parameter": param.name, "in": location.value},
                )
            continue

        if location == ParameterLocation.PATH:
            bound.path_params[param.name] = stringify(value)
        elif location == ParameterLocation.QUERY:
            bound.query_params.append((param.name, stringify(value)))
        elif location == ParameterLocation.HEADER:
            bound.headers[param.name] = stringify(value)
        else:
            raise AssertionError(f"Unhandled parameter location: {location}")

    if "body" in arguments:
        bound.body = arguments["body"]
        bound.has_body = True

    return bound


def apply_authentication(api: ApiDefinition, headers: httpx.Headers) -> Optional[httpx.Auth]:
    """
    Add credential headers for the definition's authentication variant.

    Returns an httpx auth flow for variants handled by the client (Basic).
    Runs after default and parameter headers so credentials win on conflict.
    """
    auth = api.authentication
    if isinstance(auth, ApiKeyAuth):
        headers[auth.header_name] = auth.api_key
    elif isinstance(auth, BearerAuth):
        headers["Authorization"] = f"Bearer {auth.token}"
    elif isinstance(auth, BasicAuth):
        if "Authorization" in headers:
            del headers["Authorization"]
        return httpx.BasicAuth(auth.username, auth.password)
    elif not isinstance(auth, NoAuth):
        raise AssertionError(f"Unhandled authentication type: {auth!r}")
    return None


class ApiInvoker:
    """
    Issues dynamic API calls.

    One shared httpx.AsyncClient is used for every call; pass `client` to
    supply a preconfigured one (tests use an httpx.MockTransport).
    """

    def __init__(self, client: httpx.AsyncClient = None, timeout: float = DEFAULT_TIMEOUT):
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def build_request(
        self,
        api: ApiDefinition,
        arguments: Dict[str, Any],
        variables: Dict[str, str] = None,
    ) -> Tuple[httpx.Request, Optional[httpx.Auth]]:
        """Build the outbound request without sending it."""
        api = expand_definition(api, variables or {})
        bound = bind_arguments(api, arguments or {})

        url = build_url(api.base_url, api.path, bound.path_params)
        method = HTTP_METHODS[api.method]
        auth = apply_authentication(api, bound.headers)

        kwargs: Dict[str, Any] = {
            "params": bound.query_params or None,
            "headers": bound.headers,
        }
        if bound.has_body:
            # an explicit null body goes out as JSON `null`
            kwargs["content"] = json.dumps(bound.body, ensure_ascii=False).encode("utf-8")
            bound.headers.setdefault("Content-Type", "application/json")

        try:
            request = self.client.build_request(method, url, **kwargs)
        except httpx.InvalidURL as e:
            raise ValidationError(f"Invalid URL '{url}': {e}")
        return request, auth

    async def invoke(
        self,
        api: ApiDefinition,
        arguments: Dict[str, Any],
        variables: Dict[str, str] = None,
    ) -> ApiCallResult:
        """
        Call the API described by `api`.

        Raises:
            DisabledError: the definition is disabled
            MissingParameterError: a required parameter is absent
            UpstreamUnreachableError: connection, timeout, DNS or response decoding failure
        """
        if not api.enabled:
            raise DisabledError(f"API '{api.name}' is disabled")

        request, auth = self.build_request(api, arguments, variables)
        logger.info(f"Calling API '{api.name}': {request.method} {api.path}")

        try:
            response = await self.client.send(request, auth=auth)
        except httpx.RequestError as e:
            raise UpstreamUnreachableError(
                f"Failed to reach API '{api.name}': {e.__class__.__name__}: {e}",
                details={"url": str(request.url.copy_with(query=None))},
            )

        result = ApiCallResult(
            status_code=response.status_code,
            reason=response.reason_phrase,
            body=format_body(response.text),
        )
        if result.is_error:
            logger.warning(f"API '{api.name}' responded with {result.status_line}")
        return result
