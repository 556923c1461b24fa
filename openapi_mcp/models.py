"""
API Definition Models

Data model of the API store: one ApiDefinition per registered third-party
endpoint, plus the persisted ApiStore document that holds them together with
the global variables.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

STORE_VERSION = "1.0.0"


def utc_now() -> str:
    """Current time as an RFC 3339 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


class HttpMethod(str, Enum):
    """HTTP request methods"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ParameterLocation(str, Enum):
    """Where a parameter is bound in the outbound request."""
    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    BODY = "body"


class ParameterType(str, Enum):
    """Declared parameter type (schema generation only, never coerced)."""
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ApiStatus(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class ApiParameter(BaseModel):
    """API endpoint parameter"""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    location: ParameterLocation = Field(alias="in")
    required: bool = False
    param_type: ParameterType = Field(default=ParameterType.STRING, alias="type")
    default: Optional[Any] = None
    enum_values: Optional[List[Any]] = Field(default=None, alias="enum")


class RequestBody(BaseModel):
    content_type: str = "application/json"
    schema_: Optional[Any] = Field(default=None, alias="schema")
    required: bool = False
    description: str = ""

    model_config = ConfigDict(populate_by_name=True)


class ApiResponse(BaseModel):
    """Documented response; never enforced."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int
    description: str = ""
    schema_: Optional[Any] = Field(default=None, alias="schema")


# ============== Authentication variants ==============


class NoAuth(BaseModel):
    type: Literal["none"] = "none"


class ApiKeyAuth(BaseModel):
    type: Literal["api_key"] = "api_key"
    header_name: str = "X-API-Key"
    api_key: str = ""


class BearerAuth(BaseModel):
    type: Literal["bearer"] = "bearer"
    token: str = ""


class BasicAuth(BaseModel):
    type: Literal["basic"] = "basic"
    username: str = ""
    password: str = ""


Authentication = Annotated[
    Union[NoAuth, ApiKeyAuth, BearerAuth, BasicAuth],
    Field(discriminator="type"),
]

_authentication_adapter = TypeAdapter(Authentication)


def parse_authentication(value: Optional[Dict[str, Any]]) -> Union[NoAuth, ApiKeyAuth, BearerAuth, BasicAuth]:
    """Parse an authentication object; a missing `type` means no authentication."""
    if not value:
        return NoAuth()
    data = dict(value)
    data.setdefault("type", "none")
    return _authentication_adapter.validate_python(data)


class ApiDefinition(BaseModel):
    """One registered API, exposed as a callable tool named after `name`."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str
    base_url: str
    path: str
    method: HttpMethod
    parameters: List[ApiParameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: List[ApiResponse] = Field(default_factory=list)
    authentication: Authentication = Field(default_factory=NoAuth)
    headers: Dict[str, str] = Field(default_factory=dict)
    status: ApiStatus = ApiStatus.ENABLED
    tags: List[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)

    @field_validator("authentication", mode="before")
    @classmethod
    def _default_auth_type(cls, value: Any) -> Any:
        if value is None:
            return NoAuth()
        if isinstance(value, dict) and "type" not in value:
            return {**value, "type": "none"}
        return value

    @classmethod
    def new(
        cls,
        name: str,
        description: str,
        base_url: str,
        path: str,
        method: HttpMethod,
        **fields: Any,
    ) -> "ApiDefinition":
        """Create a definition with a fresh id and creation timestamps."""
        now = utc_now()
        return cls(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            base_url=base_url,
            path=path,
            method=method,
            created_at=now,
            updated_at=now,
            **fields,
        )

    @property
    def enabled(self) -> bool:
        return self.status == ApiStatus.ENABLED

    def build_url(self, path_params: Dict[str, str]) -> str:
        return build_url(self.base_url, self.path, path_params)

    def summary(self, include_base_url: bool = True) -> Dict[str, Any]:
        """Short listing form used by list tools."""
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "method": self.method.value,
            "base_url": self.base_url,
            "path": self.path,
            "status": self.status.value,
            "tags": list(self.tags),
        }
        if not include_base_url:
            del data["base_url"]
        return data

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready form, as written to the backing file."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def build_url(base_url: str, path: str, path_params: Dict[str, str]) -> str:
    """
    Join base URL and path, then replace `{name}` placeholders.

    Placeholders without a matching key are left verbatim.
    """
    url = f"{base_url.rstrip('/')}{path}"
    for key, value in path_params.items():
        url = url.replace(f"{{{key}}}", value)
    return url


class ApiStoreInfo(BaseModel):
    title: str = "MCP OpenAPI Store"
    description: str = "API definitions for MCP tools"
    version: str = STORE_VERSION


class ApiStore(BaseModel):
    """The persisted document: every definition plus global variables."""

    version: str = STORE_VERSION
    info: ApiStoreInfo = Field(default_factory=ApiStoreInfo)
    apis: List[ApiDefinition] = Field(default_factory=list)
    variables: Dict[str, str] = Field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
