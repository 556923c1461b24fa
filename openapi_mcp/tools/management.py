"""
Registry Tools

Query tools (always available) and management tools (can be switched off)
operating on the API registry.
"""

import logging
from typing import Any, Dict, List, Optional

import pydantic

from ..base import MCPTool, ToolParameter, ValidationError
from ..models import (
    ApiDefinition,
    ApiParameter,
    ApiResponse,
    HttpMethod,
    RequestBody,
    parse_authentication,
)
from ..registry import ApiRegistry, StatusFilter

logger = logging.getLogger(__name__)

METHOD_NAMES = [method.value for method in HttpMethod]

PARAMETER_ITEM_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "in": {"type": "string", "enum": ["query", "header", "path", "body"]},
        "required": {"type": "boolean"},
        "type": {"type": "string", "enum": ["string", "integer", "number", "boolean", "array", "object"]},
        "default": {},
        "enum": {"type": "array"},
    },
    "required": ["name", "in"],
}

REQUEST_BODY_PROPERTIES = {
    "content_type": {"type": "string"},
    "schema": {"type": "object"},
    "required": {"type": "boolean"},
    "description": {"type": "string"},
}

AUTHENTICATION_PROPERTIES = {
    "type": {"type": "string", "enum": ["none", "api_key", "bearer", "basic"]},
    "header_name": {"type": "string"},
    "api_key": {"type": "string"},
    "token": {"type": "string"},
    "username": {"type": "string"},
    "password": {"type": "string"},
}


# ============== Argument parsing ==============


def parse_method(value: str) -> HttpMethod:
    try:
        return HttpMethod(str(value).upper())
    except ValueError:
        raise ValidationError(f"Invalid HTTP method: {value}")


def parse_parameters(value: Any) -> List[ApiParameter]:
    if not isinstance(value, list):
        raise ValidationError("parameters must be a list of parameter objects")

    parameters = []
    for item in value:
        if not isinstance(item, dict):
            raise ValidationError(f"Invalid parameter definition: {item!r}")
        data = dict(item)
        data.setdefault("in", "query")
        try:
            parameters.append(ApiParameter.model_validate(data))
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid parameter '{data.get('name', '')}': {e}")
    return parameters


def parse_request_body(value: Any) -> RequestBody:
    if not isinstance(value, dict):
        raise ValidationError("request_body must be an object")
    try:
        return RequestBody.model_validate(value)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid request_body: {e}")


def parse_responses(value: Any) -> List[ApiResponse]:
    if not isinstance(value, list):
        raise ValidationError("responses must be a list")
    try:
        return [ApiResponse.model_validate(item) for item in value]
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid responses: {e}")


def parse_auth(value: Any):
    if not isinstance(value, dict):
        raise ValidationError("authentication must be an object")
    try:
        return parse_authentication(value)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid authentication: {e}")


def parse_headers(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        raise ValidationError("headers must be an object of string values")
    for key, item in value.items():
        if not isinstance(item, str):
            raise ValidationError(f"Header '{key}' must be a string, got {type(item).__name__}")
    return dict(value)


def parse_tags(value: Any) -> List[str]:
    if not isinstance(value, list):
        raise ValidationError("tags must be a list of strings")
    return [item for item in value if isinstance(item, str)]


def definition_fields(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Parse the optional definition fields present (non-null) in `arguments`."""
    parsers = {
        "description": str,
        "base_url": str,
        "path": str,
        "method": parse_method,
        "parameters": parse_parameters,
        "request_body": parse_request_body,
        "responses": parse_responses,
        "authentication": parse_auth,
        "headers": parse_headers,
        "tags": parse_tags,
    }
    return {
        key: parse(arguments[key])
        for key, parse in parsers.items()
        if arguments.get(key) is not None
    }


def id_parameters(action: str) -> List[ToolParameter]:
    return [
        ToolParameter(
            name="id",
            type="string",
            description=f"API ID to {action}",
            required=False
        ),
        ToolParameter(
            name="name",
            type="string",
            description=f"API name to {action} (used if id is not provided)",
            required=False
        ),
    ]


# ============== Base ==============


class RegistryTool(MCPTool):
    """A tool operating on the shared API registry."""

    management = False

    def __init__(self, registry: ApiRegistry, reserved_names: Optional[set] = None):
        self.registry = registry
        self.reserved_names = reserved_names or set()

    @property
    def category(self) -> str:
        return "management" if self.management else "query"

    def check_name(self, name: str) -> None:
        if not name or not name.strip():
            raise ValidationError("API name must not be empty")
        if name in self.reserved_names:
            raise ValidationError(f"'{name}' is reserved for a built-in tool")


# ============== Query tools ==============


class ListApisTool(RegistryTool):

    @property
    def name(self) -> str:
        return "list_apis"

    @property
    def description(self) -> str:
        return (
            "List all registered APIs. Returns a list of all API definitions "
            "including their status (enabled/disabled)."
        )

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="status",
                type="string",
                description="Filter APIs by status. Default is 'all'.",
                required=False,
                default="all",
                schema={"enum": [item.value for item in StatusFilter]}
            ),
            ToolParameter(
                name="tag",
                type="string",
                description="Filter APIs by tag.",
                required=False
            ),
        ]

    async def execute(self, status: str = "all", tag: str = None, **kwargs) -> List[Dict[str, Any]]:
        try:
            status_filter = StatusFilter(status)
        except ValueError:
            raise ValidationError(f"Invalid status filter: {status}")

        apis = await self.registry.list_apis(status_filter, tag=tag)
        return [api.summary() for api in apis]


class GetApiTool(RegistryTool):

    @property
    def name(self) -> str:
        return "get_api"

    @property
    def description(self) -> str:
        return "Get detailed information about a specific API by its ID or name."

    @property
    def parameters(self) -> List[ToolParameter]:
        return id_parameters("get")

    async def execute(self, id: str = None, name: str = None, **kwargs) -> Dict[str, Any]:
        api = await self.registry.resolve(api_id=id, name=name)
        return api.to_document()


class ListApisByTagTool(RegistryTool):

    @property
    def name(self) -> str:
        return "list_apis_by_tag"

    @property
    def description(self) -> str:
        return "List all APIs that have a specific tag."

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="tag",
                type="string",
                description="Tag to filter by",
                required=True
            )
        ]

    async def execute(self, tag: str, **kwargs) -> Any:
        apis = await self.registry.list_apis_by_tag(tag)
        if not apis:
            return f"No APIs found with tag '{tag}'"
        return [api.summary(include_base_url=False) for api in apis]


class ListVariablesTool(RegistryTool):

    @property
    def name(self) -> str:
        return "list_variables"

    @property
    def description(self) -> str:
        return "List the global variables available as ${NAME} placeholders in API definitions."

    async def execute(self, **kwargs) -> Dict[str, str]:
        return await self.registry.get_variables()


# ============== Management tools ==============


class AddApiTool(RegistryTool):

    management = True

    @property
    def name(self) -> str:
        return "add_api"

    @property
    def description(self) -> str:
        return (
            "Add a new API definition. The API will be registered as a new tool "
            "that can be called through MCP."
        )

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter("name", "string", "Unique name for the API (will be used as tool name)"),
            ToolParameter(
                "description", "string",
                "Detailed description of what the API does (will be used as tool description)"
            ),
            ToolParameter("base_url", "string", "Base URL of the API (e.g., https://api.example.com)"),
            ToolParameter("path", "string", "API path with optional path parameters (e.g., /users/{id})"),
            ToolParameter("method", "string", "HTTP method", schema={"enum": METHOD_NAMES}),
            ToolParameter(
                "parameters", "array", "List of API parameters",
                required=False, schema={"items": PARAMETER_ITEM_SCHEMA}
            ),
            ToolParameter(
                "request_body", "object", "Request body definition",
                required=False, schema={"properties": REQUEST_BODY_PROPERTIES}
            ),
            ToolParameter(
                "authentication", "object", "Authentication configuration",
                required=False, schema={"properties": AUTHENTICATION_PROPERTIES}
            ),
            ToolParameter(
                "headers", "object", "Default headers to include in requests",
                required=False, schema={"additionalProperties": {"type": "string"}}
            ),
            ToolParameter(
                "responses", "array", "Documented responses (status_code, description, schema)",
                required=False, schema={"items": {"type": "object"}}
            ),
            ToolParameter(
                "tags", "array", "Tags for categorizing the API",
                required=False, schema={"items": {"type": "string"}}
            ),
        ]

    async def execute(self, name: str, **arguments) -> Dict[str, Any]:
        self.check_name(name)
        fields = definition_fields(arguments)
        api = ApiDefinition.new(name=name, **fields)

        created = await self.registry.add_api(api)
        return {
            "id": created.id,
            "name": created.name,
            "message": f"API '{created.name}' added successfully with ID: {created.id}",
        }


class UpdateApiTool(RegistryTool):

    management = True

    @property
    def name(self) -> str:
        return "update_api"

    @property
    def description(self) -> str:
        return "Update an existing API definition. Only provided fields will be updated."

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter("id", "string", "API ID to update (required if name not provided)", required=False),
            ToolParameter(
                "name", "string",
                "API name to update (used to find API if id not provided, or new name if updating)",
                required=False
            ),
            ToolParameter("new_name", "string", "New name for the API", required=False),
            ToolParameter("description", "string", "New description", required=False),
            ToolParameter("base_url", "string", "New base URL", required=False),
            ToolParameter("path", "string", "New path", required=False),
            ToolParameter("method", "string", "New HTTP method", required=False, schema={"enum": METHOD_NAMES}),
            ToolParameter(
                "parameters", "array", "New parameters list (replaces existing)",
                required=False, schema={"items": PARAMETER_ITEM_SCHEMA}
            ),
            ToolParameter(
                "request_body", "object", "New request body definition",
                required=False, schema={"properties": REQUEST_BODY_PROPERTIES}
            ),
            ToolParameter(
                "authentication", "object", "New authentication configuration",
                required=False, schema={"properties": AUTHENTICATION_PROPERTIES}
            ),
            ToolParameter(
                "headers", "object", "New default headers",
                required=False, schema={"additionalProperties": {"type": "string"}}
            ),
            ToolParameter(
                "responses", "array", "New documented responses (replaces existing)",
                required=False, schema={"items": {"type": "object"}}
            ),
            ToolParameter(
                "tags", "array", "New tags",
                required=False, schema={"items": {"type": "string"}}
            ),
        ]

    async def execute(self, id: str = None, name: str = None, new_name: str = None, **arguments) -> Dict[str, Any]:
        api = await self.registry.resolve(api_id=id, name=None if id else name)

        changes = definition_fields(arguments)
        rename = new_name or (name if id else None)
        if rename is not None and rename != api.name:
            self.check_name(rename)
            changes["name"] = rename

        updated = await self.registry.update_api(api.id, api.model_copy(update=changes))
        return {
            "id": updated.id,
            "name": updated.name,
            "message": f"API '{updated.name}' updated successfully",
        }


class DeleteApiTool(RegistryTool):

    management = True

    @property
    def name(self) -> str:
        return "delete_api"

    @property
    def description(self) -> str:
        return "Delete an API by its ID or name. The API tool will be removed from the available tools."

    @property
    def parameters(self) -> List[ToolParameter]:
        return id_parameters("delete")

    async def execute(self, id: str = None, name: str = None, **kwargs) -> Dict[str, Any]:
        api = await self.registry.resolve(api_id=id, name=name)
        removed = await self.registry.delete_api(api.id)
        return {
            "message": f"API '{removed.name}' deleted successfully",
            "api": removed.to_document(),
        }


class EnableApiTool(RegistryTool):

    management = True

    @property
    def name(self) -> str:
        return "enable_api"

    @property
    def description(self) -> str:
        return "Enable a disabled API. The API will appear as an available tool."

    @property
    def parameters(self) -> List[ToolParameter]:
        return id_parameters("enable")

    async def execute(self, id: str = None, name: str = None, **kwargs) -> Dict[str, Any]:
        api = await self.registry.resolve(api_id=id, name=name)
        updated = await self.registry.enable_api(api.id)
        return {
            "message": f"API '{updated.name}' enabled successfully",
            "api": updated.to_document(),
        }


class DisableApiTool(RegistryTool):

    management = True

    @property
    def name(self) -> str:
        return "disable_api"

    @property
    def description(self) -> str:
        return "Disable an API. The API will not appear as an available tool but will be preserved."

    @property
    def parameters(self) -> List[ToolParameter]:
        return id_parameters("disable")

    async def execute(self, id: str = None, name: str = None, **kwargs) -> Dict[str, Any]:
        api = await self.registry.resolve(api_id=id, name=name)
        updated = await self.registry.disable_api(api.id)
        return {
            "message": f"API '{updated.name}' disabled successfully",
            "api": updated.to_document(),
        }


class SetVariableTool(RegistryTool):

    management = True

    @property
    def name(self) -> str:
        return "set_variable"

    @property
    def description(self) -> str:
        return "Set a global variable usable as ${KEY} in base URLs, paths, headers and credentials."

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter("key", "string", "Variable name"),
            ToolParameter("value", "string", "Variable value"),
        ]

    async def execute(self, key: str, value: Any, **kwargs) -> str:
        if not isinstance(value, str):
            raise ValidationError("value must be a string")
        await self.registry.set_variable(key, value)
        return f"Variable '{key}' set successfully"


class DeleteVariableTool(RegistryTool):

    management = True

    @property
    def name(self) -> str:
        return "delete_variable"

    @property
    def description(self) -> str:
        return "Delete a global variable."

    @property
    def parameters(self) -> List[ToolParameter]:
        return [ToolParameter("key", "string", "Variable name")]

    async def execute(self, key: str, **kwargs) -> Dict[str, Any]:
        deleted = await self.registry.delete_variable(key)
        message = f"Variable '{key}' deleted" if deleted else f"Variable '{key}' not found"
        return {"deleted": deleted, "message": message}


QUERY_TOOLS = [ListApisTool, GetApiTool, ListApisByTagTool, ListVariablesTool]
MANAGEMENT_TOOLS = [AddApiTool, UpdateApiTool, DeleteApiTool, EnableApiTool, DisableApiTool, SetVariableTool, DeleteVariableTool]
