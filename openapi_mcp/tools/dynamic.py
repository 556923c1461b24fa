"""
Dynamic API Tool

Wraps one registered ApiDefinition as a callable tool. Arguments are passed
through untouched; the invocation engine binds them to the request.
"""

from typing import Any, Dict

from ..base import MCPTool
from ..invoker import ApiInvoker
from ..models import ApiDefinition
from ..registry import ApiRegistry
from ..schema import to_input_schema


class DynamicApiTool(MCPTool):
    """Tool named after a registered API."""

    def __init__(self, api: ApiDefinition, invoker: ApiInvoker, registry: ApiRegistry):
        self.api = api
        self.invoker = invoker
        self.registry = registry

    @property
    def name(self) -> str:
        return self.api.name

    @property
    def description(self) -> str:
        return self.api.description

    @property
    def category(self) -> str:
        return "api"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return to_input_schema(self.api)

    def validate(self, /, **kwargs) -> Dict[str, Any]:
        # Required parameters are enforced per location by the invoker
        return kwargs

    async def execute(self, /, **arguments) -> Dict[str, Any]:
        variables = await self.registry.get_variables()
        result = await self.invoker.invoke(self.api, arguments, variables)
        data = result.to_dict()
        data["text"] = result.to_text()
        return data
