"""
Toolbox

Single Source of Truth (SSOT) for tool discovery and routing.
Combines the built-in registry tools with one dynamic tool per enabled API
and routes calls by tool name.
"""

import logging
from typing import Any, Dict, List, Optional

from .base import ManagementDisabledError, NotFoundError, ToolDefinition, build_envelope
from .invoker import ApiInvoker
from .registry import ApiRegistry
from .tools import MANAGEMENT_TOOLS, QUERY_TOOLS, DynamicApiTool, RegistryTool

logger = logging.getLogger(__name__)

MANAGEMENT_TOOL_NAMES = frozenset(
    ["add_api", "update_api", "delete_api", "enable_api", "disable_api", "set_variable", "delete_variable"]
)


class Toolbox:
    """
    Tool listing and dispatch for the protocol front-ends.

    Management tools are hidden from listings, and refuse to run, when
    `enable_management` is False.
    """

    def __init__(
        self,
        registry: ApiRegistry,
        invoker: ApiInvoker,
        enable_management: bool = True,
    ):
        self.registry = registry
        self.invoker = invoker
        self.enable_management = enable_management

        reserved = set(MANAGEMENT_TOOL_NAMES)
        builtin: List[RegistryTool] = [cls(registry) for cls in QUERY_TOOLS + MANAGEMENT_TOOLS]
        reserved.update(tool.name for tool in builtin)
        for tool in builtin:
            tool.reserved_names = reserved

        self._builtin: Dict[str, RegistryTool] = {tool.name: tool for tool in builtin}

    @property
    def builtin_names(self) -> List[str]:
        return list(self._builtin.keys())

    def _available_builtin(self) -> List[RegistryTool]:
        return [
            tool for tool in self._builtin.values()
            if self.enable_management or not tool.management
        ]

    async def get_all_tools(self) -> Dict[str, ToolDefinition]:
        """
        Get all currently callable tools.
        Rebuilt on every call so registry changes show up immediately.
        """
        tools = {tool.name: tool.to_definition() for tool in self._available_builtin()}

        for api in await self.registry.list_enabled_apis():
            if api.name in self._builtin:
                logger.warning(f"API '{api.name}' shadows a built-in tool and is not listed")
                continue
            tools[api.name] = DynamicApiTool(api, self.invoker, self.registry).to_definition()

        return tools

    async def get_tool(self, name: str) -> Optional[ToolDefinition]:
        """
        Get a specific tool by name.
        Returns None if tool not found.
        """
        return (await self.get_all_tools()).get(name)

    async def list_tool_names(self) -> List[str]:
        return list((await self.get_all_tools()).keys())

    async def get_tools_schema(self) -> List[Dict[str, Any]]:
        """All tools as MCP tool descriptors."""
        return [
            {
                "name": definition.name,
                "description": definition.description,
                "inputSchema": definition.input_schema,
            }
            for definition in (await self.get_all_tools()).values()
        ]

    async def execute_tool(self, name: str, arguments: Dict[str, Any] = None) -> Dict[str, Any]:
        """
        Execute a tool by name with given arguments.
        Returns standardized response format.

        Built-in names go to the registry tools; any other name is a dynamic
        call against the API registered under that name.
        """
        arguments = arguments or {}

        if name in MANAGEMENT_TOOL_NAMES and not self.enable_management:
            return build_envelope(
                name,
                error=ManagementDisabledError(
                    f"Management tool '{name}' is disabled. Start without --nomg to enable it.",
                    tool_name=name,
                ),
            )

        tool = self._builtin.get(name)
        if tool is not None:
            return await tool.run(**arguments)

        api = await self.registry.get_api_by_name(name)
        if api is None:
            return build_envelope(
                name,
                error=NotFoundError(f"Tool not found: {name}", tool_name=name),
            )

        return await DynamicApiTool(api, self.invoker, self.registry).run(**arguments)
