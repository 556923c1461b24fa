"""
MCP OpenAPI

Registry of third-party HTTP API definitions, each exposed as a callable
MCP tool. Definitions persist to a JSON file; calls are built dynamically
from the stored definition and the caller's arguments.
"""

__version__ = "0.1.0"

from .base import MCPTool, MCPToolError
from .invoker import ApiCallResult, ApiInvoker
from .models import ApiDefinition, ApiStore
from .registry import ApiRegistry
from .schema import to_input_schema
from .store import Store
from .toolbox import Toolbox
from .variables import substitute, substitute_recursive

__all__ = [
    "ApiCallResult",
    "ApiDefinition",
    "ApiInvoker",
    "ApiRegistry",
    "ApiStore",
    "MCPTool",
    "MCPToolError",
    "Store",
    "Toolbox",
    "substitute",
    "substitute_recursive",
    "to_input_schema",
]
