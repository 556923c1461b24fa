"""
MCP Tool Base Classes and Errors

Provides the error taxonomy shared by the store, registry and invocation
engine, plus the common wrapper, validation and envelope handling for all
tools exposed by the server.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


# ============== Errors ==============


class MCPToolError(Exception):
    """Base exception for every typed failure raised by the core."""

    error_type = "unexpected"

    def __init__(self, message: str, tool_name: str = None, details: Dict = None):
        self.message = message
        self.tool_name = tool_name
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(MCPToolError):
    """Unknown API id or name."""

    error_type = "not_found"


class ConflictError(MCPToolError):
    """Duplicate API name on add or rename."""

    error_type = "conflict"


class ValidationError(MCPToolError):
    """Raised when tool input validation fails."""

    error_type = "validation"


class DisabledError(MCPToolError):
    """Call against a disabled API."""

    error_type = "disabled"


class ManagementDisabledError(DisabledError):
    """Call to a management tool while management is turned off."""

    error_type = "management_disabled"


class MissingParameterError(MCPToolError):
    """A required path/query/header parameter is absent from the call arguments."""

    error_type = "missing_parameter"


class UpstreamUnreachableError(MCPToolError):
    """Transport-level failure (connect, timeout, DNS) calling the target API."""

    error_type = "upstream_unreachable"


class PersistenceError(MCPToolError):
    """The backing file could not be read or written."""

    error_type = "persistence"


class CorruptStoreError(PersistenceError):
    """The backing file exists but does not parse as a store document."""


# ============== Tool definitions ==============


@dataclass
class ToolParameter:
    """Definition of a tool parameter."""
    name: str
    type: str
    description: str
    required: bool = True
    default: Any = None
    # Extra JSON schema keywords (enum, items, properties, ...)
    schema: Dict[str, Any] = field(default_factory=dict)

    def to_property(self) -> Dict[str, Any]:
        prop: Dict[str, Any] = {
            "type": self.type,
            "description": self.description,
        }
        prop.update(self.schema)
        if self.default is not None:
            prop["default"] = self.default
        return prop


@dataclass
class ToolDefinition:
    """Complete definition of an MCP tool."""
    name: str
    description: str
    input_schema: Dict[str, Any]
    parameters: List[ToolParameter] = field(default_factory=list)
    handler: Optional[Callable] = None
    category: str = "general"


def build_envelope(
    tool_name: str,
    result: Any = None,
    error: MCPToolError = None,
) -> Dict[str, Any]:
    """Standardized response format shared by every tool."""
    if error is None:
        return {
            "success": True,
            "tool": tool_name,
            "result": result,
            "error": None,
            "error_type": None,
        }
    return {
        "success": False,
        "tool": tool_name,
        "result": None,
        "error": error.message,
        "error_type": error.error_type,
    }


class MCPTool(ABC):
    """
    Abstract base class for MCP tools.

    All tools must inherit from this class and implement:
    - name: Tool identifier
    - description: What the tool does
    - parameters: List of ToolParameter definitions
    - execute(): The actual tool logic
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for the tool."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        pass

    @property
    def parameters(self) -> List[ToolParameter]:
        """List of parameters the tool accepts."""
        return []

    @property
    def category(self) -> str:
        """Category for grouping tools."""
        return "general"

    @property
    def input_schema(self) -> Dict[str, Any]:
        """JSON schema of the tool arguments, derived from `parameters`."""
        properties = {}
        required = []

        for param in self.parameters:
            properties[param.name] = param.to_property()
            if param.required:
                required.append(param.name)

        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }

    def validate(self, /, **kwargs) -> Dict[str, Any]:
        """
        Validate input parameters.
        Returns validated/normalized parameters.
        Raises ValidationError if validation fails.
        """
        validated = {}

        for param in self.parameters:
            value = kwargs.get(param.name)

            if value is None:
                if param.required:
                    raise ValidationError(
                        f"Missing required parameter: {param.name}",
                        tool_name=self.name
                    )
                value = param.default

            validated[param.name] = value

        return validated

    @abstractmethod
    async def execute(self, /, **kwargs) -> Any:
        """
        Execute the tool with given parameters.
        This method should contain the actual tool logic.
        """
        pass

    async def run(self, /, **kwargs) -> Dict[str, Any]:
        """
        Public entry point: validate and execute.
        Returns standardized response format.
        """
        try:
            validated = self.validate(**kwargs)
            result = await self.execute(**validated)
            return build_envelope(self.name, result=result)
        except MCPToolError as e:
            if e.tool_name is None:
                e.tool_name = self.name
            logger.error(f"{e.error_type} error in {self.name}: {e.message}")
            return build_envelope(self.name, error=e)
        except Exception as e:
            logger.exception(f"Unexpected error in {self.name}")
            return build_envelope(self.name, error=MCPToolError(str(e), tool_name=self.name))

    def to_definition(self) -> ToolDefinition:
        """Convert tool to ToolDefinition for the toolbox."""
        return ToolDefinition(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
            parameters=self.parameters,
            handler=self.run,
            category=self.category
        )
