"""
Tools Package

Built-in query/management tools over the API registry, and the dynamic tool
that wraps each registered API. Collected by toolbox.py.
"""

from .dynamic import DynamicApiTool
from .management import MANAGEMENT_TOOLS, QUERY_TOOLS, RegistryTool

__all__ = ["DynamicApiTool", "MANAGEMENT_TOOLS", "QUERY_TOOLS", "RegistryTool"]
