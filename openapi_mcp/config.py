"""
Configuration

Settings come from built-in defaults, then environment variables (a `.env`
file is loaded first), then command-line flags.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

TRANSPORTS = ("stdio", "http")


def default_store_path() -> Path:
    """`<config dir>/mcp-openapi/apis.json`."""
    config_dir = os.getenv("XDG_CONFIG_HOME")
    base = Path(config_dir) if config_dir else Path.home() / ".config"
    return base / "mcp-openapi" / "apis.json"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    transport: str = "stdio"
    host: str = "127.0.0.1"
    port: int = 3000
    store_path: Path = field(default_factory=default_store_path)
    enable_management: bool = True
    auth_token: Optional[str] = None
    timeout: float = 30.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        load_dotenv(dotenv_path)

        store = os.getenv("MCP_OPENAPI_STORE")
        return cls(
            transport=os.getenv("MCP_OPENAPI_TRANSPORT", "stdio"),
            host=os.getenv("MCP_OPENAPI_HOST", "127.0.0.1"),
            port=int(os.getenv("MCP_OPENAPI_PORT", "3000")),
            store_path=Path(store).expanduser() if store else default_store_path(),
            enable_management=not _env_flag("MCP_OPENAPI_NOMG"),
            auth_token=os.getenv("MCP_OPENAPI_TOKEN") or None,
            timeout=float(os.getenv("MCP_OPENAPI_TIMEOUT", "30")),
            log_level=os.getenv("MCP_OPENAPI_LOG_LEVEL", "INFO").upper(),
        )
