"""Environment-driven server configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from .launch_config import parse_launch_options

SERVER_NAME = "browser-mcp"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 4004

LAUNCH_OPTIONS_ENV = "BROWSER_LAUNCH_OPTIONS"
LEGACY_LAUNCH_OPTIONS_ENV = "PUPPETEER_LAUNCH_OPTIONS"
ALLOW_DANGEROUS_ENV = "ALLOW_DANGEROUS"
CONTAINER_ENV = "DOCKER_CONTAINER"
PORT_ENV = "BROWSER_MCP_PORT"


@dataclass
class ServerConfig:
    """Snapshot of the environment-level settings that affect browser launches."""

    launch_options: dict[str, Any] = field(default_factory=dict)
    allow_dangerous: bool = False
    container: bool = False

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ServerConfig:
        env = os.environ if environ is None else environ
        raw = env.get(LAUNCH_OPTIONS_ENV) or env.get(LEGACY_LAUNCH_OPTIONS_ENV)
        return cls(
            launch_options=parse_launch_options(raw),
            allow_dangerous=env.get(ALLOW_DANGEROUS_ENV, "").lower() == "true",
            container=bool(env.get(CONTAINER_ENV)),
        )


def get_default_port() -> int:
    """Return the HTTP port from BROWSER_MCP_PORT, falling back to DEFAULT_PORT."""
    try:
        return int(os.getenv(PORT_ENV, str(DEFAULT_PORT)))
    except ValueError:
        return DEFAULT_PORT
