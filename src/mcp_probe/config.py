"""Configuration management for MCP Probe."""

import json
import re
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .mcp_client.translator import configuration_error
from .models.common import TransportType

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")


def is_valid_transport(transport: Any) -> bool:
    """Check whether ``transport`` names a supported transport kind."""
    try:
        TransportType(transport)
    except ValueError:
        return False
    return True

def validate_url(url: str) -> bool:
    """Check that ``url`` parses as an absolute URL (a scheme plus a network location or path)."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return bool(parsed.scheme and _SCHEME_RE.match(parsed.scheme) and (parsed.netloc or parsed.path))


class ConnectionConfig(BaseModel):
    """
    Immutable description of how to reach one MCP server.

    Validated eagerly on construction, before any process is spawned or
    socket opened. Invalid combinations raise an ApplicationError of kind
    CONFIGURATION_ERROR; the first failing rule wins.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    transport_kind: TransportType = Field(..., description="Transport used to reach the server.")
    url: Optional[str] = Field(None, description="Server URL, required for http, https and sse.")
    command_line: Optional[str] = Field(None, description="Command launching a local server, split on whitespace.")
    bearer_token: Optional[str] = Field(None, repr=False, description="Sent as 'Authorization: Bearer <token>' over http/https.")
    quiet: bool = Field(default=False, description="Display hint, ignored by the client core.")
    loopback_streams: Any = Field(default=None, repr=False, exclude=True, description="Pre-connected (read, write) stream pair for the loopback transport.")

    @model_validator(mode="before")
    @classmethod
    def _validate_combination(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        kind = data.get("transport_kind")
        if isinstance(kind, TransportType):
            kind = kind.value
        if not is_valid_transport(kind):
            raise configuration_error(f"Invalid transport type: {kind}")

        transport = TransportType(kind)
        url = data.get("url")
        if transport.is_remote and not url:
            raise configuration_error(f"URL is required for {transport.value} transport")

        if transport is TransportType.LOCAL:
            command_line = data.get("command_line")
            if not isinstance(command_line, str) or not command_line.strip():
                raise configuration_error("Command is required for local transport")

        if url and not validate_url(url):
            raise configuration_error(f"Invalid URL: {url}")

        if transport is TransportType.LOOPBACK and data.get("loopback_streams") is None:
            raise configuration_error("Streams are required for loopback transport")

        return data

    @property
    def command(self) -> str:
        """Executable for the local transport (first whitespace-delimited token)."""
        return self.command_line.split()[0] if self.command_line else ""

    @property
    def args(self) -> list[str]:
        """Arguments for the local transport. No shell quoting is honoured."""
        return self.command_line.split()[1:] if self.command_line else []

    @property
    def target(self) -> str:
        """Human-readable description of the server being reached."""
        if self.url:
            return self.url
        if self.transport_kind is TransportType.LOCAL:
            return "local server"
        return "in-process server"


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="WARNING", description="Log level")
    format: str = Field(default="console", description="Log format ('console' or 'json')")

class MCPClientConfig(BaseModel):
    """Configuration for the MCP client transports."""
    request_timeout_seconds: float = Field(default=60.0, gt=0, description="Timeout for a single request to the MCP server.")
    connect_timeout_seconds: float = Field(default=10.0, gt=0, description="Timeout for establishing a connection to the MCP server.")
    sse_read_timeout_seconds: float = Field(default=300.0, gt=0, description="How long to wait for a new event on an SSE stream.")
    ssl_verify: bool = Field(default=True, description="Enable/disable SSL certificate verification for HTTP transports.")
    terminate_session_on_close: bool = Field(default=True, description="Send an HTTP DELETE to end the server-side session on close.")


class Settings(BaseSettings):
    """Process-level settings for MCP Probe. Loads from environment variables prefixed with MCP_PROBE_."""

    model_config = SettingsConfigDict(
        env_prefix='MCP_PROBE_',
        env_nested_delimiter='__', # e.g., MCP_PROBE_MCP_CLIENT__REQUEST_TIMEOUT_SECONDS
        extra='ignore',
        env_file='.env',
        env_file_encoding='utf-8'
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    mcp_client: MCPClientConfig = Field(default_factory=MCPClientConfig)
    client_name: str = Field(default="mcp-probe", description="Client name announced during the protocol handshake.")

    @classmethod
    def from_file(cls, file_path: Path) -> "Settings":
        """Create settings strictly from a JSON file; environment variables are not layered on top."""
        with open(file_path) as f:
            config_data = json.load(f)
        return cls.model_validate(config_data)
