"""
MCP Protocol Client Implementation.

Sessions, transports (stdio, streamable HTTP, SSE, in-process loopback) and
the error taxonomy shared by every transport. Import the session and invoker
from their modules: ``mcp_probe.mcp_client.session`` and
``mcp_probe.mcp_client.invoker``.
"""

from .exceptions import (
    ApplicationError,
    MCPAuthError,
    MCPClientError,
    MCPConnectionError,
    MCPProtocolError,
    MCPTimeoutError,
)
from .translator import translate_error

__all__ = [
    "ApplicationError",
    "MCPAuthError",
    "MCPClientError",
    "MCPConnectionError",
    "MCPProtocolError",
    "MCPTimeoutError",
    "translate_error",
]
