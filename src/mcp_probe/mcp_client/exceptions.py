"""
Custom exceptions for the MCP client.
"""
from typing import Any, Dict, Optional

from ..models.common import ErrorKind


class MCPClientError(Exception):
    """Base class for all MCP client errors."""
    pass

class MCPConnectionError(MCPClientError):
    """Raised when there's an issue reaching the MCP server."""
    pass

class MCPTimeoutError(MCPConnectionError):
    """Raised when a connection or request times out."""
    pass

class MCPProtocolError(MCPClientError):
    """Raised for errors related to the JSONRPC protocol itself
    (e.g., malformed responses, unexpected message format)."""
    def __init__(self, message: str, error_code: Optional[int] = None, error_data: Optional[Dict] = None):
        super().__init__(message)
        self.error_code = error_code
        self.error_data = error_data

class MCPAuthError(MCPClientError):
    """Raised when the server rejects the request's credentials (HTTP 401/403)."""
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status

class ApplicationError(MCPClientError):
    """
    The error value surfaced to callers of the client.

    Carries a stable ``kind`` from :class:`ErrorKind`, a human-readable
    ``message`` and, when known, the tool the failure relates to.
    Instances are built by :mod:`mcp_probe.mcp_client.translator` and are
    not mutated afterwards.
    """

    def __init__(self, kind: ErrorKind, message: str, tool_name: Optional[str] = None):
        super().__init__(message)
        self._kind = ErrorKind(kind)
        self._message = message
        self._tool_name = tool_name

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def message(self) -> str:
        return self._message

    @property
    def tool_name(self) -> Optional[str]:
        return self._tool_name

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self._message, "code": self._kind.value}

    def __repr__(self) -> str:
        return f"ApplicationError(kind={self._kind.value!r}, message={self._message!r}, tool_name={self._tool_name!r})"
