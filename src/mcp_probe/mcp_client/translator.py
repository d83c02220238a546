"""
Translation of transport, protocol and tool failures into ApplicationError.

Servers surface the same fault through different channels: a JSON-RPC error
code on one implementation, free text on another, an ``isError`` result on a
third. Structured codes are checked before the text heuristics, and "not
found" before "Invalid parameters"; changing that order changes which kind a
given server response maps to.
"""
from typing import Optional

from mcp import types as mcp_types
from mcp.shared.exceptions import McpError

from ..models.common import ErrorKind
from .exceptions import ApplicationError, MCPProtocolError

METHOD_NOT_FOUND = mcp_types.METHOD_NOT_FOUND # -32601
INVALID_PARAMS = mcp_types.INVALID_PARAMS # -32602

NOT_FOUND_PATTERN = "not found"
INVALID_PARAMS_PATTERN = "invalid parameters"
DEFAULT_SERVER_ERROR_MESSAGE = "Server error"


def _unwrap(exc: BaseException) -> BaseException:
    """Reduces single-member exception groups (raised by anyio task groups) to their cause."""
    while isinstance(exc, BaseExceptionGroup) and len(exc.exceptions) == 1:
        exc = exc.exceptions[0]
    return exc

def _error_code(exc: BaseException) -> Optional[int]:
    if isinstance(exc, McpError):
        return exc.error.code
    if isinstance(exc, MCPProtocolError):
        return exc.error_code
    code = getattr(exc, "code", None)
    return code if isinstance(code, int) and not isinstance(code, bool) else None

def _error_message(exc: BaseException) -> str:
    if isinstance(exc, McpError):
        return exc.error.message or ""
    return str(exc)

def _tool_not_found(message: str, tool_name: str) -> Optional[ApplicationError]:
    if NOT_FOUND_PATTERN not in message.lower():
        return None
    if tool_name not in message:
        message = f"Tool '{tool_name}' not found: {message}"
    return ApplicationError(ErrorKind.TOOL_NOT_FOUND, message, tool_name)

def _from_text(message: str, tool_name: str) -> ApplicationError:
    not_found = _tool_not_found(message, tool_name)
    if not_found is not None:
        return not_found
    lowered = message.lower()
    if INVALID_PARAMS_PATTERN in lowered:
        return ApplicationError(
            ErrorKind.INVALID_PARAMS, f"Invalid parameters for tool '{tool_name}': {message}", tool_name
        )
    return ApplicationError(ErrorKind.SERVER_ERROR, message or DEFAULT_SERVER_ERROR_MESSAGE, tool_name)

def translate_error(exc: BaseException, tool_name: Optional[str] = None) -> ApplicationError:
    """
    Maps any failure to exactly one ApplicationError.

    ``tool_name`` is the tool being called, if any. Operations that do not
    name a resource (tool discovery) pass ``None`` and always yield
    ``SERVER_ERROR`` unless the failure was already translated.
    """
    exc = _unwrap(exc)
    if isinstance(exc, ApplicationError):
        return exc

    message = _error_message(exc)
    if tool_name is None:
        return ApplicationError(ErrorKind.SERVER_ERROR, message or DEFAULT_SERVER_ERROR_MESSAGE)

    code = _error_code(exc)
    if code == METHOD_NOT_FOUND:
        return ApplicationError(ErrorKind.TOOL_NOT_FOUND, f"Tool '{tool_name}' not found", tool_name)
    if code == INVALID_PARAMS:
        return ApplicationError(
            ErrorKind.INVALID_PARAMS, f"Invalid parameters for tool '{tool_name}': {message}", tool_name
        )
    return _from_text(message, tool_name)

def tool_error_result(tool_name: str, text: Optional[str]) -> ApplicationError:
    """
    Translates a result the server flagged with ``isError``. Only the "not
    found" rule applies; any other text is a SERVER_ERROR carried verbatim.
    """
    not_found = _tool_not_found(text or "", tool_name)
    if not_found is not None:
        return not_found
    return ApplicationError(ErrorKind.SERVER_ERROR, text or DEFAULT_SERVER_ERROR_MESSAGE, tool_name)

def configuration_error(message: str) -> ApplicationError:
    return ApplicationError(ErrorKind.CONFIGURATION_ERROR, message)

def connection_failed(cause: BaseException) -> ApplicationError:
    cause = _unwrap(cause)
    detail = _error_message(cause) or type(cause).__name__
    return ApplicationError(ErrorKind.CONNECTION_FAILED, f"Failed to connect: {detail}")

def not_connected() -> ApplicationError:
    return ApplicationError(ErrorKind.NOT_CONNECTED, "Not connected to server")
