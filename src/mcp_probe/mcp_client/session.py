"""
MCP session: one transport, one protocol conversation, deterministic teardown.
"""
from contextlib import AsyncExitStack
from datetime import timedelta
from typing import Any

import anyio
import structlog
from mcp import ClientSession
from mcp import types as mcp_types

from ..config import ConnectionConfig, Settings
from ..models.common import SessionState
from ..models.mcp import ToolArguments, ToolDescriptor
from .exceptions import MCPClientError
from .selector import select_transport
from .transport import Transport
from .translator import connection_failed, not_connected, tool_error_result, translate_error

logger = structlog.get_logger(__name__)


class MCPSession:
    """
    Owns exactly one transport for one logical conversation with a server.

    Lifecycle: ``UNCONNECTED --connect--> CONNECTED --close--> CLOSED``.
    A failed ``connect()`` leaves the session ``UNCONNECTED`` with nothing
    left open. ``close()`` is safe to call in any state, any number of times.
    A closed session is never reused; build a new one per invocation.
    """

    def __init__(self, connection: ConnectionConfig, settings: Settings | None = None, transport: Transport | None = None):
        self.connection = connection
        self.settings = settings or Settings()
        self.transport = transport or select_transport(connection, self.settings)
        self._state = SessionState.UNCONNECTED
        self._exit_stack: AsyncExitStack | None = None
        self._client: ClientSession | None = None
        self.server_info: mcp_types.Implementation | None = None
        self.logger = logger.bind(transport=connection.transport_kind.value, server=self.transport.describe())

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is SessionState.CONNECTED and self._client is not None

    async def connect(self) -> None:
        """
        Opens the transport and performs the protocol handshake. Any failure
        releases whatever this attempt opened and is raised as a
        CONNECTION_FAILED ApplicationError. Cancellation releases the same way
        and propagates; the session stays UNCONNECTED either way.
        """
        if self._state is not SessionState.UNCONNECTED:
            raise MCPClientError(f"connect() called on a session in state '{self._state.value}'")

        from .. import __version__

        stack = AsyncExitStack()
        try:
            read_stream, write_stream = await stack.enter_async_context(self.transport.open())
            client = await stack.enter_async_context(
                ClientSession(
                    read_stream,
                    write_stream,
                    read_timeout_seconds=timedelta(seconds=self.settings.mcp_client.request_timeout_seconds),
                    client_info=mcp_types.Implementation(name=self.settings.client_name, version=__version__),
                )
            )
            init_result = await client.initialize()
        except anyio.get_cancelled_exc_class():
            # Unwound in this task so each context exits in the scope it was entered in.
            await self._release(stack)
            raise
        except Exception as e:
            self.logger.warning("Connection attempt failed.", error=str(e), error_type=type(e).__name__)
            await self._release(stack)
            raise connection_failed(e) from e

        self._exit_stack = stack
        self._client = client
        self.server_info = init_result.serverInfo
        self._state = SessionState.CONNECTED
        self.logger.info(
            "Connected to MCP server.",
            server_name=init_result.serverInfo.name,
            server_version=init_result.serverInfo.version,
            protocol_version=init_result.protocolVersion,
        )

    async def list_tools(self) -> list[ToolDescriptor]:
        """Returns the server's tools in the order the server reported them."""
        client = self._require_client()
        tools: list[ToolDescriptor] = []
        cursor: str | None = None
        try:
            while True:
                result = await (client.list_tools(cursor) if cursor else client.list_tools())
                tools.extend(ToolDescriptor.from_mcp_tool(tool) for tool in result.tools)
                cursor = result.nextCursor
                if not cursor:
                    break
        except Exception as e:
            self.logger.warning("Tool discovery failed.", error=str(e), error_type=type(e).__name__)
            raise translate_error(e) from e
        self.logger.debug("Listed tools.", tool_count=len(tools))
        return tools

    async def call_tool(self, name: str, arguments: ToolArguments | None = None) -> dict[str, Any]:
        """
        Invokes ``name`` with ``arguments`` and returns the raw result payload
        (``content`` blocks, plus ``structuredContent`` when the server sends it).
        A result the server flags with ``isError`` is raised as an ApplicationError.
        """
        client = self._require_client()
        log = self.logger.bind(tool=name)
        try:
            result = await client.call_tool(name, arguments or {})
        except Exception as e:
            log.warning("Tool call failed.", error=str(e), error_type=type(e).__name__)
            raise translate_error(e, tool_name=name) from e

        if result.isError:
            text = _first_text(result.content)
            log.warning("Tool reported an error.", error_text=text)
            raise tool_error_result(name, text)

        log.debug("Tool call succeeded.", content_blocks=len(result.content))
        return result.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"isError", "meta"})

    async def close(self) -> None:
        """Releases the transport. Never raises; teardown failures are logged and dropped."""
        stack, self._exit_stack = self._exit_stack, None
        self._client = None
        self._state = SessionState.CLOSED
        if stack is not None:
            await self._release(stack)
            self.logger.debug("Session closed.")

    async def _release(self, stack: AsyncExitStack) -> None:
        try:
            await stack.aclose()
        except Exception as e:
            self.logger.debug("Error during transport teardown, ignoring.", error=str(e), error_type=type(e).__name__)

    def _require_client(self) -> ClientSession:
        if not self.is_connected:
            raise not_connected()
        return self._client

    async def __aenter__(self) -> "MCPSession":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def _first_text(content: list[Any]) -> str | None:
    for block in content:
        if isinstance(block, mcp_types.TextContent):
            return block.text
    return None
