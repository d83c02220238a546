"""
Tool invoker: the entry point callers use to run one operation against a server.
"""
from typing import Any, Optional

import structlog

from ..config import ConnectionConfig, Settings
from ..models.common import TransportType
from ..models.mcp import ToolArguments, ToolDescriptor
from .session import MCPSession

logger = structlog.get_logger(__name__)


class ToolInvoker:
    """
    Validates configuration, opens one session, performs exactly one
    operation and closes the session whatever the outcome. A failure while
    closing never replaces the operation's own result or error.
    """

    def __init__(self, connection: ConnectionConfig, settings: Optional[Settings] = None):
        self.connection = connection
        self.settings = settings or Settings()

    @classmethod
    def from_options(
        cls,
        transport_kind: str | TransportType,
        url: Optional[str] = None,
        command_line: Optional[str] = None,
        bearer_token: Optional[str] = None,
        quiet: bool = False,
        settings: Optional[Settings] = None,
    ) -> "ToolInvoker":
        """Builds the ConnectionConfig first, so configuration errors surface before any session exists."""
        connection = ConnectionConfig(
            transport_kind=transport_kind,
            url=url,
            command_line=command_line,
            bearer_token=bearer_token,
            quiet=quiet,
        )
        return cls(connection, settings)

    def new_session(self) -> MCPSession:
        return MCPSession(self.connection, self.settings)

    async def list_tools(self) -> list[ToolDescriptor]:
        logger.debug("Invoking tool discovery.", target=self.connection.target)
        session = self.new_session()
        await session.connect()
        try:
            return await session.list_tools()
        finally:
            await session.close()

    async def call_tool(self, name: str, arguments: ToolArguments | None = None) -> dict[str, Any]:
        logger.debug("Invoking tool.", tool=name, target=self.connection.target)
        session = self.new_session()
        await session.connect()
        try:
            return await session.call_tool(name, arguments)
        finally:
            await session.close()
