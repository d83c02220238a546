"""
Transport layer abstraction for MCP communication.

A transport owns one channel to one server. Its single capability is
``open()``: an async context manager yielding the ``(read_stream,
write_stream)`` pair an ``mcp.ClientSession`` runs over. Leaving the context
releases the channel (terminates the child process, closes the HTTP session
or event stream).

Implements:
  - StdioTransport: JSON-RPC over a child process' stdin/stdout
  - StreamableHTTPTransport: JSON-RPC over HTTP(S) POST (see http_transport)
  - SSETransport: server push over a long-lived Server-Sent Events stream
  - LoopbackTransport: a pre-connected in-process stream pair, for tests
"""
import abc
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from mcp import StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client
from mcp.shared.message import SessionMessage

from ..models.common import TransportType

logger = structlog.get_logger(__name__)

TransportStreams = tuple[
    MemoryObjectReceiveStream[SessionMessage | Exception],
    MemoryObjectSendStream[SessionMessage],
]


class Transport(abc.ABC):
    """Abstract transport for one conversation with an MCP server."""

    kind: TransportType

    @abc.abstractmethod
    def open(self) -> Any:
        """
        Returns an async context manager yielding ``TransportStreams``.
        No process or socket exists before the context is entered.
        """
        ...

    def describe(self) -> str:
        return self.kind.value


class StdioTransport(Transport):
    """
    JSON-RPC over stdin/stdout pipes to a child process.

    The server runs as a subprocess spawned when the transport is opened and
    terminated when it is closed.
    """
    kind = TransportType.LOCAL

    def __init__(self, command: str, args: list[str], env: dict[str, str] | None = None):
        self.command = command
        self.args = args
        self.env = env

    def describe(self) -> str:
        return " ".join([self.command, *self.args])

    @asynccontextmanager
    async def open(self) -> AsyncIterator[TransportStreams]:
        params = StdioServerParameters(
            command=self.command,
            args=self.args,
            env=self.env if self.env is not None else dict(os.environ),
        )
        logger.debug("Starting stdio transport", command=self.command, args=self.args)
        async with stdio_client(params) as (read_stream, write_stream):
            yield read_stream, write_stream
        logger.debug("Stdio transport stopped", command=self.command)


class SSETransport(Transport):
    """Server-Sent Events transport: responses arrive on a long-lived event stream."""
    kind = TransportType.SSE

    def __init__(self, url: str, timeout_seconds: float, sse_read_timeout_seconds: float, headers: dict[str, str] | None = None):
        self.url = url
        self.headers = headers or {}
        self.timeout_seconds = timeout_seconds
        self.sse_read_timeout_seconds = sse_read_timeout_seconds

    def describe(self) -> str:
        return self.url

    @asynccontextmanager
    async def open(self) -> AsyncIterator[TransportStreams]:
        logger.debug("Opening SSE stream", url=self.url)
        async with sse_client(
            self.url,
            headers=self.headers or None,
            timeout=self.timeout_seconds,
            sse_read_timeout=self.sse_read_timeout_seconds,
        ) as (read_stream, write_stream):
            yield read_stream, write_stream
        logger.debug("SSE stream closed", url=self.url)


class LoopbackTransport(Transport):
    """Attaches to a pre-connected in-process stream pair. The streams stay owned by the caller."""
    kind = TransportType.LOOPBACK

    def __init__(self, streams: TransportStreams):
        self.streams = streams

    @asynccontextmanager
    async def open(self) -> AsyncIterator[TransportStreams]:
        read_stream, write_stream = self.streams
        yield read_stream, write_stream

