"""
MCP transport over HTTP/HTTPS ("streamable HTTP").

Every outgoing JSON-RPC message is POSTed to the server endpoint. The server
answers with a JSON body, with a ``text/event-stream`` body carrying one or
more messages, or with ``202 Accepted`` for notifications. The session id
the server assigns during ``initialize`` is echoed on every later request and
used for a best-effort ``DELETE`` when the transport closes. After
``initialize`` a GET event stream is opened for server-initiated messages
when the server offers one.
"""
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
import anyio
import structlog
from mcp import types as mcp_types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError

from ..config import MCPClientConfig
from ..models.common import TransportType
from .exceptions import (
    MCPAuthError,
    MCPClientError,
    MCPConnectionError,
    MCPProtocolError,
    MCPTimeoutError,
)
from .transport import Transport, TransportStreams

logger = structlog.get_logger(__name__)

MCP_SESSION_ID = "mcp-session-id"
MCP_PROTOCOL_VERSION = "mcp-protocol-version"
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_SSE = "text/event-stream"


class StreamableHTTPTransport(Transport):
    """
    MCP transport that communicates with a server over HTTP or HTTPS.
    Uses one aiohttp.ClientSession per opened transport; requests carry the
    configured extra headers (e.g. ``Authorization: Bearer ...``).
    """

    def __init__(self, url: str, client_config: MCPClientConfig, headers: dict[str, str] | None = None):
        self.url = url
        self.client_config = client_config
        self.headers = dict(headers or {})
        self.kind = TransportType.HTTPS if url.lower().startswith("https:") else TransportType.HTTP
        self.session_id: str | None = None
        self.protocol_version: str | None = None
        self.logger = logger.bind(server_endpoint=url, transport=self.kind.value)

    def describe(self) -> str:
        return self.url

    def _build_session(self) -> aiohttp.ClientSession:
        client_cfg = self.client_config
        if not client_cfg.ssl_verify:
            self.logger.warning("SSL verification is DISABLED for HTTP transport. This is insecure for production.")
        connector = aiohttp.TCPConnector(ssl=client_cfg.ssl_verify)
        timeout = aiohttp.ClientTimeout(
            total=client_cfg.request_timeout_seconds,
            connect=client_cfg.connect_timeout_seconds,
        )
        return aiohttp.ClientSession(connector=connector, timeout=timeout)

    def _request_headers(self) -> dict[str, str]:
        from .. import __version__

        headers = {
            "Content-Type": CONTENT_TYPE_JSON,
            "Accept": f"{CONTENT_TYPE_JSON}, {CONTENT_TYPE_SSE}",
            "User-Agent": f"mcp-probe/{__version__}",
            **self.headers,
        }
        if self.session_id:
            headers[MCP_SESSION_ID] = self.session_id
        if self.protocol_version:
            headers[MCP_PROTOCOL_VERSION] = self.protocol_version
        return headers

    @asynccontextmanager
    async def open(self) -> AsyncIterator[TransportStreams]:
        read_writer, read_stream = anyio.create_memory_object_stream(0)
        write_stream, write_reader = anyio.create_memory_object_stream(0)
        http = self._build_session()
        self.logger.debug("HTTP transport opened.")
        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(self._post_writer, http, write_reader, read_writer, tg)
                try:
                    yield read_stream, write_stream
                finally:
                    tg.cancel_scope.cancel()
        finally:
            with anyio.CancelScope(shield=True):
                await self.terminate_session(http)
                await http.close()
                for stream in (read_writer, read_stream, write_stream, write_reader):
                    await stream.aclose()
            self.logger.debug("HTTP transport closed.")

    async def _post_writer(self, http: aiohttp.ClientSession, write_reader, read_writer, tg) -> None:
        async with write_reader:
            async for session_message in write_reader:
                tg.start_soon(self._post_message, http, session_message, read_writer, tg)

    async def _post_message(self, http: aiohttp.ClientSession, session_message: SessionMessage, read_writer, tg=None) -> None:
        root = session_message.message.root
        request_id = root.id if isinstance(root, mcp_types.JSONRPCRequest) else None
        is_initialize = isinstance(root, mcp_types.JSONRPCRequest) and root.method == "initialize"
        try:
            await self.send_message(http, session_message.message, read_writer, is_initialize=is_initialize)
            if is_initialize and tg is not None:
                tg.start_soon(self.listen_server_stream, http, read_writer)
        except MCPClientError as e:
            if request_id is not None:
                await self._deliver_error(read_writer, request_id, e)
        except Exception as e:
            # Failures here must reach the waiting request, never the task group.
            self.logger.exception("Unexpected error while posting message.", error_type=type(e).__name__)
            if request_id is not None:
                await self._deliver_error(read_writer, request_id, MCPClientError(f"Unexpected transport error: {e}"))

    async def send_message(
        self,
        http: aiohttp.ClientSession,
        message: mcp_types.JSONRPCMessage,
        read_writer,
        is_initialize: bool = False,
    ) -> None:
        """POSTs one message and forwards every message in the reply to ``read_writer``."""
        payload = message.model_dump(by_alias=True, mode="json", exclude_none=True)
        self.logger.debug("Sending HTTP JSONRPC message", method=payload.get("method"), request_id=payload.get("id"))
        try:
            async with http.post(self.url, json=payload, headers=self._request_headers()) as response:
                self.logger.debug("Received HTTP response", status=response.status, content_type=response.content_type)
                if response.status == 202:
                    return
                await self._raise_for_status(response)

                session_id = response.headers.get(MCP_SESSION_ID)
                if session_id:
                    self.session_id = session_id

                if response.content_type == CONTENT_TYPE_SSE:
                    async for data in iter_sse_data(response.content):
                        await self._forward(read_writer, parse_message(data), is_initialize)
                    return

                response_text = await response.text()
                if not response_text.strip():
                    return
                try:
                    response_data = json.loads(response_text)
                except json.JSONDecodeError as e:
                    self.logger.error("Failed to decode JSON response", error=str(e), response_text=response_text[:500])
                    raise MCPProtocolError(f"Failed to decode JSON response from server: {e}") from e
                for item in response_data if isinstance(response_data, list) else [response_data]:
                    await self._forward(read_writer, parse_message(item), is_initialize)

        except aiohttp.ClientConnectorError as e:
            self.logger.error("Client connector error", error_os_error=e.os_error, error_str=str(e))
            raise MCPConnectionError(f"Connection failed to {self.url}: {e.os_error or str(e)}") from e
        except TimeoutError as e:
            timeout_total = self.client_config.request_timeout_seconds
            self.logger.error("Request timed out", timeout_total=timeout_total)
            raise MCPTimeoutError(f"Request to {self.url} timed out after {timeout_total}s.") from e
        except aiohttp.ClientError as e:
            self.logger.error("AIOHTTP client error", error_type=type(e).__name__, error_message=str(e))
            raise MCPConnectionError(f"HTTP client error for {self.url}: {e}") from e

    async def listen_server_stream(self, http: aiohttp.ClientSession, read_writer) -> None:
        """
        Opens the optional GET event stream the server uses for notifications
        and requests sent outside any POST. Servers without one answer 405.
        The stream is not resumed once it ends; a failure here only ends it.
        """
        headers = {**self._request_headers(), "Accept": CONTENT_TYPE_SSE}
        headers.pop("Content-Type", None)
        timeout = aiohttp.ClientTimeout(
            total=None,
            connect=self.client_config.connect_timeout_seconds,
            sock_read=self.client_config.sse_read_timeout_seconds,
        )
        try:
            async with http.get(self.url, headers=headers, timeout=timeout) as response:
                if response.status != 200 or response.content_type != CONTENT_TYPE_SSE:
                    self.logger.debug("Server offers no event stream.", status=response.status)
                    return
                self.logger.debug("Listening on server event stream.")
                async for data in iter_sse_data(response.content):
                    await self._forward(read_writer, parse_message(data), is_initialize=False)
        except (aiohttp.ClientError, TimeoutError, MCPProtocolError) as e:
            self.logger.debug("Server event stream ended.", error=str(e), error_type=type(e).__name__)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            self.logger.debug("Session already closed, dropping server event stream.")

    async def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        if response.status < 300:
            return
        response_text = await response.text()
        if response.status == 401:
            self.logger.warning("Authentication failed (401 Unauthorized)", server_response=response_text[:500])
            raise MCPAuthError(f"Authentication failed (401) for {self.url}", status=401)
        if response.status == 403:
            self.logger.warning("Forbidden (403)", server_response=response_text[:500])
            raise MCPAuthError(f"Forbidden (403) for {self.url}. Check the bearer token.", status=403)
        if response.status == 404 and self.session_id:
            self.logger.warning("Server session no longer exists", session_id=self.session_id)
            raise MCPConnectionError(f"Session terminated by {self.url}")
        self.logger.error("HTTP error status received", status=response.status, reason=response.reason, response_body=response_text[:500])
        raise MCPConnectionError(f"HTTP error {response.status} {response.reason} from {self.url}")

    async def _forward(self, read_writer, message: mcp_types.JSONRPCMessage, is_initialize: bool) -> None:
        if is_initialize and isinstance(message.root, mcp_types.JSONRPCResponse):
            version = message.root.result.get("protocolVersion")
            if isinstance(version, str):
                self.protocol_version = version
        await read_writer.send(SessionMessage(message))

    async def _deliver_error(self, read_writer, request_id: Any, error: MCPClientError) -> None:
        code = error.error_code if isinstance(error, MCPProtocolError) and error.error_code is not None else mcp_types.INTERNAL_ERROR
        jsonrpc_error = mcp_types.JSONRPCError(
            jsonrpc="2.0",
            id=request_id,
            error=mcp_types.ErrorData(code=code, message=str(error)),
        )
        try:
            await read_writer.send(SessionMessage(mcp_types.JSONRPCMessage(jsonrpc_error)))
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            self.logger.debug("Session already closed, dropping transport error.", request_id=request_id)

    async def terminate_session(self, http: aiohttp.ClientSession) -> None:
        """
        Asks the server to discard its session. Failures are logged and ignored:
        this runs during close, including close after a failed operation.
        """
        if not self.session_id or not self.client_config.terminate_session_on_close:
            return
        try:
            async with http.delete(self.url, headers=self._request_headers()) as response:
                if response.status == 405:
                    self.logger.debug("Server does not allow session termination.")
                else:
                    self.logger.debug("Session termination requested.", status=response.status)
        except Exception as e:
            self.logger.debug("Session termination failed, ignoring.", error=str(e), error_type=type(e).__name__)
        finally:
            self.session_id = None


def parse_message(data: Any) -> mcp_types.JSONRPCMessage:
    """Validates one JSON-RPC message given as text or decoded JSON."""
    try:
        if isinstance(data, str):
            return mcp_types.JSONRPCMessage.model_validate_json(data)
        return mcp_types.JSONRPCMessage.model_validate(data)
    except ValidationError as e:
        raise MCPProtocolError(f"Invalid JSONRPC message from server: {e}") from e

async def iter_sse_data(lines: AsyncIterator[bytes]) -> AsyncIterator[str]:
    """Yields the data of each ``message`` event in a Server-Sent Events body."""
    event = "message"
    data_lines: list[str] = []
    async for raw in lines:
        line = raw.decode("utf-8").rstrip("\r\n")
        if not line:
            if data_lines and event == "message":
                yield "\n".join(data_lines)
            event, data_lines = "message", []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "data":
            data_lines.append(value)
        elif field == "event":
            event = value
    if data_lines and event == "message":
        yield "\n".join(data_lines)
