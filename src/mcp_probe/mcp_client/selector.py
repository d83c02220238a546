"""
Transport selection: turns a validated ConnectionConfig into a transport.
"""
from ..config import ConnectionConfig, Settings
from ..models.common import TransportType
from .http_transport import StreamableHTTPTransport
from .transport import LoopbackTransport, SSETransport, StdioTransport, Transport


def bearer_headers(token: str | None) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}

def select_transport(connection: ConnectionConfig, settings: Settings) -> Transport:
    """
    Builds the transport for ``connection``. Performs no I/O: the child
    process is spawned, or the socket opened, only when the session connects.
    """
    client_cfg = settings.mcp_client
    kind = connection.transport_kind

    if kind is TransportType.LOCAL:
        return StdioTransport(connection.command, connection.args)
    if kind in (TransportType.HTTP, TransportType.HTTPS):
        return StreamableHTTPTransport(
            connection.url,
            client_config=client_cfg,
            headers=bearer_headers(connection.bearer_token),
        )
    if kind is TransportType.SSE:
        return SSETransport(
            connection.url,
            timeout_seconds=client_cfg.connect_timeout_seconds,
            sse_read_timeout_seconds=client_cfg.sse_read_timeout_seconds,
        )
    if kind is TransportType.LOOPBACK:
        return LoopbackTransport(connection.loopback_streams)
    raise ValueError(f"Unsupported transport: {kind}")
