import pytest

from mcp_probe.config import ConnectionConfig, MCPClientConfig, Settings


@pytest.fixture
def settings():
    return Settings(mcp_client=MCPClientConfig(request_timeout_seconds=10.0, connect_timeout_seconds=5.0))

@pytest.fixture
def loopback_config():
    """Factory for connection configs attached to an in-process server's streams."""
    def _make(streams) -> ConnectionConfig:
        return ConnectionConfig(transport_kind="loopback", loopback_streams=streams)
    return _make
