from enum import Enum

from pydantic import BaseModel


class BasePydanticModel(BaseModel):
    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
        "use_enum_values": False,
        "frozen": True,
    }

class TransportType(str, Enum):
    LOCAL = "local"
    HTTP = "http"
    HTTPS = "https"
    SSE = "sse"
    LOOPBACK = "loopback" # In-process channel pair, used by tests

    @property
    def is_remote(self) -> bool:
        return self in (TransportType.HTTP, TransportType.HTTPS, TransportType.SSE)

class ErrorKind(str, Enum):
    """Stable identifiers for every failure the client reports."""
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    NOT_CONNECTED = "NOT_CONNECTED"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    INVALID_PARAMS = "INVALID_PARAMS"
    SERVER_ERROR = "SERVER_ERROR"

class SessionState(str, Enum):
    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    CLOSED = "closed"
