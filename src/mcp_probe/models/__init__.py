"""
Pydantic models for MCP Probe.
"""
from .common import BasePydanticModel, ErrorKind, SessionState, TransportType
from .mcp import ParameterSpec, ToolArguments, ToolDescriptor, ToolInputSchema

__all__ = [
    "BasePydanticModel",
    "ErrorKind",
    "ParameterSpec",
    "SessionState",
    "ToolArguments",
    "ToolDescriptor",
    "ToolInputSchema",
    "TransportType",
]
