"""MCP Probe - command-line client for Model Context Protocol servers.

Connects to an MCP server over stdio, streamable HTTP(S) or SSE, lists the
tools it exposes and invokes them, either interactively or from scripts.
"""

__version__ = "1.1.0"

from .config import ConnectionConfig, Settings

__all__ = ["ConnectionConfig", "Settings", "__version__"]
