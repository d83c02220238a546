"""
Rendering of results and errors for the terminal.
"""
import json
from typing import Any

import click

from ..config import ConnectionConfig
from ..mcp_client.exceptions import ApplicationError
from ..models.common import ErrorKind
from ..models.mcp import ToolDescriptor

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CODES = {
    ErrorKind.TOOL_NOT_FOUND: 2,
    ErrorKind.INVALID_PARAMS: 3,
    ErrorKind.SERVER_ERROR: 4,
}


def exit_code_for(error: BaseException) -> int:
    if isinstance(error, ApplicationError):
        return EXIT_CODES.get(error.kind, EXIT_FAILURE)
    return EXIT_FAILURE

def format_output(result: Any, quiet: bool = False) -> str:
    if quiet:
        return ""
    if isinstance(result, str):
        return result
    if isinstance(result, dict | list):
        return json.dumps(result, indent=2)
    return str(result)

def usage_command(connection: ConnectionConfig) -> str:
    if connection.url:
        return f"mcp-probe --type {connection.transport_kind.value} --url {connection.url}"
    base = f"mcp-probe --type {connection.transport_kind.value}"
    if connection.command_line:
        base += f' --cmd "{connection.command_line}"'
    return base

def format_inspect_output(tools: list[ToolDescriptor], connection: ConnectionConfig) -> str:
    """Human-readable listing of tools, with a copy-paste usage line for each."""
    if not tools:
        return "No tools available on this server."

    base_cmd = usage_command(connection)
    lines = [f"Available tools on {click.style(connection.target, fg='cyan')}:", ""]
    for tool in tools:
        lines.append(f"{click.style('Tool:', fg='green')} {click.style(tool.name, bold=True)}")
        if tool.description:
            lines.append(f"  {click.style('Description:', dim=True)} {tool.description}")

        params = tool.parameters
        if params:
            lines.append(f"  {click.style('Parameters:', dim=True)}")
            for name, param in params.items():
                requirement = "required" if tool.input_schema.is_required(name) else "optional"
                line = f"    - {click.style(name, fg='yellow')} ({param.type}, {requirement})"
                if param.description:
                    line += f": {param.description}"
                lines.append(line)
            fields_list = ",".join(f"{p}=VALUE" for p in params)
            lines.append(f'  {click.style("Usage:", dim=True)} {base_cmd} call {tool.name} --fields "{fields_list}"')
        else:
            lines.append(f"  {click.style('Parameters:', dim=True)} (none)")
            lines.append(f"  {click.style('Usage:', dim=True)} {base_cmd} call {tool.name}")
        lines.append("")

    return "\n".join(lines).strip()
