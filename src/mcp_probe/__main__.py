"""CLI entry point for MCP Probe."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import click

from .config import Settings
from .logging_config import configure_logging
from .mcp_client.exceptions import ApplicationError
from .mcp_client.invoker import ToolInvoker
from .models.common import ErrorKind, TransportType
from .utils import exit_code_for, format_inspect_output, format_output, parse_fields
from .utils.output import EXIT_CODES, EXIT_FAILURE


def fail(ctx: click.Context, error: BaseException) -> None:
    """Reports ``error`` in the selected output mode and exits with its exit code."""
    as_json = ctx.obj.get("json", False) if ctx.obj else False
    if isinstance(error, ApplicationError):
        payload = error.to_dict()
        message = error.message
        if error.kind is ErrorKind.TOOL_NOT_FOUND:
            message += "\nRun 'mcp-probe inspect' to list the tools this server provides."
    else:
        payload = {"success": False, "error": str(error), "code": "UNKNOWN_ERROR"}
        message = str(error)

    if as_json:
        click.echo(json.dumps(payload, indent=2))
    else:
        click.secho(f"Error: {message}", fg="red", err=True)
    ctx.exit(exit_code_for(error))

def read_stdin() -> str:
    """Returns piped stdin, or an empty string when stdin is a terminal."""
    if sys.stdin.isatty():
        return ""
    return sys.stdin.read().strip()

def parse_json_arguments(ctx: click.Context, data: str, source: str) -> dict[str, Any]:
    try:
        params = json.loads(data)
    except json.JSONDecodeError as e:
        click.secho(f"Error: Invalid JSON {source}: {e}", fg="red", err=True)
        ctx.exit(EXIT_CODES[ErrorKind.INVALID_PARAMS])
    if not isinstance(params, dict):
        click.secho(f"Error: JSON {source} must be an object of tool arguments.", fg="red", err=True)
        ctx.exit(EXIT_CODES[ErrorKind.INVALID_PARAMS])
    return params


@click.group()
@click.option(
    "--type", "transport_type",
    type=click.Choice([t.value for t in TransportType if t is not TransportType.LOOPBACK]),
    default=TransportType.HTTPS.value,
    show_default=True,
    help="Transport used to reach the server.",
    envvar="MCP_PROBE_TYPE"
)
@click.option("--url", help="Server URL (http, https and sse transports).", envvar="MCP_PROBE_URL")
@click.option("--cmd", "command_line", help="Command that starts a local MCP server (local transport).", envvar="MCP_PROBE_CMD")
@click.option("--token", "bearer_token", help="Bearer token sent as an Authorization header (http/https).", envvar="MCP_PROBE_TOKEN")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output raw JSON (no formatting).")
@click.option("--quiet", "-q", is_flag=True, default=False, help="Suppress non-error output.")
@click.option(
    "--config-file", "-c",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to a JSON settings file.",
    envvar="MCP_PROBE_CONFIG_FILE"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override the logging level (e.g., DEBUG, INFO).",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Override logging format.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    transport_type: str,
    url: Optional[str],
    command_line: Optional[str],
    bearer_token: Optional[str],
    as_json: bool,
    quiet: bool,
    config_file: Optional[str],
    log_level: Optional[str],
    log_format: Optional[str],
) -> None:
    """MCP Probe - inspect and call the tools of an MCP server."""
    ctx.ensure_object(dict)
    ctx.obj["json"] = as_json

    try:
        settings = Settings.from_file(Path(config_file)) if config_file else Settings()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(EXIT_FAILURE)

    if log_level:
        settings.logging.level = log_level.upper()
    if log_format:
        settings.logging.format = log_format.lower()
    configure_logging(settings.logging)

    ctx.obj["settings"] = settings
    ctx.obj["quiet"] = quiet
    ctx.obj["options"] = {
        "transport_kind": transport_type,
        "url": url,
        "command_line": command_line,
        "bearer_token": bearer_token,
        "quiet": quiet,
    }

def build_invoker(ctx: click.Context) -> ToolInvoker:
    try:
        return ToolInvoker.from_options(settings=ctx.obj["settings"], **ctx.obj["options"])
    except ApplicationError as e:
        fail(ctx, e)


@cli.command()
@click.pass_context
def inspect(ctx: click.Context) -> None:
    """List available tools and their parameter schemas."""
    invoker = build_invoker(ctx)
    try:
        tools = asyncio.run(invoker.list_tools())
    except ApplicationError as e:
        fail(ctx, e)

    if ctx.obj["json"]:
        click.echo(json.dumps([tool.to_dict() for tool in tools], indent=2))
    elif not ctx.obj["quiet"]:
        click.echo(format_inspect_output(tools, invoker.connection))


@cli.command()
@click.argument("tool_name", required=False)
@click.argument("data", required=False)
@click.option("--tool", "tool_option", help="Tool name to call (alternative to the TOOL_NAME argument).")
@click.option("--fields", help='Simple parameter syntax: "key=value,key2=value2".')
@click.pass_context
def call(ctx: click.Context, tool_name: Optional[str], data: Optional[str], tool_option: Optional[str], fields: Optional[str]) -> None:
    """Call TOOL_NAME with DATA (a JSON object), --fields, or JSON piped on stdin."""
    tool = tool_name or tool_option
    if not tool:
        click.secho("Error: Tool name required. Use --tool <name> or provide it as an argument.", fg="red", err=True)
        ctx.exit(EXIT_FAILURE)

    if fields:
        try:
            params = parse_fields(fields)
        except ValueError as e:
            click.secho(f"Error: {e}", fg="red", err=True)
            ctx.exit(EXIT_CODES[ErrorKind.INVALID_PARAMS])
    elif data:
        params = parse_json_arguments(ctx, data, "data")
    else:
        stdin_data = read_stdin()
        params = parse_json_arguments(ctx, stdin_data, "from stdin") if stdin_data else {}

    invoker = build_invoker(ctx)
    try:
        result = asyncio.run(invoker.call_tool(tool, params))
    except ApplicationError as e:
        fail(ctx, e)

    if ctx.obj["json"]:
        click.echo(json.dumps({"success": True, "tool": tool, "result": result}, indent=2))
    else:
        output = format_output(result, quiet=ctx.obj["quiet"])
        if output:
            click.echo(output)


@cli.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    click.echo(f"MCP Probe v{__version__}")


def main() -> None:
    cli(prog_name="mcp-probe")


if __name__ == "__main__":
    main()
