"""
Tests for the error translator.
"""
import pytest
from mcp import types
from mcp.shared.exceptions import McpError

from mcp_probe.mcp_client.exceptions import ApplicationError, MCPConnectionError, MCPProtocolError
from mcp_probe.mcp_client.translator import (
    configuration_error,
    connection_failed,
    not_connected,
    tool_error_result,
    translate_error,
)
from mcp_probe.models.common import ErrorKind


def mcp_error(code: int, message: str) -> McpError:
    return McpError(types.ErrorData(code=code, message=message))


def test_method_not_found_code_maps_to_tool_not_found():
    error = translate_error(mcp_error(types.METHOD_NOT_FOUND, "Method not found"), tool_name="x")
    assert error.kind is ErrorKind.TOOL_NOT_FOUND
    assert error.message == "Tool 'x' not found"
    assert error.tool_name == "x"

def test_invalid_params_code_maps_to_invalid_params():
    error = translate_error(mcp_error(types.INVALID_PARAMS, "b is required"), tool_name="add")
    assert error.kind is ErrorKind.INVALID_PARAMS
    assert error.message == "Invalid parameters for tool 'add': b is required"

def test_code_takes_precedence_over_text():
    # The text says "not found" but the structured code says invalid params.
    error = translate_error(mcp_error(types.INVALID_PARAMS, "argument not found"), tool_name="add")
    assert error.kind is ErrorKind.INVALID_PARAMS

@pytest.mark.parametrize(
    "message, expected_kind",
    [
        ("Tool x not found", ErrorKind.TOOL_NOT_FOUND),
        ("Resource NOT FOUND", ErrorKind.TOOL_NOT_FOUND),
        ("Invalid parameters: missing b", ErrorKind.INVALID_PARAMS),
        ("invalid parameters were given", ErrorKind.INVALID_PARAMS),
        ("Invalid parameters: field not found", ErrorKind.TOOL_NOT_FOUND),
        ("Disk full", ErrorKind.SERVER_ERROR),
    ],
)
def test_text_rules(message, expected_kind):
    error = translate_error(Exception(message), tool_name="x")
    assert error.kind is expected_kind

def test_not_found_text_keeps_message_naming_the_tool():
    error = translate_error(Exception("Tool x not found"), tool_name="x")
    assert error.message == "Tool x not found"

def test_not_found_text_adds_missing_tool_name():
    error = translate_error(Exception("Resource not found"), tool_name="lookup")
    assert "lookup" in error.message
    assert "Resource not found" in error.message

def test_server_error_keeps_message():
    error = translate_error(MCPConnectionError("Connection reset by peer"), tool_name="x")
    assert error.kind is ErrorKind.SERVER_ERROR
    assert error.message == "Connection reset by peer"

def test_server_error_without_message_uses_default():
    error = translate_error(Exception(), tool_name="x")
    assert error.kind is ErrorKind.SERVER_ERROR
    assert error.message == "Server error"

def test_protocol_error_code_is_used():
    error = translate_error(MCPProtocolError("bad call", error_code=types.METHOD_NOT_FOUND), tool_name="x")
    assert error.kind is ErrorKind.TOOL_NOT_FOUND

@pytest.mark.parametrize(
    "exc",
    [
        mcp_error(types.METHOD_NOT_FOUND, "Method not found"),
        mcp_error(types.INVALID_PARAMS, "Invalid parameters"),
        Exception("Tool not found"),
    ],
)
def test_without_tool_name_everything_is_server_error(exc):
    error = translate_error(exc)
    assert error.kind is ErrorKind.SERVER_ERROR
    assert error.tool_name is None

def test_application_error_passes_through_unchanged():
    original = ApplicationError(ErrorKind.NOT_CONNECTED, "Not connected to server")
    assert translate_error(original, tool_name="x") is original

def test_single_member_exception_group_is_unwrapped():
    group = ExceptionGroup("task group", [mcp_error(types.METHOD_NOT_FOUND, "nope")])
    assert translate_error(group, tool_name="x").kind is ErrorKind.TOOL_NOT_FOUND

def test_tool_error_result_only_applies_not_found_rule():
    assert tool_error_result("error", "Something broke").kind is ErrorKind.SERVER_ERROR
    assert tool_error_result("error", "Something broke").message == "Something broke"
    assert tool_error_result("error", None).message == "Server error"

    not_found = tool_error_result("lookup", "Record not found")
    assert not_found.kind is ErrorKind.TOOL_NOT_FOUND
    assert "lookup" in not_found.message

def test_tool_error_result_keeps_invalid_parameters_text_verbatim():
    error = tool_error_result("error", "Invalid parameters supplied by upstream API")
    assert error.kind is ErrorKind.SERVER_ERROR
    assert error.message == "Invalid parameters supplied by upstream API"
    assert error.tool_name == "error"

def test_helper_constructors():
    assert configuration_error("Invalid transport type: ftp").kind is ErrorKind.CONFIGURATION_ERROR
    assert not_connected().message == "Not connected to server"

    failed = connection_failed(ExceptionGroup("tg", [FileNotFoundError("No such file: 'nope'")]))
    assert failed.kind is ErrorKind.CONNECTION_FAILED
    assert failed.message == "Failed to connect: No such file: 'nope'"

def test_application_error_to_dict():
    error = ApplicationError(ErrorKind.TOOL_NOT_FOUND, "Tool 'x' not found", "x")
    assert error.to_dict() == {"success": False, "error": "Tool 'x' not found", "code": "TOOL_NOT_FOUND"}
    assert str(error) == "Tool 'x' not found"
    assert "TOOL_NOT_FOUND" in repr(error)
