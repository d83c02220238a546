"""
Helpers for the command-line surface: argument parsing and output formatting.
"""
from .fields import parse_fields
from .output import exit_code_for, format_inspect_output, format_output

__all__ = ["exit_code_for", "format_inspect_output", "format_output", "parse_fields"]
