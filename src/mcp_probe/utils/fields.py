"""
Parsing of the ``--fields "key=value,key2=value2"`` parameter syntax.
"""
import re
from typing import Any

_INT_RE = re.compile(r"^\d+$")
_FLOAT_RE = re.compile(r"^\d+\.\d+$")
_LITERALS = {"true": True, "false": False, "null": None}


def _convert(value: str) -> Any:
    if value in _LITERALS:
        return _LITERALS[value]
    if _INT_RE.match(value):
        return int(value)
    if _FLOAT_RE.match(value):
        return float(value)
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value

def parse_fields(fields: str) -> dict[str, Any]:
    """
    Parses comma-separated ``key=value`` pairs into tool arguments.

    ``true``/``false``/``null`` and unsigned integers or decimals are
    converted; surrounding quotes are stripped. Values cannot contain commas.

    Raises:
        ValueError: a pair has no ``=`` or an empty key.
    """
    params: dict[str, Any] = {}
    if not fields.strip():
        return params

    for pair in (p.strip() for p in fields.split(",")):
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f'Invalid field format: "{pair}". Expected "key=value".')
        key = key.strip()
        if not key:
            raise ValueError(f'Empty key in field: "{pair}"')
        params[key] = _convert(value.strip())
    return params
