"""
query_params.py — share-link codec for ProjectionInput.

A share link carries every input field as a query parameter keyed by its
camelCase alias:
    ?ctc=3000000&stdDeduction=75000&engineCC=%22below%22&loanRate=0.08...

Numbers are written as plain strings; anything else is JSON-encoded.

Decoding (whitelist + fallback):
  - keys that are not ProjectionInput fields are ignored
  - each value is tried as JSON first, then as a leading float ("12abc" → 12)
  - a value that fails both, parses to 0, or has the wrong type for its field
    keeps the default
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping
from urllib.parse import urlencode

from pydantic import TypeAdapter, ValidationError

from leasewise.calculator.schemas import ProjectionInput

logger = logging.getLogger(__name__)

_LEADING_FLOAT = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

# alias → attribute name; attribute names are accepted as keys too
_WHITELIST: dict[str, str] = {}
for _name, _info in ProjectionInput.model_fields.items():
    _WHITELIST[_info.alias or _name] = _name
    _WHITELIST[_name] = _name

_ADAPTERS: dict[str, TypeAdapter] = {
    name: TypeAdapter(info.annotation) for name, info in ProjectionInput.model_fields.items()
}


def _leading_float(raw: str) -> float | None:
    match = _LEADING_FLOAT.match(raw)
    if match is None:
        return None
    return float(match.group(0))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite constant {name}")


def _decode_value(raw: str) -> Any:
    """JSON first, then a leading float. None means 'keep the default'."""
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except ValueError:
        number = _leading_float(raw)
        # a non-JSON value reading as 0 keeps the default
        return number or None


def parse_query_params(params: Mapping[str, str]) -> ProjectionInput:
    """
    Build a ProjectionInput from share-link query parameters.
    Never raises for bad values — each bad value falls back to its default.
    """
    values: dict[str, Any] = {}
    for key, raw in params.items():
        name = _WHITELIST.get(key)
        if name is None:
            continue
        decoded = _decode_value(raw)
        if decoded is None:
            logger.debug("Query param %s=%r unparseable, keeping default", key, raw)
            continue
        try:
            values[name] = _ADAPTERS[name].validate_python(decoded)
        except ValidationError:
            logger.debug("Query param %s=%r has wrong type, keeping default", key, raw)
    return ProjectionInput(**values)


def _encode_value(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_share_query(inputs: ProjectionInput) -> str:
    """Encode every field of `inputs` as a share-link query string (no leading '?')."""
    dumped = inputs.model_dump(by_alias=True, mode="json")
    return urlencode([(key, _encode_value(value)) for key, value in dumped.items()])
