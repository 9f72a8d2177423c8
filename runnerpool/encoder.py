"""Encode loosely typed configuration values as strings."""

from __future__ import annotations

import base64
import dataclasses
import json
import math
from decimal import Decimal
from typing import Any

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _format_float(value: float) -> str:
    """Shortest representation, exponent form for exp < -4 or exp >= 21... per %g rules."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    sign = "-" if value < 0 else ""
    parts = Decimal(repr(abs(value))).as_tuple()
    raw_digits = "".join(str(d) for d in parts.digits)
    point = len(raw_digits) + int(parts.exponent)
    digits = raw_digits.rstrip("0") or "0"
    exp = point - 1

    if exp < -4 or exp >= 6:
        mantissa = digits[0]
        if len(digits) > 1:
            mantissa += "." + digits[1:]
        exp_sign = "+" if exp >= 0 else "-"
        return f"{sign}{mantissa}e{exp_sign}{abs(exp):02d}"

    if point <= 0:
        text = "0." + "0" * (-point) + digits
    elif point >= len(digits):
        text = digits + "0" * (point - len(digits))
    else:
        text = digits[:point] + "." + digits[point:]
    return sign + text


def _scalar_text(value: Any) -> str | None:
    """Text of a scalar as a YAML round trip to a string would give, else None."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return ".nan"
        if math.isinf(value):
            return ".inf" if value > 0 else "-.inf"
        return _format_float(value)
    if isinstance(value, str):
        return value
    return None


def _jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {_key_text(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return value


def _key_text(key: Any) -> str:
    text = _scalar_text(key)
    return text if text is not None else str(key)


def _to_json(value: Any) -> str:
    text = json.dumps(
        _jsonable(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text


def _encode_sequence(values: list | tuple) -> str:
    texts = [_scalar_text(v) for v in values]
    if all(t is not None for t in texts):
        return ",".join(texts)  # type: ignore[arg-type]
    return _to_json(values)


def encode(value: Any) -> str:
    """Encode a value as a string.

    Strings pass through, booleans and numbers are formatted, bytes are
    base64 encoded, sequences of scalars are comma joined and anything else
    is rendered as compact JSON.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (list, tuple)):
        return _encode_sequence(value)
    return _to_json(value)