"""Helpers that write JSON bodies and error responses."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

_CONTENT_TYPE = "application/json; charset=utf-8"

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@dataclass
class Response:
    """A minimal response writer: status, headers and body."""

    status: int | None = None
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def write_header(self, status: int) -> None:
        """Set the status; later calls are ignored."""
        if self.status is None:
            self.status = int(status)

    def write(self, data: bytes | str) -> int:
        """Append to the body, sending 200 first if no status was set."""
        if self.status is None:
            self.status = int(HTTPStatus.OK)
        chunk = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        self.body += chunk
        return len(chunk)


def _encode_json(value: Any) -> str:
    text = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text + "\n"


def json_response(response: Response, value: Any, status: int) -> None:
    """Write value as a JSON body with the given status."""
    response.headers["Content-Type"] = _CONTENT_TYPE
    response.write_header(status)
    response.write(_encode_json(value))


def ok(response: Response, value: Any) -> None:
    """Write value as a JSON body with status 200."""
    json_response(response, value, HTTPStatus.OK)


def error(response: Response, message: str, status: int) -> None:
    """Write an error body ``{"error_msg": message}``."""
    json_response(response, {"error_msg": message}, status)


def client_error(
    response: Response, message: str, status: int, logger: logging.Logger | None
) -> None:
    """Write a client error; an empty message sends only the status."""
    if not message:
        response.write_header(status)
        return
    if logger is not None:
        logger.debug("%s", message)
    error(response, message, status)


def bad_request(response: Response, message: str, logger: logging.Logger | None) -> None:
    """Write a 400 response."""
    client_error(response, message, HTTPStatus.BAD_REQUEST, logger)


def not_found(response: Response, message: str, logger: logging.Logger | None) -> None:
    """Write a 404 response."""
    client_error(response, message, HTTPStatus.NOT_FOUND, logger)


def internal_error(
    response: Response,
    message: str,
    err: BaseException | None,
    logger: logging.Logger | None,
) -> None:
    """Write a 500 response built from a message and an optional error."""
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    if err is None:
        if not message:
            response.write_header(status)
            return
        if logger is not None:
            logger.error("%s", message)
        error(response, message, status)
        return

    if not message:
        if logger is not None:
            logger.error("%s", err)
        error(response, str(err), status)
    else:
        if logger is not None:
            logger.error("%s: %s", message, err)
        error(response, f"{message}: {err}", status)