"""JSON encoding and HTTP response helpers."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import fields, is_dataclass
from datetime import datetime, timezone
from typing import Any

from werkzeug.wrappers import Response

logger = logging.getLogger(__name__)

_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


class ApiError(Exception):
    """An error to be answered with an HTTP status and a JSON message."""

    def __init__(self, status, message):
        super().__init__(message)
        self.status = status
        self.message = message


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    return text + "Z"


def _default(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {field.name: getattr(value, field.name) for field in fields(value)}
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return _format_time(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(value) -> bytes:
    """Encode a value as compact JSON, with HTML-sensitive characters escaped."""
    text = json.dumps(value, default=_default, separators=(",", ":"), ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES:
        text = text.replace(char, escaped)
    return text.encode("utf-8")


def json_response(status, payload) -> Response:
    """Build a JSON response; an unencodable payload gives an empty 500."""
    try:
        body = to_json(payload)
    except (TypeError, ValueError) as exc:
        logger.error("Error marshalling JSON: %s", exc)
        response = Response(b"", status=500)
    else:
        response = Response(body, status=status)
    response.headers["Content-Type"] = "application/json"
    return response


def error_response(status, message) -> Response:
    """Build a JSON error response of the form {"error": message}."""
    if status > 499:
        logger.error("Responding with 5XX error: %s", message)
    return json_response(status, {"error": message})