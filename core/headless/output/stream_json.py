"""Block formatting for the stream-json output format.

Every function returns exactly one compact JSON object as a string with no
embedded newline. The caller terminates each block with ``\\n`` so the
stream can be parsed line by line:

    {"type": "telemetry", "event": {...}}
    {"type": "content", "content": "..."}
    {"type": "final", "response": "...", "stats": {...}}

These functions hold no state and touch nothing outside their arguments.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from headless.observability.logging import strip_ansi_codes


def to_jsonable(value: Any) -> Any:
    """Convert telemetry events, pydantic models and mappings to plain JSON data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, Mapping):
        return dict(value)
    return value


def _dumps(block: dict[str, Any]) -> str:
    return json.dumps(block, ensure_ascii=False, default=str)


def format_telemetry_block(event: Any) -> str:
    return _dumps({"type": "telemetry", "event": to_jsonable(event)})


def format_content_block(content: str) -> str:
    return _dumps({"type": "content", "content": strip_ansi_codes(content)})


def format_final_block(
    response: str | None = None,
    stats: Any = None,
    error: Mapping[str, Any] | None = None,
) -> str:
    """Build the terminating ``final`` block.

    Only supplied fields are present; absent ones are omitted rather than
    written as null.
    """
    block: dict[str, Any] = {"type": "final"}
    if response is not None:
        block["response"] = strip_ansi_codes(response)
    if stats is not None:
        block["stats"] = to_jsonable(stats)
    if error is not None:
        block["error"] = dict(error)
    return _dumps(block)


def error_payload(error: BaseException, code: str | int | None = None) -> dict[str, Any]:
    """The ``{type, message, code?}`` shape shared by json and stream-json errors."""
    payload: dict[str, Any] = {
        "type": error.__class__.__name__,
        "message": strip_ansi_codes(str(error)),
    }
    if code:
        payload["code"] = code
    return payload


def format_error(error: BaseException, code: str | int | None = None) -> str:
    return format_final_block(error=error_payload(error, code))
