"""Single-object formatter for the json output format."""

from __future__ import annotations

import json
from typing import Any

from headless.observability.logging import strip_ansi_codes
from headless.output.stream_json import to_jsonable


def format_json(response: str | None = None, stats: Any = None) -> str:
    """Render ``{"response": ..., "stats": ...}`` once, at the end of the run."""
    output: dict[str, Any] = {}
    if response is not None:
        output["response"] = strip_ansi_codes(response)
    if stats is not None:
        output["stats"] = to_jsonable(stats)
    return json.dumps(output, indent=2, ensure_ascii=False, default=str)

