"""Output rendering for text, json and stream-json formats."""

from headless.output.json_formatter import format_json
from headless.output.renderers import (
    JsonRenderer,
    OutputRenderer,
    StreamJsonRenderer,
    TextRenderer,
    create_renderer,
)
from headless.output.sink import OutputSink
from headless.output.stream_json import (
    format_content_block,
    format_error,
    format_final_block,
    format_telemetry_block,
)

__all__ = [
    "OutputSink",
    "OutputRenderer",
    "TextRenderer",
    "JsonRenderer",
    "StreamJsonRenderer",
    "create_renderer",
    "format_json",
    "format_content_block",
    "format_error",
    "format_final_block",
    "format_telemetry_block",
]
