"""Output renderers: one per output format, same hooks for all.

The turn loop calls the same hooks whatever the format, so control flow
never branches on it:

- ``on_content``   every content fragment, in backend order
- ``on_telemetry`` every telemetry event delivered by the broadcast channel
- ``complete``     once, after natural completion
- ``fail``         once, from the top-level error handler
- ``report_tool_error`` per failed tool call (non-fatal)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from headless.config import OutputFormat
from headless.errors import describe_error
from headless.output.json_formatter import format_json
from headless.output.sink import OutputSink
from headless.output.stream_json import (
    format_content_block,
    format_error,
    format_final_block,
    format_telemetry_block,
)


class OutputRenderer(ABC):
    """Base renderer bound to an OutputSink."""

    output_format: OutputFormat
    # stream-json wants telemetry blocks on stdout; the others do not
    streams_telemetry: bool = False

    def __init__(self, sink: OutputSink) -> None:
        self.sink = sink

    @abstractmethod
    def on_content(self, text: str) -> None: ...

    def on_telemetry(self, event: Any) -> None:
        """Telemetry is not rendered by default."""

    @abstractmethod
    def complete(self, response: str, stats: Any) -> None: ...

    def fail(self, error: BaseException, code: int | str | None = None) -> None:
        self.sink.write_error(describe_error(error))

    def report_tool_error(self, tool_name: str, detail: str) -> None:
        self.sink.write_error(f"Error executing tool {tool_name}: {detail}")


class TextRenderer(OutputRenderer):
    """Raw fragments as they arrive; a trailing newline on success only."""

    output_format = OutputFormat.TEXT

    def on_content(self, text: str) -> None:
        self.sink.write(text)

    def complete(self, response: str, stats: Any) -> None:
        self.sink.write("\n")


class JsonRenderer(OutputRenderer):
    """Buffers nothing itself: the loop hands over the full text at the end."""

    output_format = OutputFormat.JSON

    def on_content(self, text: str) -> None:
        pass

    def complete(self, response: str, stats: Any) -> None:
        self.sink.write(format_json(response, stats))


class StreamJsonRenderer(OutputRenderer):
    """Newline-delimited JSON blocks, terminated by exactly one ``final`` block."""

    output_format = OutputFormat.STREAM_JSON
    streams_telemetry = True

    def __init__(self, sink: OutputSink) -> None:
        super().__init__(sink)
        self._finalized = False

    def on_content(self, text: str) -> None:
        self.sink.write_line(format_content_block(text))

    def on_telemetry(self, event: Any) -> None:
        if not self._finalized:
            self.sink.write_line(format_telemetry_block(event))

    def complete(self, response: str, stats: Any) -> None:
        self._write_final(format_final_block(response, stats))

    def fail(self, error: BaseException, code: int | str | None = None) -> None:
        self._write_final(format_error(error, code))

    def report_tool_error(self, tool_name: str, detail: str) -> None:
        """stdout is reserved for blocks; tool errors are only logged."""

    def _write_final(self, block: str) -> None:
        if self._finalized:
            return
        self._finalized = True
        self.sink.write_line(block)


_RENDERERS: dict[OutputFormat, type[OutputRenderer]] = {
    OutputFormat.TEXT: TextRenderer,
    OutputFormat.JSON: JsonRenderer,
    OutputFormat.STREAM_JSON: StreamJsonRenderer,
}


def create_renderer(output_format: OutputFormat | str, sink: OutputSink) -> OutputRenderer:
    return _RENDERERS[OutputFormat(output_format)](sink)
