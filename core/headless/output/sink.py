"""Output sink: the only writer of stdout/stderr during a run."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

logger = logging.getLogger(__name__)


class OutputSink:
    """Writes run output to stdout and user-facing errors to stderr.

    When the reader of stdout goes away (``head``, a closed pipe) the process
    ends with a success status instead of surfacing an error.
    """

    def __init__(self, stdout: TextIO | None = None, stderr: TextIO | None = None) -> None:
        self._stdout = stdout if stdout is not None else sys.stdout
        self._stderr = stderr if stderr is not None else sys.stderr

    def write(self, text: str) -> None:
        try:
            self._stdout.write(text)
            self._stdout.flush()
        except BrokenPipeError:
            self._exit_on_closed_reader()

    def write_line(self, text: str) -> None:
        self.write(text + "\n")

    def write_error(self, message: str) -> None:
        try:
            self._stderr.write(message + "\n")
            self._stderr.flush()
        except BrokenPipeError:
            self._exit_on_closed_reader()

    def _exit_on_closed_reader(self) -> None:
        logger.debug("Output reader closed; exiting")
        # Point stdout at devnull so interpreter shutdown does not flush
        # into the closed pipe again.
        try:
            devnull = os.open(os.devnull, os.O_WRONLY)
            os.dup2(devnull, self._stdout.fileno())
        except (OSError, ValueError, AttributeError):
            pass
        raise SystemExit(0)
