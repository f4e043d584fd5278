"""Terminal output: control sequences, size detection and interrupt handling."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from typing import Callable, TextIO

from brailleview.render.base import OutputError, write_text

logger = logging.getLogger(__name__)

HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?12l\x1b[?25h"
RESET_STYLE = "\x1b[0m"

DEFAULT_COLUMNS = 80
DEFAULT_ROWS = 25


def default_reset(rows: int) -> str:
    """Move to column 0, then up ``rows`` lines."""
    return f"\x1b[999D\x1b[{rows}A"


def terminal_size(stream: TextIO | None = None) -> tuple[int, int]:
    """Columns and usable rows of the terminal behind ``stream``.

    One row is left free for the shell prompt. Falls back to 80x25 when the
    stream is not a terminal.
    """
    stream = stream if stream is not None else sys.stdout
    try:
        if stream.isatty():
            size = os.get_terminal_size(stream.fileno())
            cols, rows = size.columns, size.lines - 1
            if cols > 0 and rows > 0:
                return cols, rows
    except (AttributeError, OSError, ValueError):
        logger.debug("Could not query terminal size, using defaults")
    return DEFAULT_COLUMNS, DEFAULT_ROWS


class Terminal:
    """A text sink plus the few escape sequences playback needs.

    Args:
        sink: Where glyph text is written, usually ``sys.stdout``.
        reset: Builds the sequence that moves the cursor back to the top of a
            block of ``rows`` lines. Defaults to ``ESC[999D ESC[<rows>A``.
    """

    def __init__(self, sink: TextIO, reset: Callable[[int], str] | None = None) -> None:
        self._sink = sink
        self._reset = reset or default_reset

    def write(self, text: str) -> None:
        write_text(self._sink, text)

    def flush(self) -> None:
        try:
            self._sink.flush()
        except (OSError, ValueError) as e:
            raise OutputError(f"Failed to flush output: {e}") from e

    def reposition(self, rows: int) -> None:
        """Move the cursor back over the last ``rows`` lines drawn."""
        if rows > 0:
            self.write(self._reset(rows))

    def hide_cursor(self) -> None:
        self.write(HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(SHOW_CURSOR)

    def reset_style(self) -> None:
        self.write(RESET_STYLE)

    def restore(self) -> None:
        """Make the cursor visible and clear text attributes."""
        self.show_cursor()
        self.reset_style()
        self.flush()

    def size(self) -> tuple[int, int]:
        return terminal_size(self._sink)


class InterruptGuard:
    """Turns SIGINT / SIGTERM into a cancellation request for one playback.

    On the first signal the cleanup callback runs (typically restoring the
    cursor) and ``cancel`` is set. The process is not terminated here; the
    caller decides how to exit once playback has unwound.

    Example usage::

        cancel = asyncio.Event()
        with InterruptGuard(cancel, cleanup=terminal.restore):
            await player.play(source, cancel)
    """

    def __init__(
        self,
        cancel: asyncio.Event,
        cleanup: Callable[[], None] | None = None,
        signals: tuple[int, ...] = (signal.SIGINT, signal.SIGTERM),
    ) -> None:
        self._cancel = cancel
        self._cleanup = cleanup
        self._signals = signals
        self._installed: list[int] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self.received: int | None = None

    @property
    def triggered(self) -> bool:
        return self.received is not None

    def __enter__(self) -> InterruptGuard:
        self._loop = asyncio.get_running_loop()
        for sig in self._signals:
            try:
                self._loop.add_signal_handler(sig, self._handle, sig)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.debug("Signal handlers are not supported here, skipping %s", sig)
                continue
            self._installed.append(sig)
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        for sig in self._installed:
            self._loop.remove_signal_handler(sig)
        self._installed.clear()

    def _handle(self, sig: int) -> None:
        if self.received is not None:
            return
        self.received = sig
        logger.info("Received signal %s, stopping playback", signal.Signals(sig).name)
        if self._cleanup is not None:
            try:
                self._cleanup()
            except OutputError as e:
                logger.warning("Terminal cleanup failed: %s", e)
        self._cancel.set()
