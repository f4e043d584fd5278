"""Tests for the Terminal collaborator and InterruptGuard."""

from __future__ import annotations

import asyncio
import io
import os
import signal
from unittest.mock import MagicMock

import pytest

from brailleview.animation.terminal import (
    HIDE_CURSOR,
    RESET_STYLE,
    SHOW_CURSOR,
    InterruptGuard,
    Terminal,
    default_reset,
    terminal_size,
)
from brailleview.render.base import OutputError


class TestTerminal:
    """Test escape sequences and error mapping."""

    def test_default_reset_sequence(self) -> None:
        assert default_reset(3) == "\x1b[999D\x1b[3A"

    def test_reposition_writes_reset(self, terminal: Terminal, output: io.StringIO) -> None:
        terminal.reposition(2)
        assert output.getvalue() == "\x1b[999D\x1b[2A"

    def test_reposition_zero_rows_is_noop(self, terminal: Terminal, output: io.StringIO) -> None:
        terminal.reposition(0)
        assert output.getvalue() == ""

    def test_custom_reset(self, output: io.StringIO) -> None:
        terminal = Terminal(output, reset=lambda rows: f"<up {rows}>")
        terminal.reposition(4)
        assert output.getvalue() == "<up 4>"

    def test_cursor_sequences(self, terminal: Terminal, output: io.StringIO) -> None:
        terminal.hide_cursor()
        terminal.restore()
        assert output.getvalue() == HIDE_CURSOR + SHOW_CURSOR + RESET_STYLE
        assert SHOW_CURSOR == "\x1b[?12l\x1b[?25h"

    def test_write_to_closed_sink_raises(self) -> None:
        sink = io.StringIO()
        sink.close()
        with pytest.raises(OutputError):
            Terminal(sink).write("x")

    def test_flush_failure_raises(self) -> None:
        sink = MagicMock()
        sink.flush.side_effect = OSError("broken pipe")
        with pytest.raises(OutputError):
            Terminal(sink).flush()

    def test_size_defaults_when_not_a_tty(self, output: io.StringIO) -> None:
        assert terminal_size(output) == (80, 25)
        assert Terminal(output).size() == (80, 25)


class TestInterruptGuard:
    """Test signal-to-cancellation bridging."""

    @pytest.mark.asyncio
    async def test_handler_runs_cleanup_and_sets_cancel(self) -> None:
        cancel = asyncio.Event()
        cleanup = MagicMock()
        with InterruptGuard(cancel, cleanup=cleanup) as guard:
            guard._handle(signal.SIGINT)
            guard._handle(signal.SIGINT)

        assert cancel.is_set()
        assert guard.triggered
        assert guard.received == signal.SIGINT
        cleanup.assert_called_once()

    @pytest.mark.asyncio
    async def test_real_signal_sets_cancel(self) -> None:
        cancel = asyncio.Event()
        with InterruptGuard(cancel, signals=(signal.SIGUSR1,)):
            os.kill(os.getpid(), signal.SIGUSR1)
            await asyncio.wait_for(cancel.wait(), timeout=1.0)
        assert cancel.is_set()

    @pytest.mark.asyncio
    async def test_cleanup_failure_still_cancels(self) -> None:
        cancel = asyncio.Event()
        cleanup = MagicMock(side_effect=OutputError("closed"))
        with InterruptGuard(cancel, cleanup=cleanup) as guard:
            guard._handle(signal.SIGTERM)
        assert cancel.is_set()

    @pytest.mark.asyncio
    async def test_handlers_removed_on_exit(self) -> None:
        loop = asyncio.get_running_loop()
        with InterruptGuard(asyncio.Event(), signals=(signal.SIGUSR2,)):
            pass
        assert loop.remove_signal_handler(signal.SIGUSR2) is False
