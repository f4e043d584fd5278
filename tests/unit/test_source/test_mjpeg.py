"""Tests for the MJPEGSource stream adapter."""

from __future__ import annotations

import asyncio
import io
import os
import threading
import time
from unittest.mock import MagicMock

import pytest

from brailleview.animation.engine import AnimationPlayer, PlaybackCancelled
from brailleview.animation.terminal import Terminal
from brailleview.domain.models import Bounds
from brailleview.source.base import DecodeError, SourceError
from brailleview.source.mjpeg import MJPEGSource

RESET = "\x1b[999D"


class TestMJPEGSource:
    """Test frame splitting, pacing and failure handling."""

    def test_init_defaults(self) -> None:
        source = MJPEGSource(io.BytesIO())
        assert source.fps == -1
        assert source.canvas is None
        assert source.loop_count == 1
        assert source.frame_count is None

    def test_read_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            MJPEGSource(io.BytesIO(), read_size=0)

    @pytest.mark.asyncio
    async def test_splits_concatenated_frames(self, jpeg_frames: list[bytes]) -> None:
        # a small read size splits the end marker across reads
        stream = io.BytesIO(b"".join(jpeg_frames))
        async with MJPEGSource(stream, read_size=7) as source:
            frames = [f async for f in source.frames()]

        assert [f.index for f in frames] == [0, 1, 2]
        for frame in frames:
            assert frame.raster.bounds == Bounds.from_size(8, 8)
            assert frame.delay_cs == 0
        assert frames[0].raster.sample_at(4, 4)[0] < 30
        assert frames[1].raster.sample_at(4, 4)[0] > 225

    @pytest.mark.asyncio
    async def test_skips_data_between_frames(self, jpeg_frames: list[bytes]) -> None:
        boundary = b"\r\n--frame\r\nContent-Type: image/jpeg\r\n\r\n"
        stream = io.BytesIO(boundary + jpeg_frames[0] + boundary + jpeg_frames[1] + b"\r\n--frame--\r\n")
        async with MJPEGSource(stream) as source:
            frames = [f async for f in source.frames()]
        assert len(frames) == 2

    @pytest.mark.asyncio
    async def test_truncated_frame_raises_decode_error(self, jpeg_frames: list[bytes]) -> None:
        partial = jpeg_frames[1][: len(jpeg_frames[1]) // 2]
        stream = io.BytesIO(jpeg_frames[0] + partial)
        received = []

        async with MJPEGSource(stream) as source:
            with pytest.raises(DecodeError):
                async for frame in source.frames():
                    received.append(frame)
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_read_error_raises_source_error(self) -> None:
        reader = MagicMock()
        reader.read.side_effect = OSError("device unplugged")
        async with MJPEGSource(reader) as source:
            with pytest.raises(SourceError, match="device unplugged"):
                async for _ in source.frames():
                    pass

    @pytest.mark.asyncio
    async def test_empty_stream_ends_cleanly(self) -> None:
        async with MJPEGSource(io.BytesIO(b"")) as source:
            frames = [f async for f in source.frames()]
        assert frames == []

    @pytest.mark.asyncio
    async def test_fps_limits_emission_rate(self, jpeg_frames: list[bytes]) -> None:
        loop = asyncio.get_running_loop()
        async with MJPEGSource(io.BytesIO(b"".join(jpeg_frames)), fps=10) as source:
            started = loop.time()
            frames = [f async for f in source.frames()]
            elapsed = loop.time() - started
        assert len(frames) == 3
        assert elapsed >= 0.18

    @pytest.mark.asyncio
    async def test_stream_cannot_be_replayed(self, jpeg_frames: list[bytes]) -> None:
        async with MJPEGSource(io.BytesIO(jpeg_frames[0])) as source:
            [f async for f in source.frames()]
            with pytest.raises(SourceError):
                async for _ in source.frames():
                    pass

    @pytest.mark.asyncio
    async def test_plays_through_the_engine(self, jpeg_frames, terminal, output) -> None:
        result = await AnimationPlayer(terminal).play(MJPEGSource(io.BytesIO(b"".join(jpeg_frames))))

        assert result.frames_flushed == 3
        assert output.getvalue().count(RESET) == 2
        assert output.getvalue().endswith("⣿⣿⣿⣿\n⣿⣿⣿⣿\n")


class TestMJPEGCancellation:
    """Test that a stalled stream does not hold up an interrupted session."""

    def test_cancel_on_idle_pipe_returns_promptly(self) -> None:
        read_fd, write_fd = os.pipe()
        reader = os.fdopen(read_fd, "rb", buffering=0)

        async def play_until_cancelled() -> None:
            cancel = asyncio.Event()
            asyncio.get_running_loop().call_later(0.2, cancel.set)
            player = AnimationPlayer(Terminal(io.StringIO()))
            with pytest.raises(PlaybackCancelled):
                await player.play(MJPEGSource(reader, name="idle-pipe"), cancel)

        started = time.monotonic()
        try:
            asyncio.run(play_until_cancelled())
            elapsed = time.monotonic() - started
            assert elapsed < 1.0
        finally:
            # Unblock the abandoned read so the thread exits
            os.close(write_fd)
            for thread in threading.enumerate():
                if thread.name == "mjpeg-reader idle-pipe":
                    thread.join(timeout=2.0)
            reader.close()
