"""The animation engine that plays frame sources in place.

Ties together a frame source, the single-frame pipeline and the terminal:
reduce -> composite onto the screen -> flush -> wait -> dispose -> repeat.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterator

from brailleview.animation.terminal import Terminal
from brailleview.config.settings import RenderConfig
from brailleview.domain.models import (
    AnimationFrame,
    Disposal,
    PlaybackResult,
    PlaybackState,
    Raster,
)
from brailleview.render.base import ImageFilter, NoopFilter, Reducer
from brailleview.render.buffer import MonochromeBuffer
from brailleview.render.dither import get_reducer
from brailleview.render.glyph import BrailleEncoder
from brailleview.render.pipeline import redraw
from brailleview.source.base import FrameSource

logger = logging.getLogger(__name__)


class PlaybackCancelled(Exception):
    """Raised when playback stops because cancellation was requested.

    Attributes:
        result: What had been played before the cancellation was seen.
    """

    def __init__(self, result: PlaybackResult) -> None:
        super().__init__(f"Playback cancelled after {result.frames_flushed} frames")
        self.result = result


class AnimationPlayer:
    """Plays a FrameSource to a terminal, honouring delays and disposal.

    The player keeps a screen buffer for the whole session. Each frame is
    reduced, drawn over the screen, and the screen is flushed. Before every
    flush except the first, the cursor is moved back to the top of the
    previous block so frames overwrite each other and the cursor ends up
    below the last frame.

    Sources with a canvas start every pass from the background. Sources
    without one (streams) replace the screen with each frame.

    Example usage::

        player = AnimationPlayer(Terminal(sys.stdout))
        result = await player.play(GIFSource(data))
    """

    def __init__(
        self,
        terminal: Terminal,
        config: RenderConfig | None = None,
        image_filter: ImageFilter | None = None,
        reducer: Reducer | None = None,
    ) -> None:
        self._terminal = terminal
        self._config = config or RenderConfig()
        self._filter = image_filter or NoopFilter()
        self._reducer = reducer or get_reducer(self._config.dither)
        self._encoder = BrailleEncoder(self._config)
        self._state = PlaybackState.IDLE
        self._cancel: asyncio.Event | None = None
        self._last_rows: int | None = None

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state != PlaybackState.IDLE

    def stop(self) -> None:
        """Request cancellation of the running playback."""
        if self._cancel is not None:
            self._cancel.set()
            logger.info("Playback stop requested")

    async def play(self, source: FrameSource, cancel: asyncio.Event | None = None) -> PlaybackResult:
        """Play ``source`` to completion.

        The source is opened and closed by the player.

        Args:
            source: Frames to play.
            cancel: Set it to stop playback. ``stop()`` sets the same event.

        Returns:
            Counts of frames flushed and loop passes completed.

        Raises:
            PlaybackCancelled: If cancellation was requested. Carries the
                partial result.
            OutputError: If the terminal rejects a write.
            SourceError: If the source fails to read or decode.
        """
        if self.is_playing:
            raise RuntimeError("Player is already playing")

        self._cancel = cancel if cancel is not None else asyncio.Event()
        self._last_rows = None
        self._state = PlaybackState.PLAYING
        result = PlaybackResult()

        logger.info("Playback starting: %s", source.name)
        try:
            async with source:
                await self._play_passes(source, result)
        except PlaybackCancelled:
            logger.info("Playback cancelled after %d frames", result.frames_flushed)
            raise
        finally:
            self._state = PlaybackState.IDLE

        logger.info(
            "Playback finished: frames=%d, loops=%d",
            result.frames_flushed, result.loops_completed,
        )
        return result

    async def _play_passes(self, source: FrameSource, result: PlaybackResult) -> None:
        loop = asyncio.get_running_loop()

        background: MonochromeBuffer | None = None
        canvas = source.canvas
        if canvas is not None and not canvas.is_empty:
            backdrop = Raster.filled(canvas, source.background)
            background = await loop.run_in_executor(None, self._redraw, backdrop)

        # A lone frame is a still image: one flush, no delay, no looping
        still = source.frame_count == 1
        passes = 1 if still else source.loop_count

        while passes == 0 or result.loops_completed < passes:
            screen = background.copy() if background is not None else None
            played = 0

            async with contextlib.aclosing(source.frames()) as frames:
                while True:
                    self._check_cancel(result)
                    frame = await self._next_frame(frames, result)
                    if frame is None:
                        break
                    screen = await self._show(frame, screen, background, result, still)
                    played += 1

            if played == 0:
                logger.warning("Source %s produced no frames", source.name)
                return
            result.loops_completed += 1
            logger.debug("Completed pass %d (%d frames)", result.loops_completed, played)

    async def _show(
        self,
        frame: AnimationFrame,
        screen: MonochromeBuffer | None,
        background: MonochromeBuffer | None,
        result: PlaybackResult,
        still: bool,
    ) -> MonochromeBuffer:
        """Composite, flush, wait and dispose one frame. Returns the new screen."""
        loop = asyncio.get_running_loop()
        started = loop.time()

        self._state = PlaybackState.COMPOSITING
        image = await loop.run_in_executor(None, self._redraw, frame.raster)

        snapshot = None
        if screen is None or background is None:
            screen = image
        else:
            if frame.disposal == Disposal.PREVIOUS:
                snapshot = screen.copy()
            screen.draw_over(image)

        self._flush(screen, result)
        self._state = PlaybackState.PLAYING

        if not still:
            await self._wait(frame.delay - (loop.time() - started))

        if background is not None:
            if frame.disposal == Disposal.PREVIOUS:
                screen = snapshot
            elif frame.disposal == Disposal.BACKGROUND:
                screen.draw_exact(background.crop(image.bounds))
        return screen

    def _redraw(self, raster: Raster) -> MonochromeBuffer:
        return redraw(raster, self._filter, self._reducer, self._config)

    def _flush(self, screen: MonochromeBuffer, result: PlaybackResult) -> None:
        self._state = PlaybackState.FLUSHING
        if self._last_rows is not None:
            self._terminal.reposition(self._last_rows)
        self._last_rows = self._encoder.encode(screen, self._terminal)
        self._terminal.flush()
        result.frames_flushed += 1

    async def _wait(self, timeout: float) -> None:
        """Sleep for ``timeout`` seconds, waking early on cancellation."""
        if timeout <= 0:
            return
        try:
            await asyncio.wait_for(self._cancel.wait(), timeout)
        except asyncio.TimeoutError:
            pass

    async def _next_frame(
        self, frames: AsyncIterator[AnimationFrame], result: PlaybackResult
    ) -> AnimationFrame | None:
        """Next frame of the pass, or None at its end.

        Waits on the source and the cancel event together so a slow stream
        does not hold up cancellation.
        """
        next_task = asyncio.ensure_future(frames.__anext__())
        cancel_task = asyncio.ensure_future(self._cancel.wait())
        try:
            await asyncio.wait({next_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            next_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if not next_task.done():
            next_task.cancel()
            await asyncio.gather(next_task, return_exceptions=True)
            self._check_cancel(result)

        try:
            frame = next_task.result()
        except StopAsyncIteration:
            return None
        self._check_cancel(result)
        return frame

    def _check_cancel(self, result: PlaybackResult) -> None:
        if self._cancel.is_set():
            result.cancelled = True
            raise PlaybackCancelled(result.model_copy())
