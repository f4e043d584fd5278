"""Motion-JPEG stream source.

A motion-JPEG stream is a plain concatenation of JPEG images, as produced
by many webcams and by ``ffmpeg -f mjpeg``. Frames are split on the JPEG
end-of-image marker, decoded with Pillow and handed to the consumer over a
single-slot queue.
"""

from __future__ import annotations

import asyncio
import io
import logging
import queue
import threading
from typing import AsyncIterator, BinaryIO

from PIL import Image

from brailleview.domain.models import AnimationFrame, Raster
from brailleview.source.base import DecodeError, FrameSource, SourceError
from brailleview.utils.imaging import JPEG_EOI, JPEG_SOI, raster_from_pil

logger = logging.getLogger(__name__)

_END = object()


class _ReaderThread:
    """Daemon thread serving blocking ``read()`` calls one at a time.

    A read blocked on an idle pipe or camera cannot be interrupted. After
    ``stop()`` the thread is abandoned: it exits once its current read
    returns, or with the process.
    """

    def __init__(self, reader: BinaryIO, read_size: int, name: str) -> None:
        self._reader = reader
        self._read_size = read_size
        self._requests: queue.Queue = queue.Queue()
        self._thread = threading.Thread(
            target=self._run, name=f"mjpeg-reader {name}", daemon=True
        )

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._requests.put(None)

    async def read(self) -> bytes:
        """Read one chunk in the thread. Raises whatever ``read()`` raised."""
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._requests.put((loop, future))
        return await future

    def _run(self) -> None:
        while True:
            request = self._requests.get()
            if request is None:
                return
            loop, future = request
            chunk, error = b"", None
            try:
                chunk = self._reader.read(self._read_size)
            except Exception as e:
                error = e
            try:
                loop.call_soon_threadsafe(_resolve, future, chunk, error)
            except RuntimeError:
                # Event loop already closed
                return


def _resolve(future: asyncio.Future, chunk: bytes, error: Exception | None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(chunk)


class MJPEGSource(FrameSource):
    """Reads JPEG frames from a byte stream as they arrive.

    Blocking reads run on a daemon thread owned by the source, and Pillow
    decoding in the default executor, so the event loop keeps servicing
    timers and signals. A read stalled on an idle stream does not hold up
    cancellation or interpreter shutdown.

    Args:
        reader: Binary stream with a ``read(n)`` method (file, pipe, socket).
        fps: Emit at most this many frames per second. Values <= 0 emit as
            fast as frames are decoded. Frames are never dropped.
        read_size: Bytes requested per read call.
    """

    def __init__(
        self,
        reader: BinaryIO,
        fps: int = -1,
        read_size: int = 4096,
        name: str = "<mjpeg>",
    ) -> None:
        super().__init__(name=name)
        if read_size <= 0:
            raise ValueError(f"read_size must be > 0, got {read_size}")
        self._reader = reader
        self._fps = fps
        self._read_size = read_size
        self._started = False
        self._reader_thread: _ReaderThread | None = None

    @property
    def fps(self) -> int:
        return self._fps

    async def open(self) -> None:
        self._is_open = True
        logger.info("Opened MJPEG stream %s (fps=%s)", self._name, self._fps if self._fps > 0 else "unpaced")

    async def close(self) -> None:
        self._stop_reader()
        self._is_open = False

    async def frames(self) -> AsyncIterator[AnimationFrame]:
        self._check_open()
        if self._started:
            raise SourceError("stream cannot be replayed", source=self._name)
        self._started = True

        self._reader_thread = _ReaderThread(self._reader, self._read_size, self._name)
        self._reader_thread.start()
        slot: asyncio.Queue = asyncio.Queue(maxsize=1)
        producer = asyncio.create_task(self._produce(slot))
        index = 0
        try:
            while True:
                item = await slot.get()
                if item is _END:
                    return
                if isinstance(item, Exception):
                    raise item
                yield AnimationFrame(raster=item, index=index)
                index += 1
        finally:
            producer.cancel()
            await asyncio.gather(producer, return_exceptions=True)
            self._stop_reader()

    def _stop_reader(self) -> None:
        if self._reader_thread is not None:
            self._reader_thread.stop()
            self._reader_thread = None

    async def _produce(self, slot: asyncio.Queue) -> None:
        """Producer task: pump frames, then post the end marker or the failure."""
        try:
            await self._pump(slot)
        except Exception as e:
            # Re-raised by the consumer
            logger.error("MJPEG stream %s failed: %s", self._name, e)
            await slot.put(e)
        else:
            await slot.put(_END)

    async def _pump(self, slot: asyncio.Queue) -> None:
        loop = asyncio.get_running_loop()
        reader = self._reader_thread
        interval = 1.0 / self._fps if self._fps > 0 else 0.0
        next_emit = 0.0
        buf = bytearray()
        scan = 0

        while True:
            try:
                chunk = await reader.read()
            except OSError as e:
                raise SourceError(f"read failed: {e}", source=self._name) from e

            if not chunk:
                if JPEG_SOI in buf:
                    raise DecodeError(
                        f"stream ended inside a frame ({len(buf)} bytes buffered)",
                        source=self._name,
                    )
                logger.debug("MJPEG stream %s reached EOF", self._name)
                return

            buf.extend(chunk)
            while True:
                # Back up one byte in case the marker straddles two reads
                end = buf.find(JPEG_EOI, max(scan - 1, 0))
                if end < 0:
                    scan = len(buf)
                    break
                data = bytes(buf[:end + len(JPEG_EOI)])
                del buf[:end + len(JPEG_EOI)]
                scan = 0

                raster = await loop.run_in_executor(None, self._decode, data)

                if interval:
                    delay = next_emit - loop.time()
                    if delay > 0:
                        await asyncio.sleep(delay)
                    next_emit = loop.time() + interval
                await slot.put(raster)

    def _decode(self, data: bytes) -> Raster:
        start = data.find(JPEG_SOI)
        if start < 0:
            raise DecodeError("frame has no JPEG start marker", source=self._name)
        try:
            with Image.open(io.BytesIO(data[start:])) as image:
                image.load()
                return raster_from_pil(image)
        except (OSError, SyntaxError, ValueError) as e:
            raise DecodeError(f"cannot decode frame: {e}", source=self._name) from e
