"""Command-line interface for brailleview.

Renders a still image, plays a GIF, or follows a motion-JPEG stream read
from a file, an http(s) URL or stdin.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
from pathlib import Path
from typing import BinaryIO, Iterator

import httpx
from pydantic import ValidationError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="brailleview",
        description="Encode images as Unicode Braille text",
        usage="%(prog)s [options] [file|url]\n       %(prog)s [options] < file",
    )
    parser.add_argument(
        "input", nargs="?", default=None,
        help="Image path or http(s) URL. Reads stdin when omitted",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/brailleview.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-i", "--invert", action="store_true", default=None,
        help="Invert image colours. Useful for dark terminals",
    )
    parser.add_argument(
        "-g", "--gamma", type=float, default=None,
        help="Below 0 darkens the image, above 0 lightens it",
    )
    parser.add_argument(
        "-b", "--brightness", type=float, default=None,
        help="-100 gives a solid black image, 100 a solid white one",
    )
    parser.add_argument(
        "-C", "--contrast", type=float, default=None,
        help="-100 gives a solid grey image, 100 maximum contrast",
    )
    parser.add_argument(
        "-s", "--sharpen", type=float, default=None,
        help="Above 0 sharpens the image",
    )
    parser.add_argument(
        "-m", "--mirror", action="store_true", default=None,
        help="Mirror the image horizontally",
    )
    parser.add_argument(
        "--mono", action="store_true",
        help="Draw without Floyd-Steinberg diffusion",
    )
    parser.add_argument(
        "--motion", "--mjpeg", dest="motion", action="store_true",
        help="Interpret input as a motion-JPEG stream, such as from a webcam",
    )
    parser.add_argument(
        "--fps", "--framerate", dest="fps", type=int, default=None,
        help="Frame rate for motion-JPEG streams (default: as fast as decoded)",
    )
    parser.add_argument(
        "--mime", type=str, default=None,
        help='Force a MIME type, e.g. "image/gif", instead of sniffing the input',
    )
    parser.add_argument(
        "--luminosity", type=float, default=None,
        help="Share of the luminance range drawn as dots, 0.0-1.0 (default: 0.5)",
    )
    parser.add_argument(
        "--width", type=int, default=None,
        help="Maximum width in columns (default: terminal width)",
    )
    parser.add_argument(
        "--height", type=int, default=None,
        help="Maximum height in rows (default: terminal height)",
    )
    return parser.parse_args(argv)


def apply_overrides(settings, args: argparse.Namespace):
    """Fold command-line flags into the loaded settings."""
    from brailleview.config.settings import AdjustConfig, StreamConfig, TerminalConfig
    from brailleview.domain.models import DitherMethod

    settings.render = settings.render.merged(
        luminosity=args.luminosity,
        dither=DitherMethod.THRESHOLD if args.mono else None,
    )

    adjust = settings.adjust.model_dump()
    for field in ("gamma", "brightness", "contrast", "sharpen", "mirror", "invert"):
        value = getattr(args, field)
        if value is not None:
            adjust[field] = value
    settings.adjust = AdjustConfig(**adjust)

    terminal = settings.terminal.model_dump()
    if args.width is not None:
        terminal["max_width"] = args.width
    if args.height is not None:
        terminal["max_height"] = args.height
    settings.terminal = TerminalConfig(**terminal)

    if args.fps is not None:
        settings.stream = StreamConfig(**{**settings.stream.model_dump(), "fps": args.fps})
    if args.verbose:
        settings.logging.level = "DEBUG"
    return settings


class PrefixedReader:
    """A binary reader that replays already-sniffed bytes before the rest."""

    def __init__(self, head: bytes, reader: BinaryIO) -> None:
        self._head = head
        self._reader = reader

    def read(self, size: int = -1) -> bytes:
        if self._head:
            if size is None or size < 0:
                data, self._head = self._head + self._reader.read(), b""
                return data
            data, self._head = self._head[:size], self._head[size:]
            return data
        return self._reader.read(size)


class ChunkReader:
    """Adapts an iterator of byte chunks (an HTTP body) to ``read()``."""

    def __init__(self, chunks: Iterator[bytes]) -> None:
        self._chunks = chunks

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            return b"".join(self._chunks)
        for chunk in self._chunks:
            if chunk:
                return chunk
        return b""


def read_head(reader: BinaryIO, size: int) -> bytes:
    """Read up to ``size`` bytes, stopping early only at EOF."""
    parts = []
    remaining = size
    while remaining > 0:
        chunk = reader.read(remaining)
        if not chunk:
            break
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)


def open_input(
    source: str | None, stack: contextlib.ExitStack, read_size: int = 4096
) -> tuple[BinaryIO, str]:
    """Open a path, URL or stdin for binary reading.

    Returns:
        The reader and a display name for logs and errors.
    """
    if source is None or source == "-":
        return sys.stdin.buffer, "<stdin>"

    if source.startswith(("http://", "https://")):
        client = stack.enter_context(
            httpx.Client(follow_redirects=True, timeout=httpx.Timeout(10.0, read=None))
        )
        response = stack.enter_context(client.stream("GET", source))
        response.raise_for_status()
        logger.info("Fetching %s (%s)", source, response.headers.get("content-type", "unknown type"))
        return ChunkReader(response.iter_bytes(read_size)), source

    return stack.enter_context(open(source, "rb")), source


async def _play(settings, args, reader: BinaryIO, name: str, mime: str) -> None:
    """Render or play the input according to its type."""
    from brailleview.animation.engine import AnimationPlayer
    from brailleview.animation.terminal import InterruptGuard, Terminal
    from brailleview.render.pipeline import Printer
    from brailleview.source.gif import GIFSource
    from brailleview.source.mjpeg import MJPEGSource
    from brailleview.utils.imaging import MIME_GIF, MIME_MJPEG, AdjustmentFilter, decode_image

    terminal = Terminal(sys.stdout)
    cols, rows = terminal.size()
    cols = settings.terminal.max_width or cols
    rows = settings.terminal.max_height or rows
    image_filter = AdjustmentFilter(settings.adjust, cols=cols, rows=rows)

    if args.motion or mime == MIME_MJPEG:
        source = MJPEGSource(
            reader, fps=settings.stream.fps, read_size=settings.stream.read_size, name=name,
        )
    elif mime == MIME_GIF:
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, reader.read)
        source = GIFSource(data, name=name)
    else:
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, reader.read)
        raster = decode_image(data, name=name)
        Printer(sys.stdout, settings.render, image_filter).print(raster)
        return

    player = AnimationPlayer(terminal, settings.render, image_filter)
    cancel = asyncio.Event()
    terminal.hide_cursor()
    try:
        with InterruptGuard(cancel, cleanup=terminal.restore):
            result = await player.play(source, cancel)
        logger.info("Played %d frames over %d loops", result.frames_flushed, result.loops_completed)
    finally:
        terminal.restore()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the brailleview CLI."""
    args = parse_args(argv)

    from brailleview.animation.engine import PlaybackCancelled
    from brailleview.config.settings import load_settings
    from brailleview.render.base import OutputError
    from brailleview.source.base import SourceError
    from brailleview.utils.imaging import SNIFF_LENGTH, detect_mime
    from brailleview.utils.logging import setup_logging

    try:
        settings = apply_overrides(load_settings(args.config), args)
    except ValidationError as e:
        print(f"brailleview: invalid configuration: {e}", file=sys.stderr)
        return EXIT_ERROR
    setup_logging(settings.logging)

    try:
        with contextlib.ExitStack() as stack:
            reader, name = open_input(args.input, stack, settings.stream.read_size)
            head = read_head(reader, SNIFF_LENGTH)
            mime = args.mime or detect_mime(head)
            logger.debug("Input %s detected as %s", name, mime)
            asyncio.run(_play(settings, args, PrefixedReader(head, reader), name, mime))
    except (PlaybackCancelled, KeyboardInterrupt):
        return EXIT_INTERRUPTED
    except (SourceError, OutputError, httpx.HTTPError, OSError) as e:
        logger.error("%s", e)
        return EXIT_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
