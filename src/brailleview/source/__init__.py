"""Frame source module for brailleview.

Provides the frames played by the animation engine: in-memory frame lists,
GIF containers and motion-JPEG streams, all behind one abstract interface.

Public API:
    FrameSource -- Abstract base class
    FrameSequence -- Pre-decoded frame list
    GIFSource -- Pillow GIF decoder
    MJPEGSource -- Motion-JPEG byte stream reader
"""

from brailleview.source.base import DecodeError, FrameSource, SourceError
from brailleview.source.sequence import FrameSequence

__all__ = [
    "DecodeError",
    "FrameSequence",
    "FrameSource",
    "GIFSource",
    "MJPEGSource",
    "SourceError",
]


def __getattr__(name: str) -> type:
    """Lazy import for implementations that need Pillow."""
    if name == "GIFSource":
        from brailleview.source.gif import GIFSource
        return GIFSource
    if name == "MJPEGSource":
        from brailleview.source.mjpeg import MJPEGSource
        return MJPEGSource
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
