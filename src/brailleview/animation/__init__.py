"""Animation module for brailleview.

Plays multi-frame sources in place on a terminal, honouring per-frame
delays, disposal methods and loop counts.

Public API:
    AnimationPlayer -- The playback engine
    PlaybackCancelled -- Raised when playback is stopped
    Terminal -- Text sink with cursor control
    InterruptGuard -- Signal-to-cancellation bridge
"""

from brailleview.animation.engine import AnimationPlayer, PlaybackCancelled
from brailleview.animation.terminal import InterruptGuard, Terminal, terminal_size

__all__ = [
    "AnimationPlayer",
    "InterruptGuard",
    "PlaybackCancelled",
    "Terminal",
    "terminal_size",
]
