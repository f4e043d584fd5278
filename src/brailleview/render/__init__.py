"""Rendering module for brailleview.

Turns rasters into Braille text: classification, dithering, glyph
encoding and the single-frame pipeline that strings them together.

Public API:
    ImageFilter, Reducer -- Strategy interfaces
    MonochromeBuffer -- Three-state pixel grid
    BrailleEncoder -- Buffer to glyph text
    Printer, print_image, redraw -- Single-frame pipeline
"""

from brailleview.render.base import ImageFilter, NoopFilter, OutputError, Reducer
from brailleview.render.buffer import MonochromeBuffer
from brailleview.render.dither import FloydSteinbergReducer, ThresholdReducer, get_reducer
from brailleview.render.glyph import BrailleEncoder, block_mask, glyph, mask_of, rows_for_height
from brailleview.render.pipeline import Printer, print_image, redraw

__all__ = [
    "BrailleEncoder",
    "FloydSteinbergReducer",
    "ImageFilter",
    "MonochromeBuffer",
    "NoopFilter",
    "OutputError",
    "Printer",
    "Reducer",
    "ThresholdReducer",
    "block_mask",
    "get_reducer",
    "glyph",
    "mask_of",
    "print_image",
    "redraw",
    "rows_for_height",
]
