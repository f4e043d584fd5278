"""brailleview -- Render images and animations as Unicode Braille text.

Each 2x4 block of pixels becomes one Braille glyph. Still images are
printed once; GIF animations and motion-JPEG streams are played in place
by repositioning the terminal cursor between frames.
"""

__version__ = "0.1.0"
