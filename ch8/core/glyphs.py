"""
Built-in hexadecimal font.

Sixteen 4x5 glyphs (0-9, A-F), five bytes each, loaded at memory offset 0.
Only the high nibble of each byte is drawn.  Example for ``2``::

    ****....
    ...*....
    ****....
    *.......
    ****....
"""

GLYPH_HEIGHT: int = 5
GLYPH_COUNT: int = 16

# fmt: off
GLYPHS: bytes = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])
# fmt: on

assert len(GLYPHS) == GLYPH_COUNT * GLYPH_HEIGHT, "glyph table must hold 80 bytes"


def glyph_address(digit: int) -> int:
    """Return the memory address of the glyph for *digit*."""
    return digit * GLYPH_HEIGHT
