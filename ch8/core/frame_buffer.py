"""
FrameBuffer -- the 64 x 32 monochrome display of the CHIP-8 machine.

Pixels are stored row-major, one byte per pixel (0 = off, 1 = on)::

    pixels[x + y * WIDTH]

Sprites are drawn by XOR.  Each sprite row is one byte, most significant
bit leftmost.  Pixel coordinates wrap toroidally at both edges; a draw is
reported as a *collision* when any lit pixel is switched off.
"""

from __future__ import annotations

from typing import Iterable


class FrameBuffer:
    """Holds the current display contents."""

    WIDTH: int = 64
    HEIGHT: int = 32
    SIZE: int = WIDTH * HEIGHT

    def __init__(self) -> None:
        self._pixels: bytearray = bytearray(self.SIZE)

    # ------------------------------------------------------------------
    # Read access (renderers)
    # ------------------------------------------------------------------

    @property
    def pixels(self) -> bytearray:
        """The raw row-major pixel buffer.  Treat as read-only."""
        return self._pixels

    def is_set(self, index: int) -> bool:
        """Return ``True`` if the pixel at row-major *index* is lit."""
        return self._pixels[index] != 0

    def is_set_xy(self, x: int, y: int) -> bool:
        """Return ``True`` if the pixel at (*x*, *y*) is lit."""
        return self._pixels[x + y * self.WIDTH] != 0

    @property
    def lit_count(self) -> int:
        """Number of lit pixels."""
        return sum(self._pixels)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def draw_sprite(self, x: int, y: int, rows: Iterable[int]) -> bool:
        """XOR a sprite onto the display.

        Args:
            x: Column of the sprite's top-left corner.
            y: Row of the sprite's top-left corner.
            rows: Sprite bytes, one per row, top to bottom.

        Returns:
            ``True`` if any previously lit pixel was turned off.  An anchor
            outside the display draws nothing and returns ``False``.
        """
        if not (0 <= x < self.WIDTH and 0 <= y < self.HEIGHT):
            return False

        pixels = self._pixels
        collision = False
        for row, byte in enumerate(rows):
            base = ((y + row) % self.HEIGHT) * self.WIDTH
            for col in range(8):
                if not (byte >> (7 - col)) & 1:
                    continue
                index = base + (x + col) % self.WIDTH
                if pixels[index]:
                    collision = True
                pixels[index] ^= 1
        return collision

    def clear(self) -> None:
        """Turn every pixel off."""
        self._pixels[:] = bytes(self.SIZE)

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return f"FrameBuffer({self.WIDTH}x{self.HEIGHT}, lit={self.lit_count})"
