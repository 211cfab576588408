"""
Frame renderer.
Converts the machine's monochrome FrameBuffer into an RGB pygame Surface.

The core stores one byte per pixel (0 or 1).  numpy wraps that buffer
without copying, maps it through a two-entry colour table and hands the
result to ``pygame.surfarray``.
"""

from __future__ import annotations

import logging

import numpy as np
import pygame

from ch8.core.frame_buffer import FrameBuffer

logger = logging.getLogger(__name__)

PIXEL_OFF: tuple[int, int, int] = (20, 20, 20)
PIXEL_ON: tuple[int, int, int] = (255, 255, 255)


def build_rgb_frame(pixels: bytes, off=PIXEL_OFF, on=PIXEL_ON) -> np.ndarray:
    """Map a row-major 0/1 pixel buffer to an ``(HEIGHT, WIDTH, 3)`` array."""
    lut = np.array([off, on], dtype=np.uint8)
    raw = np.frombuffer(pixels, dtype=np.uint8)
    return lut[raw.reshape((FrameBuffer.HEIGHT, FrameBuffer.WIDTH))]


class FrameRenderer:
    """Render a machine's :class:`FrameBuffer` to a reusable
    :class:`pygame.Surface`.

    Parameters
    ----------
    machine:
        The emulated machine.  Expected attribute: ``frame_buffer``.
    """

    def __init__(self, machine: object, *, off=PIXEL_OFF, on=PIXEL_ON) -> None:
        self._machine = machine
        self._off = off
        self._on = on
        self._surface: pygame.Surface = pygame.Surface((FrameBuffer.WIDTH, FrameBuffer.HEIGHT))
        logger.info("FrameRenderer: %dx%d", FrameBuffer.WIDTH, FrameBuffer.HEIGHT)

    @property
    def width(self) -> int:
        return FrameBuffer.WIDTH

    @property
    def height(self) -> int:
        return FrameBuffer.HEIGHT

    @property
    def surface(self) -> pygame.Surface:
        """The internal pygame Surface (updated on each :meth:`render` call)."""
        return self._surface

    def render(self) -> pygame.Surface:
        """Render the current frame and return the surface."""
        fb = self._machine.frame_buffer  # type: ignore[attr-defined]
        rgb = build_rgb_frame(fb.pixels, self._off, self._on)
        # pygame surfarray expects (W, H, 3).
        pygame.surfarray.blit_array(self._surface, rgb.transpose(1, 0, 2))
        return self._surface
