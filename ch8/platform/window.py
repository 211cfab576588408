"""
Main application window.
Uses pygame to create a display, drive the host loop, and coordinate the
audio, video and input collaborators.

Typical usage::

    from ch8.platform.window import Window

    machine = MachineFactory.create("pong.ch8")
    window = Window(machine, scale=15)
    window.run()
"""

from __future__ import annotations

import logging
import time

import pygame

from ch8.core.types import INSTRUCTION_HZ
from ch8.platform.audio import AudioDevice
from ch8.platform.input_handler import InputHandler
from ch8.shell.frame_renderer import FrameRenderer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_WINDOW_TITLE: str = "CHIP-8 Interpreter"

_MIN_SCALE: int = 1
_MAX_SCALE: int = 32

# The host loop runs at twice the instruction clock so the machine never
# misses an instruction period on a healthy host.
_HOST_HZ: int = INSTRUCTION_HZ * 2

_PRESENT_HZ: int = 60
_PRESENT_PERIOD: float = 1.0 / _PRESENT_HZ


class Window:
    """Pygame window that owns the host loop.

    Parameters
    ----------
    machine:
        A loaded :class:`~ch8.core.machine.Machine`.
    scale:
        Integer scale factor applied to the 64 x 32 native resolution.
    enable_audio:
        Set to ``False`` to mute sound output entirely.
    """

    def __init__(
        self,
        machine: object,
        scale: int = 15,
        *,
        enable_audio: bool = True,
    ) -> None:
        self._machine = machine
        self._scale: int = max(_MIN_SCALE, min(_MAX_SCALE, scale))
        self._running: bool = False

        if not pygame.get_init():
            pygame.init()

        self._frame_renderer: FrameRenderer = FrameRenderer(machine)
        self._display_width: int = self._frame_renderer.width * self._scale
        self._display_height: int = self._frame_renderer.height * self._scale

        self._screen: pygame.Surface = pygame.display.set_mode(
            (self._display_width, self._display_height),
            pygame.RESIZABLE,
        )
        pygame.display.set_caption(_WINDOW_TITLE)

        self._clock: pygame.time.Clock = pygame.time.Clock()
        self._audio: AudioDevice = AudioDevice(enabled=enable_audio)
        self._input: InputHandler = InputHandler(machine)

        self._next_present: float = 0.0
        self._frame_count: int = 0
        self._fps_update_time: float = 0.0
        self._fps_display: float = 0.0

        logger.info(
            "Window: %dx%d display (scale=%d, host loop %d Hz)",
            self._display_width,
            self._display_height,
            self._scale,
            _HOST_HZ,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def scale(self) -> int:
        return self._scale

    @property
    def fps(self) -> float:
        """The measured presented-frames-per-second (updated once per second)."""
        return self._fps_display

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Enter the host loop.

        Blocks until the user closes the window or presses Escape.  Each
        iteration:

        1. Polls input events and forwards them to the keypad.
        2. Calls ``machine.tick()`` to advance both clocks.
        3. Starts or stops the tone from ``machine.sound_active``.
        4. Presents the framebuffer, at most 60 times per second.

        A ``VMIntegrityError`` raised by the machine propagates to the
        caller after the subsystems are shut down.
        """
        self._running = True
        self._fps_update_time = time.monotonic()
        self._frame_count = 0

        logger.info("Entering host loop")

        try:
            while self._running:
                self._tick()
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self._shutdown()

    def _tick(self) -> None:
        """Execute one iteration of the host loop."""
        self._input.poll()
        if self._input.quit_requested:
            self._running = False
            return

        self._machine.tick()  # type: ignore[attr-defined]
        self._audio.update(self._machine.sound_active)  # type: ignore[attr-defined]

        now = time.monotonic()
        if now >= self._next_present:
            self._present()
            self._next_present = now + _PRESENT_PERIOD
            self._update_fps(now)

        self._clock.tick(_HOST_HZ)

    def _present(self) -> None:
        surface = self._frame_renderer.render()
        current_size = self._screen.get_size()
        if surface.get_size() != current_size:
            surface = pygame.transform.scale(surface, current_size)
        self._screen.blit(surface, (0, 0))
        pygame.display.flip()

    # ------------------------------------------------------------------
    # FPS tracking
    # ------------------------------------------------------------------

    def _update_fps(self, now: float) -> None:
        self._frame_count += 1
        elapsed = now - self._fps_update_time
        if elapsed >= 1.0:
            self._fps_display = self._frame_count / elapsed
            self._frame_count = 0
            self._fps_update_time = now
            pygame.display.set_caption(f"{_WINDOW_TITLE}  [{self._fps_display:.1f} fps]")

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def _shutdown(self) -> None:
        """Clean up all subsystems."""
        logger.info("Shutting down")
        self._audio.shutdown()
        pygame.quit()
