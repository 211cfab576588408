"""
Input handler.
Maps keyboard keys to keypad state changes on the machine's :class:`KeyState`.

Keyboard layout
---------------

The hexadecimal keypad is mapped onto the left block of a QWERTY keyboard::

    Keypad         Keyboard
    1 2 3 C        1 2 3 4
    4 5 6 D        Q W E R
    7 8 9 E        A S D F
    A 0 B F        Z X C V

Escape or closing the window requests quit.
"""

from __future__ import annotations

import logging

import pygame

from ch8.core.types import Key

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Keyboard -> keypad mapping
# ---------------------------------------------------------------------------

KEY_MAP: dict[int, Key] = {
    pygame.K_1: Key.K1,
    pygame.K_2: Key.K2,
    pygame.K_3: Key.K3,
    pygame.K_4: Key.KC,
    pygame.K_q: Key.K4,
    pygame.K_w: Key.K5,
    pygame.K_e: Key.K6,
    pygame.K_r: Key.KD,
    pygame.K_a: Key.K7,
    pygame.K_s: Key.K8,
    pygame.K_d: Key.K9,
    pygame.K_f: Key.KE,
    pygame.K_z: Key.KA,
    pygame.K_x: Key.K0,
    pygame.K_c: Key.KB,
    pygame.K_v: Key.KF,
}


class InputHandler:
    """Translates pygame keyboard events into keypad state.

    Parameters
    ----------
    machine:
        The emulated machine.  Expected attribute: ``key_state`` with a
        ``set_pressed(key, pressed)`` method.
    """

    def __init__(self, machine: object) -> None:
        self._machine = machine
        self._quit_requested: bool = False

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def quit_requested(self) -> bool:
        """``True`` if the user pressed Escape or closed the window."""
        return self._quit_requested

    def poll(self) -> None:
        """Pump the pygame event queue and process all pending events."""
        for event in pygame.event.get():
            self.handle_event(event)

    def handle_event(self, event: pygame.event.Event) -> None:
        """Process a single pygame event."""
        if event.type == pygame.QUIT:
            self._quit_requested = True
            return

        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                self._quit_requested = True
                return
            self._send(event.key, True)
        elif event.type == pygame.KEYUP:
            self._send(event.key, False)
        elif event.type == pygame.WINDOWFOCUSLOST:
            # Key-up events are lost while unfocused.
            self._machine.key_state.release_all()  # type: ignore[attr-defined]

    # ------------------------------------------------------------------
    # Machine bridge
    # ------------------------------------------------------------------

    def _send(self, keycode: int, pressed: bool) -> None:
        key = KEY_MAP.get(keycode)
        if key is None:
            return
        logger.debug("Key %X %s", key, "down" if pressed else "up")
        self._machine.key_state.set_pressed(key, pressed)  # type: ignore[attr-defined]
