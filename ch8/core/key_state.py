"""
KeyState -- press state of the 16-key hexadecimal keypad.

Besides the plain per-key state, KeyState tracks *release edges* for the
key-wait instruction (FX0A).  The machine arms tracking when it starts
waiting; the next pressed -> released transition is latched in
:meth:`last_released` until the machine disarms tracking.
"""

from __future__ import annotations

import logging
from typing import Optional

from ch8.core.types import Key

logger = logging.getLogger(__name__)


class KeyState:
    """Keypad state shared between the input collaborator and the machine.

    Host code calls :meth:`set_pressed` whenever a mapped key changes
    state.  The machine reads :meth:`is_pressed` for the skip-on-key
    instructions and uses the release-tracking methods for FX0A.
    """

    def __init__(self) -> None:
        self._pressed: list[bool] = [False] * len(Key)
        self._tracking: bool = False
        self._last_released: Optional[int] = None

    # ------------------------------------------------------------------
    # Host-side event injection
    # ------------------------------------------------------------------

    def set_pressed(self, key: int, pressed: bool) -> None:
        """Record that *key* is now *pressed* (or released)."""
        if not Key.is_valid(key):
            logger.debug("KeyState: ignoring out-of-range key %r", key)
            return

        was_pressed = self._pressed[key]
        self._pressed[key] = pressed

        if self._tracking and was_pressed and not pressed:
            self._last_released = key

    def release_all(self) -> None:
        """Mark every key released without generating release edges."""
        for i in range(len(self._pressed)):
            self._pressed[i] = False

    # ------------------------------------------------------------------
    # Machine-side queries
    # ------------------------------------------------------------------

    def is_pressed(self, key: int) -> bool:
        """Return ``True`` if *key* is held down.  Out-of-range keys read
        as not pressed."""
        if not Key.is_valid(key):
            return False
        return self._pressed[key]

    @property
    def tracking(self) -> bool:
        """``True`` while release tracking is armed."""
        return self._tracking

    def arm_release_tracking(self) -> None:
        """Start latching the next key release.  Any stale release is
        discarded."""
        self._tracking = True
        self._last_released = None

    def disarm(self) -> None:
        """Stop release tracking and forget the latched key."""
        self._tracking = False
        self._last_released = None

    def last_released(self) -> Optional[Key]:
        """The key released since tracking was armed, or ``None``."""
        if self._last_released is None:
            return None
        return Key(self._last_released)

    def __repr__(self) -> str:
        held = [f"{i:X}" for i, p in enumerate(self._pressed) if p]
        return f"KeyState(held=[{','.join(held)}], tracking={self._tracking})"
