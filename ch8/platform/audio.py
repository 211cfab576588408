"""
Tone output for the CHIP-8 sound timer.
Uses pygame.mixer to loop a square wave while the sound timer is non-zero.

The machine has no sample stream; the only signal is "should be sounding"
(``sound_timer > 0``).  One period of a 440 Hz square wave is built with
numpy once, wrapped in a ``pygame.mixer.Sound`` and looped on a dedicated
channel.  :meth:`start` / :meth:`stop` pause and resume that channel.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pygame

logger = logging.getLogger(__name__)

_SAMPLE_RATE: int = 44100
_TONE_HZ: int = 440
_VOLUME: float = 0.1

# Small mixer buffer keeps start/stop latency well under one 60 Hz frame.
_MIXER_BUFFER_SAMPLES: int = 512


def build_square_wave(sample_rate: int, tone_hz: int, amplitude: int = 2 ** 15 - 1) -> np.ndarray:
    """Return one period of a signed 16-bit square wave."""
    period = max(2, int(round(sample_rate / tone_hz)))
    wave = np.full(period, -amplitude, dtype=np.int16)
    wave[: period // 2] = amplitude
    return wave


class AudioDevice:
    """Beeper driven by the machine's sound timer.

    Parameters
    ----------
    enabled:
        Set to ``False`` to create the device in a silent / no-op mode.
    """

    def __init__(self, *, enabled: bool = True) -> None:
        self._enabled: bool = enabled
        self._channel: Optional[pygame.mixer.Channel] = None
        self._sound: Optional[pygame.mixer.Sound] = None
        self._playing: bool = False

        if not self._enabled:
            logger.info("AudioDevice: disabled (silent mode)")
            return

        self._init_mixer()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def playing(self) -> bool:
        return self._playing

    def update(self, active: bool) -> None:
        """Start or stop the tone to match *active*.  Only edges reach the
        mixer."""
        if active and not self._playing:
            self.start()
        elif not active and self._playing:
            self.stop()

    def start(self) -> None:
        self._playing = True
        if self._channel is not None:
            self._channel.unpause()

    def stop(self) -> None:
        self._playing = False
        if self._channel is not None:
            self._channel.pause()

    def shutdown(self) -> None:
        """Stop playback and release the mixer."""
        self._shutdown_mixer()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _init_mixer(self) -> None:
        """Initialise the pygame mixer and park the looping tone."""
        # pygame.init() may already have started the mixer with defaults.
        if pygame.mixer.get_init():
            pygame.mixer.quit()
        try:
            pygame.mixer.init(
                frequency=_SAMPLE_RATE,
                size=-16,       # signed 16-bit
                channels=1,     # mono
                buffer=_MIXER_BUFFER_SAMPLES,
            )
        except pygame.error as exc:
            logger.warning("AudioDevice: mixer init failed (%s); sound disabled", exc)
            self._enabled = False
            return

        actual_freq, _, actual_channels = pygame.mixer.get_init()
        wave = build_square_wave(actual_freq, _TONE_HZ)
        if actual_channels > 1:
            wave = np.repeat(wave[:, np.newaxis], actual_channels, axis=1)

        self._sound = pygame.mixer.Sound(buffer=np.ascontiguousarray(wave).tobytes())
        self._sound.set_volume(_VOLUME)
        self._channel = pygame.mixer.Channel(0)
        self._channel.play(self._sound, loops=-1)
        self._channel.pause()

        logger.info("AudioDevice: %d Hz tone ready at %d Hz, %d ch", _TONE_HZ, actual_freq, actual_channels)

    def _shutdown_mixer(self) -> None:
        """Stop the mixer channel and release resources."""
        if self._channel is not None:
            try:
                self._channel.stop()
            except pygame.error:
                logger.debug("AudioDevice: channel already stopped")
            self._channel = None
        self._sound = None
        self._playing = False

        if pygame.mixer.get_init():
            pygame.mixer.quit()
