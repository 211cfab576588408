"""
Machine creation factory.

Creates a ready-to-run :class:`Machine` from a program image path.

Typical usage::

    machine = MachineFactory.create("roms/pong.ch8")
    machine = MachineFactory.create("roms/pong.ch8", catch_up=True)
"""

from __future__ import annotations

import logging
import random
from dataclasses import asdict
from typing import Optional

from ch8.core.machine import Machine
from ch8.shell.services.rom_bytes_service import RomBytesService

logger = logging.getLogger(__name__)


class MachineFactory:
    """Static factory for fully-wired machines."""

    @staticmethod
    def create(
        rom_path: str,
        *,
        catch_up: bool = False,
        seed: Optional[int] = None,
    ) -> Machine:
        """Load *rom_path* and return a machine positioned at 0x200.

        Parameters
        ----------
        rom_path:
            Path to a raw program image.
        catch_up:
            Forwarded to :class:`Machine`.
        seed:
            Optional seed for the CXNN random source, for reproducible runs.

        Raises
        ------
        FileNotFoundError
            If *rom_path* does not exist.
        ProgramLoadError
            If the image is empty or larger than 3584 bytes.
        """
        data = RomBytesService.read(rom_path)
        rng = random.Random(seed) if seed is not None else None

        machine = Machine(rng=rng, catch_up=catch_up)
        machine.load_program(data)
        machine.reset()

        logger.info("Created %r from %s", machine, rom_path)
        return machine

    @staticmethod
    def describe(rom_path: str) -> dict:
        """Return a dictionary of human-readable program metadata."""
        return asdict(RomBytesService.describe(rom_path))
