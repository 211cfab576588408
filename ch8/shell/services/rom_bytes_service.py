"""
Program image loading and inspection service.

Program images are raw binaries: a sequence of big-endian 16-bit words
with no header, loaded verbatim at 0x200.  Their length is implied by the
file size and may not exceed 3584 bytes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from ch8.core.decoder import disassemble, format_operation
from ch8.core.errors import ProgramLoadError
from ch8.core.types import MAX_PROGRAM_SIZE, PROGRAM_OFFSET


# ---------------------------------------------------------------------------
# Image summary data-class
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RomInfo:
    """Summary of a program image."""

    path: str
    size: int
    words: int
    recognized: int
    unrecognized: int
    end_address: int


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class RomBytesService:
    """Static utility for reading and inspecting program images."""

    @staticmethod
    def read(path: str) -> bytes:
        """Read the program image at *path*.

        Raises:
            FileNotFoundError: If *path* does not exist.
            OSError: On general I/O failure.
            ProgramLoadError: If the image is empty or too large.
        """
        with open(path, "rb") as fh:
            data = fh.read()
        RomBytesService.validate(data)
        return data

    @staticmethod
    def validate(data: bytes) -> None:
        """Reject images that cannot be loaded."""
        if not data:
            raise ProgramLoadError("program image is empty")
        if len(data) > MAX_PROGRAM_SIZE:
            raise ProgramLoadError(
                f"program image is {len(data)} bytes; the limit is {MAX_PROGRAM_SIZE}"
            )

    @staticmethod
    def describe(path: str) -> RomInfo:
        """Read *path* and summarise its contents."""
        data = RomBytesService.read(path)
        recognized = sum(1 for _, _, op in disassemble(data) if op is not None)
        words = len(data) // 2
        return RomInfo(
            path=os.path.abspath(path),
            size=len(data),
            words=words,
            recognized=recognized,
            unrecognized=words - recognized,
            end_address=PROGRAM_OFFSET + len(data) - 1,
        )

    @staticmethod
    def listing(data: bytes) -> list[str]:
        """Return one disassembly line per word of *data*."""
        return [
            f"0x{addr:03X}  {word:04X}  {format_operation(op)}"
            for addr, word, op in disassemble(data)
        ]
