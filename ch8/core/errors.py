"""
Exception hierarchy for the CHIP-8 core.

``VMIntegrityError`` and its subclasses are fatal: the machine halts and
never attempts to recover.  ``ProgramLoadError`` is raised before execution
begins and leaves the machine untouched.
"""


class Chip8Error(Exception):
    """Base class for all interpreter errors."""


class ProgramLoadError(Chip8Error):
    """The program image cannot be placed in memory."""


class VMIntegrityError(Chip8Error):
    """The running program corrupted machine state (stack or memory bounds)."""

    def __init__(self, message: str, pc: int) -> None:
        super().__init__(f"{message} (pc=0x{pc:03X})")
        self.pc = pc


class StackOverflowError(VMIntegrityError):
    """CALL with all 16 stack slots in use."""


class StackUnderflowError(VMIntegrityError):
    """RET with an empty stack."""


class MemoryBoundsError(VMIntegrityError):
    """A memory access fell outside the 4 KB address space."""
