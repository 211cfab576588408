"""
Instruction decoder for the CHIP-8 machine.

Translates a 16-bit big-endian instruction word into a typed
:class:`Operation`.  Operand fields are taken from fixed nibble positions::

    op1  = bits 15-12  (instruction family)
    x    = bits 11-8   (register)
    y    = bits 7-4    (register)
    n    = bits 3-0    (4-bit immediate)
    nn   = bits 7-0    (8-bit immediate)
    nnn  = bits 11-0   (12-bit address)

:func:`decode` is total: words that do not map to one of the 34 supported
operations decode to ``None`` rather than raising.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Callable, Iterator, Optional

from ch8.core.types import PROGRAM_OFFSET


class Operation:
    """Marker base class for decoded instructions."""

    __slots__ = ()


# ---------------------------------------------------------------------------
# Family 0x0 / 0x1 / 0x2 -- display and flow control
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClearDisplay(Operation):
    """00E0"""


@dataclass(frozen=True)
class Return(Operation):
    """00EE"""


@dataclass(frozen=True)
class Jump(Operation):
    """1NNN"""
    addr: int


@dataclass(frozen=True)
class Call(Operation):
    """2NNN"""
    addr: int


# ---------------------------------------------------------------------------
# Families 0x3 - 0x7, 0x9 -- skips and immediates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SkipEqVal(Operation):
    """3XNN"""
    x: int
    val: int


@dataclass(frozen=True)
class SkipNotEqVal(Operation):
    """4XNN"""
    x: int
    val: int


@dataclass(frozen=True)
class SkipEq(Operation):
    """5XY0"""
    x: int
    y: int


@dataclass(frozen=True)
class SetVal(Operation):
    """6XNN"""
    x: int
    val: int


@dataclass(frozen=True)
class AddVal(Operation):
    """7XNN"""
    x: int
    val: int


@dataclass(frozen=True)
class SkipNotEq(Operation):
    """9XY0"""
    x: int
    y: int


# ---------------------------------------------------------------------------
# Family 0x8 -- register arithmetic / logic
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Copy(Operation):
    """8XY0"""
    x: int
    y: int


@dataclass(frozen=True)
class Or(Operation):
    """8XY1"""
    x: int
    y: int


@dataclass(frozen=True)
class And(Operation):
    """8XY2"""
    x: int
    y: int


@dataclass(frozen=True)
class Xor(Operation):
    """8XY3"""
    x: int
    y: int


@dataclass(frozen=True)
class Add(Operation):
    """8XY4"""
    x: int
    y: int


@dataclass(frozen=True)
class Subtract(Operation):
    """8XY5"""
    x: int
    y: int


@dataclass(frozen=True)
class ShiftRight(Operation):
    """8XY6"""
    x: int


@dataclass(frozen=True)
class Difference(Operation):
    """8XY7"""
    x: int
    y: int


@dataclass(frozen=True)
class ShiftLeft(Operation):
    """8XYE"""
    x: int


# ---------------------------------------------------------------------------
# Families 0xA - 0xD -- index, offset jump, random, draw
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetIndex(Operation):
    """ANNN"""
    addr: int


@dataclass(frozen=True)
class JumpOffset(Operation):
    """BNNN"""
    addr: int


@dataclass(frozen=True)
class Rand(Operation):
    """CXNN"""
    x: int
    val: int


@dataclass(frozen=True)
class DrawSprite(Operation):
    """DXYN"""
    x: int
    y: int
    n: int


# ---------------------------------------------------------------------------
# Families 0xE / 0xF -- keys, timers, memory
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SkipKeyPressed(Operation):
    """EX9E"""
    x: int


@dataclass(frozen=True)
class SkipKeyNotPressed(Operation):
    """EXA1"""
    x: int


@dataclass(frozen=True)
class GetDelayTimer(Operation):
    """FX07"""
    x: int


@dataclass(frozen=True)
class GetKeyPress(Operation):
    """FX0A"""
    x: int


@dataclass(frozen=True)
class SetDelayTimer(Operation):
    """FX15"""
    x: int


@dataclass(frozen=True)
class SetSoundTimer(Operation):
    """FX18"""
    x: int


@dataclass(frozen=True)
class AddIndex(Operation):
    """FX1E"""
    x: int


@dataclass(frozen=True)
class SetIndexCharacter(Operation):
    """FX29"""
    x: int


@dataclass(frozen=True)
class StoreBCD(Operation):
    """FX33"""
    x: int


@dataclass(frozen=True)
class RegDump(Operation):
    """FX55"""
    x: int


@dataclass(frozen=True)
class RegLoad(Operation):
    """FX65"""
    x: int


ALL_OPERATIONS: tuple[type[Operation], ...] = (
    ClearDisplay, Return, Jump, Call, SkipEqVal, SkipNotEqVal, SkipEq,
    SetVal, AddVal, Copy, Or, And, Xor, Add, Subtract, ShiftRight,
    Difference, ShiftLeft, SkipNotEq, SetIndex, JumpOffset, Rand,
    DrawSprite, SkipKeyPressed, SkipKeyNotPressed, GetDelayTimer,
    GetKeyPress, SetDelayTimer, SetSoundTimer, AddIndex, SetIndexCharacter,
    StoreBCD, RegDump, RegLoad,
)


# ---------------------------------------------------------------------------
# Sub-selector tables (built once at module level)
# ---------------------------------------------------------------------------

# 8XYn: low nibble -> constructor(x, y)
_ALU_OPS: dict[int, Callable[[int, int], Operation]] = {
    0x0: Copy,
    0x1: Or,
    0x2: And,
    0x3: Xor,
    0x4: Add,
    0x5: Subtract,
    0x6: lambda x, y: ShiftRight(x),
    0x7: Difference,
    0xE: lambda x, y: ShiftLeft(x),
}

# EXnn: low byte -> constructor(x)
_KEY_OPS: dict[int, Callable[[int], Operation]] = {
    0x9E: SkipKeyPressed,
    0xA1: SkipKeyNotPressed,
}

# FXnn: low byte -> constructor(x)
_MISC_OPS: dict[int, Callable[[int], Operation]] = {
    0x07: GetDelayTimer,
    0x0A: GetKeyPress,
    0x15: SetDelayTimer,
    0x18: SetSoundTimer,
    0x1E: AddIndex,
    0x29: SetIndexCharacter,
    0x33: StoreBCD,
    0x55: RegDump,
    0x65: RegLoad,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def decode(word: int) -> Optional[Operation]:
    """Decode a 16-bit instruction word.

    Returns:
        The decoded :class:`Operation`, or ``None`` if *word* does not
        encode a supported instruction.
    """
    word &= 0xFFFF
    op1 = word >> 12
    x = (word >> 8) & 0xF
    y = (word >> 4) & 0xF
    n = word & 0xF
    nn = word & 0xFF
    nnn = word & 0xFFF

    if op1 == 0x0:
        if word == 0x00E0:
            return ClearDisplay()
        if word == 0x00EE:
            return Return()
        return None
    if op1 == 0x1:
        return Jump(nnn)
    if op1 == 0x2:
        return Call(nnn)
    if op1 == 0x3:
        return SkipEqVal(x, nn)
    if op1 == 0x4:
        return SkipNotEqVal(x, nn)
    if op1 == 0x5:
        return SkipEq(x, y) if n == 0 else None
    if op1 == 0x6:
        return SetVal(x, nn)
    if op1 == 0x7:
        return AddVal(x, nn)
    if op1 == 0x8:
        make_alu = _ALU_OPS.get(n)
        return make_alu(x, y) if make_alu is not None else None
    if op1 == 0x9:
        return SkipNotEq(x, y) if n == 0 else None
    if op1 == 0xA:
        return SetIndex(nnn)
    if op1 == 0xB:
        return JumpOffset(nnn)
    if op1 == 0xC:
        return Rand(x, nn)
    if op1 == 0xD:
        return DrawSprite(x, y, n)
    if op1 == 0xE:
        make_key = _KEY_OPS.get(nn)
        return make_key(x) if make_key is not None else None

    make_misc = _MISC_OPS.get(nn)
    return make_misc(x) if make_misc is not None else None


def disassemble(data: bytes, base: int = PROGRAM_OFFSET) -> Iterator[tuple[int, int, Optional[Operation]]]:
    """Decode a program image word by word.

    Yields ``(address, word, operation)`` for every complete big-endian
    word in *data*; a trailing odd byte is ignored.  *operation* is
    ``None`` for unrecognized words (typically sprite data).
    """
    for offset in range(0, len(data) - 1, 2):
        word = (data[offset] << 8) | data[offset + 1]
        yield base + offset, word, decode(word)


def format_operation(op: Optional[Operation]) -> str:
    """Render *op* as a short listing string, e.g. ``"Jump addr=0x228"``."""
    if op is None:
        return "???"
    operands = []
    for f in fields(op):
        value = getattr(op, f.name)
        if f.name == "addr":
            operands.append(f"addr=0x{value:03X}")
        elif f.name == "val":
            operands.append(f"val=0x{value:02X}")
        elif f.name in ("x", "y"):
            operands.append(f"{f.name}=V{value:X}")
        else:
            operands.append(f"{f.name}={value}")
    name = type(op).__name__
    return f"{name} {' '.join(operands)}" if operands else name
