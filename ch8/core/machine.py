"""
Machine -- the CHIP-8 CPU, memory and timers.

The machine owns every piece of mutable interpreter state: 4 KB of memory,
sixteen 8-bit registers (``VF`` doubles as the carry / borrow / collision
flag), the 12-bit index register, a 16-deep return stack, the delay and
sound timers, and the :class:`FrameBuffer` / :class:`KeyState` devices.

Timing
------
Two independent clocks are driven from :meth:`tick`:

* the **instruction clock** (500 Hz) executes one instruction per period;
* the **timer clock** (60 Hz) decrements the delay and sound timers.

The host calls :meth:`tick` at least as often as the instruction clock.
By default at most one instruction executes per call, so a host that
falls behind slows the emulated CPU down instead of bursting.  With
``catch_up=True`` every overdue period is executed (bounded to one
second's worth per call).

Key wait
--------
FX0A does not block the host.  It moves the machine into
:attr:`RunState.AWAITING_KEY` with the program counter left on the FX0A
instruction; each later :meth:`execute` polls :class:`KeyState` for a
release edge.  Timers keep running while the machine waits.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional

from ch8.core import decoder as ops
from ch8.core.decoder import Operation, decode
from ch8.core.errors import (
    MemoryBoundsError,
    ProgramLoadError,
    StackOverflowError,
    StackUnderflowError,
    VMIntegrityError,
)
from ch8.core.frame_buffer import FrameBuffer
from ch8.core.glyphs import GLYPHS, glyph_address
from ch8.core.key_state import KeyState
from ch8.core.types import (
    FLAG_REGISTER,
    INSTRUCTION_HZ,
    MAX_PROGRAM_SIZE,
    MEMORY_SIZE,
    PROGRAM_OFFSET,
    REGISTER_COUNT,
    STACK_DEPTH,
    TIMER_HZ,
    RunState,
)

logger = logging.getLogger(__name__)

INSTRUCTION_PERIOD: float = 1.0 / INSTRUCTION_HZ
TIMER_PERIOD: float = 1.0 / TIMER_HZ

# Upper bound on periods replayed by a single catch-up tick.
_MAX_CATCH_UP_INSTRUCTIONS: int = INSTRUCTION_HZ
_MAX_CATCH_UP_TIMER_STEPS: int = TIMER_HZ


def _next_deadline(deadline: float, now: float, period: float) -> float:
    """Advance *deadline* by one *period*, re-anchoring at *now* if the
    schedule has fallen behind."""
    deadline += period
    if deadline <= now:
        deadline = now + period
    return deadline


class Machine:
    """CHIP-8 interpreter state and execute cycle.

    Parameters
    ----------
    clock:
        Zero-argument callable returning the current time in seconds.
        Used when :meth:`tick` is called without an explicit timestamp.
        Defaults to :func:`time.monotonic`.
    rng:
        Random source for CXNN.  Defaults to a fresh :class:`random.Random`.
    catch_up:
        When ``True`` :meth:`tick` executes every overdue instruction and
        timer period instead of at most one of each.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        catch_up: bool = False,
    ) -> None:
        self._clock = clock
        self._rng: random.Random = rng if rng is not None else random.Random()
        self.catch_up: bool = catch_up

        # Devices.
        self.frame_buffer: FrameBuffer = FrameBuffer()
        self.key_state: KeyState = KeyState()

        # Memory and registers.
        self.memory: bytearray = bytearray(MEMORY_SIZE)
        self.registers: bytearray = bytearray(REGISTER_COUNT)
        self.stack: list[int] = [0] * STACK_DEPTH
        self.stack_pointer: int = 0
        self.program_counter: int = PROGRAM_OFFSET
        self.index_register: int = 0

        # Timers.
        self.delay_timer: int = 0
        self.sound_timer: int = 0
        self.next_instruction_deadline: float = 0.0
        self.next_timer_deadline: float = 0.0

        # Run state.
        self.run_state: RunState = RunState.RUNNING
        self.key_target: Optional[int] = None
        self.halted: bool = False
        self.instruction_count: int = 0

        self._program: bytes = b""
        self._anchored: bool = False
        # Address of the instruction currently being executed.
        self._op_pc: int = PROGRAM_OFFSET

        self._dispatch: dict[type, Callable] = self._build_dispatch_table()
        self.reset()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Return to the power-on state, keeping the loaded program."""
        self.memory[:] = bytes(MEMORY_SIZE)
        self.memory[: len(GLYPHS)] = GLYPHS
        self.memory[PROGRAM_OFFSET : PROGRAM_OFFSET + len(self._program)] = self._program

        self.registers[:] = bytes(REGISTER_COUNT)
        self.stack = [0] * STACK_DEPTH
        self.stack_pointer = 0
        self.program_counter = PROGRAM_OFFSET
        self.index_register = 0
        self.delay_timer = 0
        self.sound_timer = 0

        self.run_state = RunState.RUNNING
        self.key_target = None
        self.halted = False
        self.instruction_count = 0

        self.frame_buffer.clear()
        self.key_state.disarm()

        # Deadlines are anchored by the next tick, in whatever time base
        # the host uses.
        self.next_instruction_deadline = 0.0
        self.next_timer_deadline = 0.0
        self._anchored = False

    def load_program(self, image: bytes) -> None:
        """Copy a program image into memory at 0x200.

        Raises:
            ProgramLoadError: If *image* does not fit in the 3584 bytes
                above the program offset.  Memory is left untouched.
        """
        if len(image) > MAX_PROGRAM_SIZE:
            raise ProgramLoadError(
                f"program image is {len(image)} bytes; at most "
                f"{MAX_PROGRAM_SIZE} bytes fit above 0x{PROGRAM_OFFSET:03X}"
            )
        self.memory[PROGRAM_OFFSET:] = bytes(MAX_PROGRAM_SIZE)
        self.memory[PROGRAM_OFFSET : PROGRAM_OFFSET + len(image)] = image
        self._program = bytes(image)
        logger.info("Loaded %d-byte program at 0x%03X", len(image), PROGRAM_OFFSET)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def program_size(self) -> int:
        return len(self._program)

    @property
    def sound_active(self) -> bool:
        """``True`` while the tone should be sounding."""
        return self.sound_timer > 0

    @property
    def awaiting_key(self) -> bool:
        return self.run_state == RunState.AWAITING_KEY

    # ------------------------------------------------------------------
    # Clocks
    # ------------------------------------------------------------------

    def tick(self, now: Optional[float] = None) -> None:
        """Advance both clocks to *now* (seconds; defaults to the injected
        clock).

        Executes at most one instruction (unless :attr:`catch_up` is set)
        and then, if due, one timer step.  The first tick after
        construction or :meth:`reset` anchors both clocks at *now*, so
        both steps are due on that call.  A halted machine ignores ticks.
        """
        if self.halted:
            return
        if now is None:
            now = self._clock()
        if not self._anchored:
            self.next_instruction_deadline = now
            self.next_timer_deadline = now
            self._anchored = True

        if now >= self.next_instruction_deadline:
            if self.catch_up:
                self._catch_up_instructions(now)
            else:
                self.execute()
                self.next_instruction_deadline = _next_deadline(
                    self.next_instruction_deadline, now, INSTRUCTION_PERIOD
                )

        if now >= self.next_timer_deadline:
            if self.catch_up:
                self._catch_up_timers(now)
            else:
                self._decrement_timers()
                self.next_timer_deadline = _next_deadline(
                    self.next_timer_deadline, now, TIMER_PERIOD
                )

    def _catch_up_instructions(self, now: float) -> None:
        executed = 0
        while now >= self.next_instruction_deadline and executed < _MAX_CATCH_UP_INSTRUCTIONS:
            self.execute()
            self.next_instruction_deadline += INSTRUCTION_PERIOD
            executed += 1
        if now >= self.next_instruction_deadline:
            logger.debug("Instruction clock fell behind by more than %d periods; re-anchoring", executed)
            self.next_instruction_deadline = now + INSTRUCTION_PERIOD

    def _catch_up_timers(self, now: float) -> None:
        steps = 0
        while now >= self.next_timer_deadline and steps < _MAX_CATCH_UP_TIMER_STEPS:
            self._decrement_timers()
            self.next_timer_deadline += TIMER_PERIOD
            steps += 1
        if now >= self.next_timer_deadline:
            self.next_timer_deadline = now + TIMER_PERIOD

    def _decrement_timers(self) -> None:
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    # ------------------------------------------------------------------
    # Execute cycle
    # ------------------------------------------------------------------

    def execute(self) -> None:
        """Run one instruction slot.

        Raises:
            VMIntegrityError: On stack overflow / underflow or an
                out-of-range memory access.  The machine is halted first.
        """
        if self.halted:
            return
        try:
            self._step()
        except VMIntegrityError as exc:
            self.halted = True
            logger.error("Machine halted: %s", exc)
            raise

    def _step(self) -> None:
        if self.run_state == RunState.AWAITING_KEY:
            self._poll_key_wait()
            return

        pc = self.program_counter
        self._op_pc = pc
        if not 0 <= pc <= MEMORY_SIZE - 2:
            raise MemoryBoundsError("instruction fetch outside memory", pc)

        word = (self.memory[pc] << 8) | self.memory[pc + 1]
        op = decode(word)
        self.program_counter = pc + 2
        self.instruction_count += 1

        if op is None:
            logger.debug("Unrecognized instruction 0x%04X at 0x%03X", word, pc)
            return
        self._dispatch[type(op)](op)

    def _build_dispatch_table(self) -> dict[type, Callable[[Operation], None]]:
        """Map every operation type to its handler."""
        return {
            ops.ClearDisplay: self._clear_display,
            ops.Return: self._return,
            ops.Jump: self._jump,
            ops.Call: self._call,
            ops.SkipEqVal: self._skip_eq_val,
            ops.SkipNotEqVal: self._skip_not_eq_val,
            ops.SkipEq: self._skip_eq,
            ops.SkipNotEq: self._skip_not_eq,
            ops.SetVal: self._set_val,
            ops.AddVal: self._add_val,
            ops.Copy: self._copy,
            ops.Or: self._or,
            ops.And: self._and,
            ops.Xor: self._xor,
            ops.Add: self._add,
            ops.Subtract: self._subtract,
            ops.ShiftRight: self._shift_right,
            ops.Difference: self._difference,
            ops.ShiftLeft: self._shift_left,
            ops.SetIndex: self._set_index,
            ops.JumpOffset: self._jump_offset,
            ops.Rand: self._rand,
            ops.DrawSprite: self._draw_sprite,
            ops.SkipKeyPressed: self._skip_key_pressed,
            ops.SkipKeyNotPressed: self._skip_key_not_pressed,
            ops.GetDelayTimer: self._get_delay_timer,
            ops.GetKeyPress: self._get_key_press,
            ops.SetDelayTimer: self._set_delay_timer,
            ops.SetSoundTimer: self._set_sound_timer,
            ops.AddIndex: self._add_index,
            ops.SetIndexCharacter: self._set_index_character,
            ops.StoreBCD: self._store_bcd,
            ops.RegDump: self._reg_dump,
            ops.RegLoad: self._reg_load,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.program_counter += 2

    def _check_memory(self, start: int, length: int, what: str) -> None:
        if start < 0 or start + length > MEMORY_SIZE:
            raise MemoryBoundsError(
                f"{what} at 0x{start:04X}+{length} outside memory", self._op_pc
            )

    # ------------------------------------------------------------------
    # Flow control
    # ------------------------------------------------------------------

    def _clear_display(self, op: ops.ClearDisplay) -> None:
        self.frame_buffer.clear()

    def _return(self, op: ops.Return) -> None:
        if self.stack_pointer == 0:
            raise StackUnderflowError("return with empty stack", self._op_pc)
        self.stack_pointer -= 1
        self.program_counter = self.stack[self.stack_pointer]

    def _jump(self, op: ops.Jump) -> None:
        self.program_counter = op.addr

    def _call(self, op: ops.Call) -> None:
        if self.stack_pointer >= STACK_DEPTH:
            raise StackOverflowError(f"call nesting deeper than {STACK_DEPTH}", self._op_pc)
        self.stack[self.stack_pointer] = self.program_counter
        self.stack_pointer += 1
        self.program_counter = op.addr

    def _jump_offset(self, op: ops.JumpOffset) -> None:
        self.program_counter = op.addr + self.registers[0]

    def _skip_eq_val(self, op: ops.SkipEqVal) -> None:
        self._skip_if(self.registers[op.x] == op.val)

    def _skip_not_eq_val(self, op: ops.SkipNotEqVal) -> None:
        self._skip_if(self.registers[op.x] != op.val)

    def _skip_eq(self, op: ops.SkipEq) -> None:
        self._skip_if(self.registers[op.x] == self.registers[op.y])

    def _skip_not_eq(self, op: ops.SkipNotEq) -> None:
        self._skip_if(self.registers[op.x] != self.registers[op.y])

    # ------------------------------------------------------------------
    # Register arithmetic
    # ------------------------------------------------------------------

    def _set_val(self, op: ops.SetVal) -> None:
        self.registers[op.x] = op.val

    def _add_val(self, op: ops.AddVal) -> None:
        # No carry flag.
        self.registers[op.x] = (self.registers[op.x] + op.val) & 0xFF

    def _copy(self, op: ops.Copy) -> None:
        self.registers[op.x] = self.registers[op.y]

    def _or(self, op: ops.Or) -> None:
        self.registers[op.x] |= self.registers[op.y]

    def _and(self, op: ops.And) -> None:
        self.registers[op.x] &= self.registers[op.y]

    def _xor(self, op: ops.Xor) -> None:
        self.registers[op.x] ^= self.registers[op.y]

    def _add(self, op: ops.Add) -> None:
        total = self.registers[op.x] + self.registers[op.y]
        self.registers[op.x] = total & 0xFF
        self.registers[FLAG_REGISTER] = 1 if total > 0xFF else 0

    def _subtract(self, op: ops.Subtract) -> None:
        vx, vy = self.registers[op.x], self.registers[op.y]
        self.registers[op.x] = (vx - vy) & 0xFF
        self.registers[FLAG_REGISTER] = 1 if vx >= vy else 0

    def _difference(self, op: ops.Difference) -> None:
        vx, vy = self.registers[op.x], self.registers[op.y]
        self.registers[op.x] = (vy - vx) & 0xFF
        self.registers[FLAG_REGISTER] = 1 if vy >= vx else 0

    def _shift_right(self, op: ops.ShiftRight) -> None:
        val = self.registers[op.x]
        self.registers[op.x] = val >> 1
        self.registers[FLAG_REGISTER] = val & 0x01

    def _shift_left(self, op: ops.ShiftLeft) -> None:
        val = self.registers[op.x]
        self.registers[op.x] = (val << 1) & 0xFF
        self.registers[FLAG_REGISTER] = 1 if val & 0x80 else 0

    def _rand(self, op: ops.Rand) -> None:
        self.registers[op.x] = self._rng.randrange(256) & op.val

    # ------------------------------------------------------------------
    # Index register and memory
    # ------------------------------------------------------------------

    def _set_index(self, op: ops.SetIndex) -> None:
        self.index_register = op.addr

    def _add_index(self, op: ops.AddIndex) -> None:
        self.index_register = (self.index_register + self.registers[op.x]) & 0xFFFF

    def _set_index_character(self, op: ops.SetIndexCharacter) -> None:
        self.index_register = glyph_address(self.registers[op.x])

    def _store_bcd(self, op: ops.StoreBCD) -> None:
        i = self.index_register
        self._check_memory(i, 3, "BCD store")
        val = self.registers[op.x]
        self.memory[i] = val // 100
        self.memory[i + 1] = (val // 10) % 10
        self.memory[i + 2] = val % 10

    def _reg_dump(self, op: ops.RegDump) -> None:
        i = self.index_register
        count = op.x + 1
        self._check_memory(i, count, "register dump")
        self.memory[i : i + count] = self.registers[:count]

    def _reg_load(self, op: ops.RegLoad) -> None:
        i = self.index_register
        count = op.x + 1
        self._check_memory(i, count, "register load")
        self.registers[:count] = self.memory[i : i + count]

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def _draw_sprite(self, op: ops.DrawSprite) -> None:
        i = self.index_register
        self._check_memory(i, op.n, "sprite read")
        collision = self.frame_buffer.draw_sprite(
            self.registers[op.x], self.registers[op.y], self.memory[i : i + op.n]
        )
        self.registers[FLAG_REGISTER] = 1 if collision else 0

    # ------------------------------------------------------------------
    # Keys and timers
    # ------------------------------------------------------------------

    def _skip_key_pressed(self, op: ops.SkipKeyPressed) -> None:
        self._skip_if(self.key_state.is_pressed(self.registers[op.x]))

    def _skip_key_not_pressed(self, op: ops.SkipKeyNotPressed) -> None:
        self._skip_if(not self.key_state.is_pressed(self.registers[op.x]))

    def _get_key_press(self, op: ops.GetKeyPress) -> None:
        # Stay on FX0A until a release is observed.
        self.program_counter = self._op_pc
        self.run_state = RunState.AWAITING_KEY
        self.key_target = op.x
        self.key_state.arm_release_tracking()
        logger.debug("Waiting for key release into V%X", op.x)

    def _poll_key_wait(self) -> None:
        key = self.key_state.last_released()
        if key is None:
            return
        self.registers[self.key_target] = int(key)
        logger.debug("Key %X released into V%X", key, self.key_target)
        self.key_state.disarm()
        self.run_state = RunState.RUNNING
        self.key_target = None
        self.program_counter += 2

    def _get_delay_timer(self, op: ops.GetDelayTimer) -> None:
        self.registers[op.x] = self.delay_timer

    def _set_delay_timer(self, op: ops.SetDelayTimer) -> None:
        self.delay_timer = self.registers[op.x]

    def _set_sound_timer(self, op: ops.SetSoundTimer) -> None:
        self.sound_timer = self.registers[op.x]

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"pc=0x{self.program_counter:03X}, "
            f"i=0x{self.index_register:03X}, "
            f"sp={self.stack_pointer}, "
            f"state={self.run_state.name}, "
            f"halted={self.halted})"
        )
