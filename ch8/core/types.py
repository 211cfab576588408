"""
Core enumerations and constants for the CHIP-8 machine.
"""

from enum import IntEnum


MEMORY_SIZE: int = 4096
PROGRAM_OFFSET: int = 0x200
MAX_PROGRAM_SIZE: int = MEMORY_SIZE - PROGRAM_OFFSET

REGISTER_COUNT: int = 16
STACK_DEPTH: int = 16
FLAG_REGISTER: int = 0xF

INSTRUCTION_HZ: int = 500
TIMER_HZ: int = 60


class Key(IntEnum):
    """The 16 keys of the hexadecimal keypad.

    Physical layout::

        1 2 3 C
        4 5 6 D
        7 8 9 E
        A 0 B F
    """

    K0 = 0x0
    K1 = 0x1
    K2 = 0x2
    K3 = 0x3
    K4 = 0x4
    K5 = 0x5
    K6 = 0x6
    K7 = 0x7
    K8 = 0x8
    K9 = 0x9
    KA = 0xA
    KB = 0xB
    KC = 0xC
    KD = 0xD
    KE = 0xE
    KF = 0xF

    @staticmethod
    def is_valid(key):
        return 0 <= key < len(Key)


class RunState(IntEnum):
    RUNNING = 0
    AWAITING_KEY = 1
