import pytest

from ch8.core import decoder as ops
from ch8.core.decoder import ALL_OPERATIONS, decode, disassemble, format_operation


RECOGNIZED = [
    (0x00E0, ops.ClearDisplay()),
    (0x00EE, ops.Return()),
    (0x1ABC, ops.Jump(0xABC)),
    (0x2F00, ops.Call(0xF00)),
    (0x3A42, ops.SkipEqVal(0xA, 0x42)),
    (0x4B07, ops.SkipNotEqVal(0xB, 0x07)),
    (0x5120, ops.SkipEq(0x1, 0x2)),
    (0x6CFF, ops.SetVal(0xC, 0xFF)),
    (0x7D01, ops.AddVal(0xD, 0x01)),
    (0x8340, ops.Copy(0x3, 0x4)),
    (0x8341, ops.Or(0x3, 0x4)),
    (0x8342, ops.And(0x3, 0x4)),
    (0x8343, ops.Xor(0x3, 0x4)),
    (0x8344, ops.Add(0x3, 0x4)),
    (0x8345, ops.Subtract(0x3, 0x4)),
    (0x8346, ops.ShiftRight(0x3)),
    (0x8347, ops.Difference(0x3, 0x4)),
    (0x834E, ops.ShiftLeft(0x3)),
    (0x9560, ops.SkipNotEq(0x5, 0x6)),
    (0xA123, ops.SetIndex(0x123)),
    (0xB456, ops.JumpOffset(0x456)),
    (0xC70F, ops.Rand(0x7, 0x0F)),
    (0xD125, ops.DrawSprite(0x1, 0x2, 0x5)),
    (0xE29E, ops.SkipKeyPressed(0x2)),
    (0xE3A1, ops.SkipKeyNotPressed(0x3)),
    (0xF407, ops.GetDelayTimer(0x4)),
    (0xF50A, ops.GetKeyPress(0x5)),
    (0xF615, ops.SetDelayTimer(0x6)),
    (0xF718, ops.SetSoundTimer(0x7)),
    (0xF81E, ops.AddIndex(0x8)),
    (0xF929, ops.SetIndexCharacter(0x9)),
    (0xFA33, ops.StoreBCD(0xA)),
    (0xFB55, ops.RegDump(0xB)),
    (0xFC65, ops.RegLoad(0xC)),
]


@pytest.mark.parametrize("word,expected", RECOGNIZED, ids=lambda v: f"{v:04X}" if isinstance(v, int) else "")
def test_decode_recognized(word, expected):
    assert decode(word) == expected


def test_table_covers_every_operation_once():
    kinds = [type(op) for _, op in RECOGNIZED]
    assert len(kinds) == 34
    assert set(kinds) == set(ALL_OPERATIONS)


@pytest.mark.parametrize(
    "word",
    [
        0x0000,  # machine-code call (0NNN) is not supported
        0x0123,
        0x00E1,
        0x00FF,
        0x5121,  # 5XYn with n != 0
        0x912F,
        0x8128,  # unmapped ALU selectors
        0x812D,
        0x812F,
        0xE19F,
        0xE1A2,
        0xF100,
        0xF130,
        0xF175,
        0xFFFF,
    ],
)
def test_decode_unrecognized(word):
    assert decode(word) is None


def test_decode_is_total():
    recognized = sum(1 for word in range(0x10000) if decode(word) is not None)
    # 1NNN, 2NNN, ANNN, BNNN: 4096 each; 3/4/6/7/C: 4096 each; D: 4096;
    # 5XY0 / 9XY0: 256 each; 8XYn: 9 * 256; EX: 2 * 16; FX: 9 * 16; 00E0, 00EE.
    expected = 4 * 4096 + 5 * 4096 + 4096 + 2 * 256 + 9 * 256 + 2 * 16 + 9 * 16 + 2
    assert recognized == expected


def test_shift_ignores_y_operand():
    assert decode(0x8AB6) == ops.ShiftRight(0xA)
    assert decode(0x8ABE) == ops.ShiftLeft(0xA)


def test_disassemble_addresses_and_odd_tail():
    data = bytes([0x00, 0xE0, 0x12, 0x00, 0xFF])
    listing = list(disassemble(data))
    assert listing == [
        (0x200, 0x00E0, ops.ClearDisplay()),
        (0x202, 0x1200, ops.Jump(0x200)),
    ]


def test_disassemble_custom_base():
    [(addr, word, op)] = list(disassemble(b"\x60\x05", base=0x300))
    assert addr == 0x300
    assert word == 0x6005
    assert op == ops.SetVal(0, 5)


def test_format_operation():
    assert format_operation(ops.Jump(0x228)) == "Jump addr=0x228"
    assert format_operation(ops.SetVal(0xA, 0x3)) == "SetVal x=VA val=0x03"
    assert format_operation(ops.DrawSprite(1, 2, 5)) == "DrawSprite x=V1 y=V2 n=5"
    assert format_operation(ops.ClearDisplay()) == "ClearDisplay"
    assert format_operation(None) == "???"
