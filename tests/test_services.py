import pytest

from ch8.core.errors import ProgramLoadError
from ch8.core.types import MAX_PROGRAM_SIZE
from ch8.main import main
from ch8.shell.services.machine_factory import MachineFactory
from ch8.shell.services.rom_bytes_service import RomBytesService


@pytest.fixture
def rom(tmp_path):
    path = tmp_path / "test.ch8"
    # CLS; V0 = 5; JP 0x204; sprite byte pair
    path.write_bytes(bytes([0x00, 0xE0, 0x60, 0x05, 0x12, 0x04, 0xF0, 0x90]))
    return path


def test_read(rom):
    assert RomBytesService.read(str(rom))[:2] == b"\x00\xE0"


def test_read_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        RomBytesService.read(str(tmp_path / "missing.ch8"))


def test_read_rejects_oversize(tmp_path):
    path = tmp_path / "big.ch8"
    path.write_bytes(bytes(MAX_PROGRAM_SIZE + 2))
    with pytest.raises(ProgramLoadError):
        RomBytesService.read(str(path))


def test_read_rejects_empty(tmp_path):
    path = tmp_path / "empty.ch8"
    path.write_bytes(b"")
    with pytest.raises(ProgramLoadError):
        RomBytesService.read(str(path))


def test_describe(rom):
    info = RomBytesService.describe(str(rom))
    assert info.size == 8
    assert info.words == 4
    assert info.recognized == 3
    assert info.unrecognized == 1
    assert info.end_address == 0x207


def test_listing(rom):
    lines = RomBytesService.listing(rom.read_bytes())
    assert lines[0] == "0x200  00E0  ClearDisplay"
    assert lines[2] == "0x204  1204  Jump addr=0x204"
    assert lines[3].endswith("???")


def test_factory_create(rom):
    machine = MachineFactory.create(str(rom), seed=7)
    assert machine.program_counter == 0x200
    assert machine.memory[0x202] == 0x60
    machine.execute()
    machine.execute()
    assert machine.registers[0] == 5


def test_cli_info(rom, capsys):
    assert main([str(rom), "--info"]) == 0
    out = capsys.readouterr().out
    assert "Size" in out
    assert "0x207" in out


def test_cli_disassemble(rom, capsys):
    assert main([str(rom), "--disassemble"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[1] == "0x202  6005  SetVal x=V0 val=0x05"


def test_cli_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.ch8")]) == 1
    assert "not found" in capsys.readouterr().err


def test_cli_oversize_file(tmp_path, capsys):
    path = tmp_path / "big.ch8"
    path.write_bytes(bytes(MAX_PROGRAM_SIZE + 1))
    assert main([str(path)]) == 1
    assert "Error" in capsys.readouterr().err
