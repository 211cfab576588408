"""
ch8 -- CHIP-8 interpreter.

Command-line entry point.  Parses arguments, creates the machine from a
program image, and launches the pygame window.

Usage examples::

    # Run a program
    ch8 roms/pong.ch8

    # Larger window, no sound
    ch8 roms/pong.ch8 --scale 20 --no-audio

    # Print image metadata / a disassembly listing without launching
    ch8 roms/pong.ch8 --info
    ch8 roms/pong.ch8 --disassemble
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from ch8.core.errors import ProgramLoadError, VMIntegrityError
from ch8.shell.services.machine_factory import MachineFactory
from ch8.shell.services.rom_bytes_service import RomBytesService


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ch8",
        description="CHIP-8 interpreter.  Load a program image and run it in a pygame window.",
    )

    parser.add_argument(
        "rom",
        help="Path to the program image (raw binary, loaded at 0x200).",
    )

    parser.add_argument(
        "--scale", "-s",
        type=int,
        default=15,
        help="Display scale factor (1-32).  Default: 15.",
    )

    parser.add_argument(
        "--no-audio",
        action="store_true",
        default=False,
        help="Disable the tone generator.",
    )

    parser.add_argument(
        "--catch-up",
        action="store_true",
        default=False,
        help=(
            "Execute every overdue instruction when the host loop falls "
            "behind, instead of at most one per loop iteration."
        ),
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random-number instruction (reproducible runs).",
    )

    parser.add_argument(
        "--info",
        action="store_true",
        default=False,
        help="Print program metadata and exit without launching.",
    )

    parser.add_argument(
        "--disassemble",
        action="store_true",
        default=False,
        help="Print a disassembly listing and exit without launching.",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG).",
    )

    return parser


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging(verbosity: int) -> None:
    """Set up the root logger based on requested verbosity."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ---------------------------------------------------------------------------
# Inspection modes
# ---------------------------------------------------------------------------

def _print_rom_info(rom_path: str) -> int:
    """Print human-readable metadata for a program image."""
    try:
        info = MachineFactory.describe(rom_path)
    except (OSError, ProgramLoadError) as exc:
        print(f"Error reading program: {exc}", file=sys.stderr)
        return 1

    print("CHIP-8 Program Information")
    print("=" * 40)
    for key, value in info.items():
        label = key.replace("_", " ").title()
        if key == "end_address":
            value = f"0x{value:03X}"
        print(f"  {label:20s}: {value}")
    print("=" * 40)
    return 0


def _print_listing(rom_path: str) -> int:
    """Print a disassembly listing of a program image."""
    try:
        data = RomBytesService.read(rom_path)
    except (OSError, ProgramLoadError) as exc:
        print(f"Error reading program: {exc}", file=sys.stderr)
        return 1

    for line in RomBytesService.listing(data):
        print(line)
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` to use ``sys.argv``.

    Returns
    -------
    int
        Exit code (0 on success).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    logger = logging.getLogger("ch8.main")

    rom_path: str = os.path.expanduser(args.rom)
    if not os.path.isfile(rom_path):
        print(f"Error: program file not found: {rom_path}", file=sys.stderr)
        return 1

    if args.info:
        return _print_rom_info(rom_path)
    if args.disassemble:
        return _print_listing(rom_path)

    try:
        machine = MachineFactory.create(rom_path, catch_up=args.catch_up, seed=args.seed)
    except (OSError, ProgramLoadError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # pygame is only needed once a window is actually opened.
    from ch8.platform.window import Window

    logger.info("Starting emulation ...")
    try:
        window = Window(machine, scale=args.scale, enable_audio=not args.no_audio)
        window.run()
    except VMIntegrityError as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        logger.exception("Fatal error during emulation")
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1

    logger.info("Exited cleanly")
    return 0


if __name__ == "__main__":
    sys.exit(main())
