"""Shared fixtures for the ch8 test suite."""

import random

import pytest

from ch8.core.machine import Machine


class FakeClock:
    """Manually advanced time source (seconds)."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def machine(clock):
    return Machine(clock=clock, rng=random.Random(1234))


@pytest.fixture
def load(machine):
    """Load big-endian instruction words at 0x200 and return the machine."""

    def _load(*words):
        machine.load_program(b"".join(w.to_bytes(2, "big") for w in words))
        machine.reset()
        return machine

    return _load
