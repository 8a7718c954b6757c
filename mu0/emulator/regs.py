"""
mu0 Emulator — CPU Register Set

Register model:
  PC   : program counter, address of the next word to fetch
  ACC  : accumulator, signed; not wrapped (plain Python int)
  IR   : instruction register, the word being executed
  state: FETCH or EXECUTE, what the next cycle does
  steps: cycles executed so far (a FETCH and an EXECUTE are one cycle each)

Everything is zero / FETCH at reset.
"""

from enum import Enum


class State(Enum):
    FETCH = 'FETCH'
    EXECUTE = 'EXECUTE'


class Registers:
    """mu0 register set plus the fetch/execute state flag."""

    __slots__ = ('PC', 'ACC', 'IR', 'state', 'steps')

    def __init__(self):
        self.PC: int = 0
        self.ACC: int = 0
        self.IR: int = 0
        self.state: State = State.FETCH
        self.steps: int = 0

    def display(self) -> str:
        """One trace line. ACC is shown as 32-bit two's complement."""
        return (f"{self.steps:3d}: state = {self.state.value:>7s}, PC = {self.PC:04x}, "
                f"ACC = {self.ACC & 0xFFFFFFFF:04x}, IR = {self.IR:04x}")

    def reset(self):
        """Reset CPU to power-on state."""
        self.PC = 0
        self.ACC = 0
        self.IR = 0
        self.state = State.FETCH
        self.steps = 0
