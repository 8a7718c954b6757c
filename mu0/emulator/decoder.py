"""
mu0 Emulator — Instruction Decoder

Splits the instruction register into (Opcode, operand) using the shared
table in mu0.isa. Words whose top nibble is 8..15 have no instruction and
raise IllegalOpcode.
"""

from typing import Tuple

from ..isa import Opcode, decode
from .memory import EmulatorError


class IllegalOpcode(EmulatorError):
    """Opcode field outside the eight defined instructions."""
    def __init__(self, word: int, address: int = -1):
        self.word = word
        self.address = address
        where = f" at 0x{address:03x}" if address >= 0 else ""
        super().__init__(f"Illegal opcode {word >> 12:x} in word {word:04x}{where}")


def decode_instruction(word: int, address: int = -1) -> Tuple[Opcode, int]:
    """Decode a word into (opcode, operand)."""
    code, operand = decode(word)
    try:
        return Opcode(code), operand
    except ValueError:
        raise IllegalOpcode(word, address) from None
