"""
mu0 Instruction Set — Word Format + Opcode Table

Shared by the assembler (encoding) and the emulator (decoding), so there is
exactly one table of mnemonics and opcode numbers.

Word format (16 bits):
    15      12 11                     0
    ┌─────────┬────────────────────────┐
    │ opcode  │        operand         │
    └─────────┴────────────────────────┘

  opcode  : 0..7 (LDA STO ADD SUB JMP JGE JNE STP)
  operand : 12-bit memory address (0x000–0xFFF)

Address 0xFFF is not storage: it is the memory-mapped I/O cell.
A read there consumes one input character, a write prints one character.

Machine code text format: one word per line, 4 lowercase hex digits.
"""

from enum import IntEnum
from typing import Optional, Tuple

__all__ = [
    'Opcode', 'IO_ADDRESS', 'LINE_SIZE', 'WORD_MASK', 'OPERAND_MASK',
    'LABEL_C', 'NUM_LITERAL_C', 'CHAR_LITERAL_C', 'COMMENT_C',
    'encode', 'decode', 'opcode_of', 'operand_of', 'format_word',
    'parse_int', 'disassemble_word',
]


# ──────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────

WORD_MASK = 0xFFFF
OPERAND_MASK = 0xFFF
OPCODE_SHIFT = 12

IO_ADDRESS = 0xFFF   # memory-mapped character I/O

LINE_SIZE = 90       # longest source line the toolchain is written for

# Source line markers (first non-blank character of a line)
LABEL_C = ':'
NUM_LITERAL_C = '#'
CHAR_LITERAL_C = '$'
COMMENT_C = ';'


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────

class Opcode(IntEnum):
    """The eight mu0 instructions, valued by their 4-bit opcode field.

    Declaration order is the order the assembler tries mnemonics in.
    """
    LDA = 0   # ACC <- mem[operand]
    STO = 1   # mem[operand] <- ACC
    ADD = 2   # ACC <- ACC + mem[operand]
    SUB = 3   # ACC <- ACC - mem[operand]
    JMP = 4   # PC <- operand
    JGE = 5   # PC <- operand if ACC >= 0
    JNE = 6   # PC <- operand if ACC != 0
    STP = 7   # halt

    @property
    def mnemonic(self) -> str:
        return self.name

    @property
    def takes_operand(self) -> bool:
        return self is not Opcode.STP

    @classmethod
    def from_mnemonic(cls, text: str) -> Optional['Opcode']:
        """Match the first three characters of text against the table.

        Case-sensitive. Returns None when nothing matches.
        """
        head = text[:3]
        for op in cls:
            if head == op.mnemonic:
                return op
        return None


# ──────────────────────────────────────────────
# Word encode / decode
# ──────────────────────────────────────────────

def encode(opcode: int, operand: int) -> int:
    """Pack an opcode and a 12-bit operand into one word."""
    return ((int(opcode) & 0xF) << OPCODE_SHIFT) | (operand & OPERAND_MASK)


def opcode_of(word: int) -> int:
    """Opcode field (high nibble). Not range checked, may exceed 7."""
    return word >> OPCODE_SHIFT


def operand_of(word: int) -> int:
    """Operand field (low 12 bits)."""
    return word & OPERAND_MASK


def decode(word: int) -> Tuple[int, int]:
    """Split a word into (opcode, operand)."""
    return opcode_of(word), operand_of(word)


def format_word(word: int) -> str:
    """Render a word the way the machine code file stores it: 4 lowercase hex digits.

    Values wider than 16 bits (e.g. large '#' literals) are truncated.
    """
    return f"{word & WORD_MASK:04x}"


def disassemble_word(word: int) -> str:
    """Best-effort mnemonic form of a word, for the assembler listing."""
    code, operand = decode(word & WORD_MASK)
    try:
        op = Opcode(code)
    except ValueError:
        return f"??? {word & WORD_MASK:04x}"
    if not op.takes_operand:
        return op.mnemonic
    return f"{op.mnemonic} 0x{operand:03x}"


# ──────────────────────────────────────────────
# Integer parsing
# ──────────────────────────────────────────────

_DIGITS = '0123456789abcdefghijklmnopqrstuvwxyz'


def _digit_value(ch: str) -> int:
    idx = _DIGITS.find(ch.lower())
    return idx if idx >= 0 else 99


def parse_int(text: str) -> Tuple[int, int]:
    """Parse an integer the way C's strtol(text, &end, 0) does.

    Leading whitespace and a sign are skipped. '0x'/'0X' selects hex, a
    leading '0' selects octal, anything else is decimal. The longest valid
    prefix is used.

    Returns (value, consumed). consumed == 0 means no digits were found and
    the value is 0 (strtol's behaviour for e.g. '', 'abc' or '#5').
    """
    i = 0
    n = len(text)
    while i < n and text[i].isspace():
        i += 1
    sign = 1
    if i < n and text[i] in '+-':
        if text[i] == '-':
            sign = -1
        i += 1

    base = 10
    if i < n and text[i] == '0':
        if text[i + 1:i + 2] in ('x', 'X') and i + 2 < n \
                and _digit_value(text[i + 2]) < 16:
            base = 16
            i += 2
        else:
            base = 8

    start = i
    value = 0
    while i < n and _digit_value(text[i]) < base:
        value = value * base + _digit_value(text[i])
        i += 1

    if i == start:
        return 0, 0
    return sign * value, i
