"""
mu0 Two-Pass Assembler.

Assembles mu0 assembly text into machine words, written out as one
4-digit lowercase hex number per line.

Input:  Assembly text
Output: List of 16-bit words, or the hex text the emulator loads

Each line is handled according to its first non-blank character:
  ;        comment, ignored
  (blank)  ignored
  :name    label definition, names the address of the next word
  #n       literal word, n in C notation (123, 0x7b, 0173, -1)
  $c       literal word holding the character code of c
  LDA/STO/ADD/SUB/JMP/JGE/JNE n|:label
  STP      halt (operand 0)

How the two-pass algorithm works:
  Pass 1: Walk all lines, give every word-producing line the next address,
          and record each label at the address it precedes (labels.py).
  Pass 2: Walk the lines again and encode each one. Label operands are
          looked up in the finished table, so forward references work.

A line that is neither a directive nor starts with a known mnemonic is
reported and skipped. Pass 1 has already counted it, so the output is one
word short of the addresses the labels were computed with.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..isa import (
    Opcode, LABEL_C, NUM_LITERAL_C, CHAR_LITERAL_C, COMMENT_C,
    OPERAND_MASK, WORD_MASK, encode, format_word, parse_int, disassemble_word,
)
from .labels import LabelTable, build_label_table

__all__ = ['Assembler', 'AssemblerError', 'UnknownLabelError', 'AsmLine',
           'assemble', 'assemble_to_hex']

log = logging.getLogger(__name__)


class AssemblerError(Exception):
    """Raised on assembly errors."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


class UnknownLabelError(AssemblerError):
    """An operand refers to a label that no line defines. Always fatal."""
    def __init__(self, label: str, line_num: int = 0, line_text: str = ""):
        self.label = label
        super().__init__(f"Unknown label \"{label}\"", line_num, line_text)


# ──────────────────────────────────────────────
# Line Parser
# ──────────────────────────────────────────────

BLANK = 'BLANK'
COMMENT = 'COMMENT'
LABEL = 'LABEL'
NUMBER = 'NUMBER'
CHAR = 'CHAR'
INSTR = 'INSTR'


@dataclass
class AsmLine:
    """One source line, classified by its first non-blank character."""
    kind: str
    text: str = ""              # line with leading whitespace removed
    label: Optional[str] = None
    line_num: int = 0
    raw: str = ""
    address: Optional[int] = None   # set by pass 1 for word-producing lines

    @property
    def is_label(self) -> bool:
        return self.kind == LABEL

    @property
    def occupies_word(self) -> bool:
        return self.kind in (NUMBER, CHAR, INSTR)


def _split_lines(source: str) -> List[str]:
    """Split on '\\n' only, keeping the terminators (a '$' at end of line needs it)."""
    parts = source.split('\n')
    lines = [p + '\n' for p in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _parse_line(raw: str, line_num: int) -> AsmLine:
    text = raw.lstrip()
    if not text:
        return AsmLine(BLANK, line_num=line_num, raw=raw)

    first = text[0]
    if first == COMMENT_C:
        return AsmLine(COMMENT, text, line_num=line_num, raw=raw)
    if first == LABEL_C:
        parts = text[1:].split(None, 1)
        name = parts[0] if parts else ""
        return AsmLine(LABEL, text, label=name, line_num=line_num, raw=raw)
    if first == NUM_LITERAL_C:
        return AsmLine(NUMBER, text, line_num=line_num, raw=raw)
    if first == CHAR_LITERAL_C:
        return AsmLine(CHAR, text, line_num=line_num, raw=raw)
    return AsmLine(INSTR, text, line_num=line_num, raw=raw)


# ──────────────────────────────────────────────
# The Assembler
# ──────────────────────────────────────────────

class Assembler:
    """Two-pass mu0 assembler.

    Usage:
        asm = Assembler()
        words = asm.assemble(source_text)
        text = asm.to_hex()
    """

    def __init__(self):
        self.labels: LabelTable = LabelTable()
        self.words: List[int] = []            # emitted machine words, in order
        self.warnings: List[str] = []         # one entry per ignored line
        self.size: int = 0                    # addresses reserved by pass 1
        self._lines: List[AsmLine] = []
        self._emitted: List[Tuple[AsmLine, int]] = []  # (line, word) for listings

    def assemble(self, source: str) -> List[int]:
        """Assemble source text into a list of words.

        Raises UnknownLabelError if an operand names an undefined label.
        Unrecognised lines are logged, added to ``self.warnings`` and skipped.
        """
        self.labels = LabelTable()
        self.words = []
        self.warnings = []
        self._emitted = []
        self._lines = [_parse_line(raw, i) for i, raw in enumerate(_split_lines(source), 1)]

        self.labels, self.size = build_label_table(self._lines)
        self._pass2()

        if len(self.words) != self.size:
            log.warning("Emitted %d words but reserved %d addresses; labels after "
                        "the first ignored line are off", len(self.words), self.size)
        return self.words

    def _pass2(self):
        """Pass 2: encode every word-producing line using the finished label table."""
        for line in self._lines:
            if not line.occupies_word:
                continue
            word = self._encode_line(line)
            if word is None:
                msg = f"Ignoring bad line: {line.raw.rstrip()}"
                self.warnings.append(f"Line {line.line_num}: {msg}")
                log.warning("Line %d: %s", line.line_num, msg)
                continue
            self.words.append(word)
            self._emitted.append((line, word))

    def _encode_line(self, line: AsmLine) -> Optional[int]:
        """Encode one word-producing line. None means the line is not valid mu0."""
        if line.kind == NUMBER:
            value, _ = parse_int(line.text[1:])
            if not 0 <= value <= WORD_MASK:
                log.debug("Line %d: literal %d truncated to 16 bits", line.line_num, value)
            return value & WORD_MASK

        if line.kind == CHAR:
            # Character straight after the marker; end of input has none.
            return ord(line.text[1]) if len(line.text) > 1 else 0

        op = Opcode.from_mnemonic(line.text)
        if op is None:
            return None
        return self._encode_instruction(op, line)

    def _encode_instruction(self, op: Opcode, line: AsmLine) -> int:
        tokens = line.text[3:].split(None, 1)
        token = tokens[0] if tokens else ""
        operand = self._resolve_operand(token, line)

        if not 0 <= operand <= OPERAND_MASK:
            log.warning("Line %d: operand 0x%x does not fit in 12 bits, truncated",
                        line.line_num, operand)
        return encode(op, operand)

    def _resolve_operand(self, token: str, line: AsmLine) -> int:
        """Label reference (':name') or C-style number. Empty is 0 (STP)."""
        if token.startswith(LABEL_C):
            name = token[1:]
            addr = self.labels.lookup(name)
            if addr is None:
                raise UnknownLabelError(name, line.line_num, line.raw.rstrip())
            return addr

        value, consumed = parse_int(token)
        if token and consumed == 0:
            log.warning("Line %d: operand '%s' is not a number, using 0",
                        line.line_num, token)
        return value

    def to_hex(self) -> str:
        """Machine code text: one 4-digit hex word per line."""
        return ''.join(format_word(w) + '\n' for w in self.words)

    def get_listing(self) -> str:
        """Return a human-readable listing: address, word, decoded instruction, source.

        Only instruction lines get a decoded column; literals are data.
        """
        lines = []
        lines.append(f"{'ADDR':>4}  {'WORD':<4}  {'DECODED':<10}SOURCE")
        lines.append("-" * 60)

        emitted = {id(line): word for line, word in self._emitted}
        for asmline in self._lines:
            raw = asmline.raw.rstrip()
            if asmline.occupies_word:
                word = emitted.get(id(asmline))
                word_str = format_word(word) if word is not None else '????'
                decoded = disassemble_word(word) if word is not None and asmline.kind == INSTR else ''
                lines.append(f"{asmline.address:03x}   {word_str}  {decoded:<10}{raw}")
            elif raw:
                lines.append(f"{'':4}  {'':4}  {'':10}{raw}")

        return '\n'.join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: str) -> List[int]:
    """Assemble source text, return the list of words."""
    return Assembler().assemble(source)


def assemble_to_hex(source: str) -> str:
    """Assemble source text, return machine code text."""
    asm = Assembler()
    asm.assemble(source)
    return asm.to_hex()
