"""
mu0 Assembler — Label Table (pass 1)

Pass 1 walks the source once and gives every word-producing line the next
address, starting at 0. Label lines (':name') record the current address
without taking up memory themselves, so a label always names the word that
follows it.

Lines that occupy an address:
    '#...'  '$...'  and anything else that is not blank, a comment or a label.

Pass 1 does not validate line content. A line the encoder later rejects
still holds its address here, which is why a bad line shifts every label
after it.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

__all__ = ['LabelTable', 'build_label_table']

log = logging.getLogger(__name__)


class LabelTable:
    """Label name -> address.

    A name defined twice resolves to the later definition. Every definition
    is also kept in order in ``definitions`` for listings and diagnostics.
    """

    def __init__(self):
        self._table: Dict[str, int] = {}
        self.definitions: List[Tuple[str, int, int]] = []  # (name, address, line_num)

    def define(self, name: str, address: int, line_num: int = 0):
        if name in self._table and self._table[name] != address:
            log.debug("Label \"%s\" redefined at line %d (was %x, now %x)",
                      name, line_num, self._table[name], address)
        self._table[name] = address
        self.definitions.append((name, address, line_num))

    def lookup(self, name: str) -> Optional[int]:
        """Address of name, or None if it was never defined."""
        return self._table.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def items(self):
        return self._table.items()

    def as_dict(self) -> Dict[str, int]:
        return dict(self._table)


def build_label_table(lines: Iterable) -> Tuple[LabelTable, int]:
    """Pass 1: assign addresses and collect label definitions.

    ``lines`` are parsed AsmLine records. Each word-producing line gets its
    ``address`` attribute set. Returns (table, program_length).
    """
    table = LabelTable()
    addr = 0

    for line in lines:
        if line.is_label:
            if not line.label:
                log.warning("Line %d: label marker without a name, skipped", line.line_num)
                continue
            log.debug("Found label definition \"%s\" at address %x", line.label, addr)
            table.define(line.label, addr, line.line_num)
        elif line.occupies_word:
            line.address = addr
            addr += 1

    return table, addr
