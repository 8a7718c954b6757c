"""
mu0 Emulator — Flat Word Memory with I/O Intercept

Memory is a list of words sized exactly to the loaded program. There is no
address space beyond it: the first address past the last word is already
out of range, and touching it is fatal (MemoryFault).

One address is special. IO_ADDRESS (0xFFF) never reaches storage; reads and
writes there go to the handler registered for it (see io_port.py). The
intercept runs before the bounds check, so the I/O cell works even though
no program is 4096 words long.

Machine code text format (the loader input):
    whitespace/newline separated hex words, e.g.
        0003
        2004
        7000
"""

from __future__ import annotations
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional

from ..isa import WORD_MASK

__all__ = ['Memory', 'EmulatorError', 'MemoryFault', 'parse_machine_code']

log = logging.getLogger(__name__)

_HEX_TOKEN = re.compile(r'(0[xX])?[0-9a-fA-F]+')


class EmulatorError(Exception):
    """Base for fatal emulator conditions."""
    pass


class MemoryFault(EmulatorError):
    """Access to an ordinary address outside the loaded program."""
    def __init__(self, address: int, size: int = 0):
        self.address = address
        self.size = size
        super().__init__(f"Memory address 0x{address:x} is out of range")


def parse_machine_code(text: str) -> List[int]:
    """Read hex words from machine code text.

    Stops at the first token that is not a plain hex number (an optional
    0x prefix, then hex digits), like scanf("%x") would. Signs and
    underscores are not hex. No checking of opcode or operand ranges is done.
    """
    words: List[int] = []
    for token in text.split():
        if _HEX_TOKEN.fullmatch(token):
            words.append(int(token, 16))
        else:
            log.warning("Stopped reading machine code at word %d: %r is not hex",
                        len(words), token)
            break
    return words


class Memory:
    """Fixed-size word memory with I/O handler routing.

    The size is set by load() and not changed afterwards. Only STO (via
    write()) modifies the contents once a program is loaded.
    """

    def __init__(self, words: Iterable[int] = ()):
        self._mem: List[int] = list(words)

        # I/O handlers: addr -> read_fn(addr) -> int, write_fn(addr, value)
        self._io_read_handlers: Dict[int, Callable] = {}
        self._io_write_handlers: Dict[int, Callable] = {}

    # --- Loading ---

    def load(self, words: Iterable[int]):
        """Replace the contents with a program. Handlers stay registered."""
        self._mem = list(words)

    def load_hex(self, text: str) -> int:
        """Load machine code text. Returns the number of words read."""
        self.load(parse_machine_code(text))
        return len(self._mem)

    # --- Core read/write ---

    def read(self, addr: int) -> int:
        """Read the word at addr, or one value from the I/O handler at its address."""
        if addr in self._io_read_handlers:
            return self._io_read_handlers[addr](addr)
        self._check(addr)
        return self._mem[addr]

    def write(self, addr: int, value: int):
        """Write value at addr. I/O addresses route to their handler instead."""
        if addr in self._io_write_handlers:
            self._io_write_handlers[addr](addr, value)
            return
        self._check(addr)
        self._mem[addr] = value

    def _check(self, addr: int):
        if not 0 <= addr < len(self._mem):
            raise MemoryFault(addr, len(self._mem))

    # --- I/O handler registration ---

    def register_io_handler(self, addr: int,
                            read_fn: Optional[Callable] = None,
                            write_fn: Optional[Callable] = None):
        """Register read/write handlers for a memory-mapped I/O address.

        Args:
            addr: I/O address (mu0 has one: 0xFFF)
            read_fn: Callable(addr) -> int
            write_fn: Callable(addr, value) -> None
        """
        if read_fn:
            self._io_read_handlers[addr] = read_fn
        if write_fn:
            self._io_write_handlers[addr] = write_fn

    # --- Inspection ---

    @property
    def size(self) -> int:
        return len(self._mem)

    def __len__(self) -> int:
        return len(self._mem)

    def __getitem__(self, addr: int) -> int:
        """Raw storage access without I/O routing."""
        self._check(addr)
        return self._mem[addr]

    @property
    def words(self) -> List[int]:
        """Copy of the current contents."""
        return list(self._mem)

    def hexdump(self, start: int = 0, length: Optional[int] = None) -> str:
        """Hex dump, eight words per row, for debugging."""
        end = len(self._mem) if length is None else min(len(self._mem), start + length)
        lines = []
        for row in range(start, end, 8):
            words = ' '.join(f'{self._mem[a] & WORD_MASK:04x}'
                             for a in range(row, min(row + 8, end)))
            lines.append(f'{row:03x}  {words}')
        return '\n'.join(lines)
