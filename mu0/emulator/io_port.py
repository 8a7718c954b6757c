"""
mu0 Emulator — Memory-Mapped Character I/O (address 0xFFF)

  LDA 0xFFF  : blocks for one character from the input stream; ACC gets its
               code (zero-extended). End of input reads as 0.
  STO 0xFFF  : writes one character, the low 8 bits of ACC, to the output.

No memory cell backs the address. Every byte written is also kept in
tx_buffer so tests can inspect output without a stream.

Input comes from characters queued with inject_rx() first, then from the
input stream. The command line hands the port the binary buffers of stdin
and stdout, so one cell access is exactly one byte. Text streams (StringIO
in tests) also work: a written byte becomes the character with that code.
"""

import io
from collections import deque
from typing import IO, Optional, Union

from ..isa import IO_ADDRESS


class IOPort:
    """The single I/O cell of mu0.

    Usage:
        port = IOPort(sys.stdin.buffer, sys.stdout.buffer)
        port.register(memory)
    """

    def __init__(self, input_stream: Optional[IO] = None,
                 output_stream: Optional[IO] = None):
        self.input_stream = input_stream
        self.output_stream = output_stream

        # TX history: every character written, low 8 bits
        self.tx_buffer: bytearray = bytearray()

        # RX injection queue
        self._rx_queue: deque = deque()

        self.reads: int = 0
        self.eof: bool = False

    def register(self, memory):
        """Wire the port into the memory's I/O routing."""
        memory.register_io_handler(IO_ADDRESS, self._read, self._write)

    def _read(self, addr: int) -> int:
        self.reads += 1
        if self._rx_queue:
            return self._rx_queue.popleft()
        if self.input_stream is None:
            self.eof = True
            return 0

        ch = self.input_stream.read(1)
        if not ch:
            self.eof = True
            return 0
        if isinstance(ch, (bytes, bytearray)):
            return ch[0]
        return ord(ch)

    def _write(self, addr: int, value: int):
        byte = value & 0xFF
        self.tx_buffer.append(byte)
        if self.output_stream is not None:
            if isinstance(self.output_stream, io.TextIOBase):
                self.output_stream.write(chr(byte))
            else:
                self.output_stream.write(bytes([byte]))
            self.output_stream.flush()

    # --- External API (tests / embedding) ---

    def inject_rx(self, data: Union[str, bytes]):
        """Queue characters to be read ahead of the input stream."""
        for ch in data:
            self._rx_queue.append(ch if isinstance(ch, int) else ord(ch))

    @property
    def tx_output(self) -> bytes:
        """All bytes written since the last reset."""
        return bytes(self.tx_buffer)

    def reset(self):
        self.tx_buffer.clear()
        self._rx_queue.clear()
        self.reads = 0
        self.eof = False
