# mu0 emulator: word memory, registers, decoder, the I/O cell, and the
# fetch/execute loop that ties them together (emu.py).

from .memory import Memory, EmulatorError, MemoryFault, parse_machine_code
from .regs import Registers, State
from .decoder import IllegalOpcode, decode_instruction
from .io_port import IOPort
from .emu import Mu0Emulator, StopReason
