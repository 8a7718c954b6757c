"""
mu0 Toolchain
=============
Assembler and emulator for the mu0 teaching architecture: a 16-bit word
machine with one accumulator, eight instructions and a single memory-mapped
character I/O cell at 0xFFF.

Architecture:
    ┌──────────┐    ┌─────────────┐    ┌─────────────┐    ┌────────────┐
    │ .s text  │───>│ Label table │───>│ Line encoder│───>│ hex words  │
    │          │    │  (pass 1)   │    │  (pass 2)   │    │ (.hex)     │
    └──────────┘    └─────────────┘    └─────────────┘    └─────┬──────┘
                                                                │
                    ┌─────────────┐    ┌─────────────────────┐  │
                    │ stdin/stdout│<──>│ Fetch/execute engine│<─┘
                    │ (I/O cell)  │    │ (PC, ACC, IR)       │
                    └─────────────┘    └─────────────────────┘

    - isa.py:        opcode table + word format, shared by both halves
    - assembler/:    two-pass label resolver and encoder
    - emulator/:     memory, registers, decoder, I/O peripheral, main loop
    - log_setup.py:  rich console logging used by the CLI
"""

__version__ = "1.0.0"

from .isa import Opcode, IO_ADDRESS, encode, decode, format_word
from .assembler import Assembler, AssemblerError, UnknownLabelError, assemble, assemble_to_hex
from .emulator import Mu0Emulator, StopReason, MemoryFault, EmulatorError
