"""
mu0 Emulator — Main Emulator Class

Integrates:
  - CPU registers (regs.py)
  - Word memory (memory.py)
  - Instruction decoder (decoder.py)
  - Character I/O cell at 0xFFF (io_port.py)

Execution model, one call to step() is one cycle:
  FETCH:    IR <- mem[PC], PC += 1, state -> EXECUTE
  EXECUTE:  act on IR (table below), usually state -> FETCH

    LDA n   ACC <- mem[n]
    STO n   mem[n] <- ACC
    ADD n   ACC <- ACC + mem[n]
    SUB n   ACC <- ACC - mem[n]
    JMP n   PC <- n, then IR <- mem[PC], PC += 1 and stay in EXECUTE
    JGE n   as JMP if ACC >= 0, else FETCH
    JNE n   as JMP if ACC != 0, else FETCH
    STP     halt

A taken branch loads its target instruction in the same cycle, so the next
cycle already executes it. Cycle counts depend on this.

Termination:
  - HALT:     STP executed
  - TIMEOUT:  step limit reached first
  - ILLEGAL:  opcode field 8..15
Out-of-range memory access is not a stop reason: MemoryFault propagates.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import IO, Iterable, List, Optional

from ..isa import Opcode
from .regs import Registers, State
from .decoder import decode_instruction, IllegalOpcode
from .memory import Memory
from .io_port import IOPort

log = logging.getLogger(__name__)


class StopReason(Enum):
    HALT = 'HALT'
    TIMEOUT = 'TIMEOUT'
    ILLEGAL = 'ILLEGAL'


class Mu0Emulator:
    """mu0 fetch/execute emulator.

    Usage:
        emu = Mu0Emulator(sys.stdin.buffer, sys.stdout.buffer)
        emu.load_hex(open('prog.hex').read())
        result = emu.run(limit=1000)
        print(emu.regs.ACC, emu.mem.words)
    """

    DEFAULT_STEP_LIMIT = 0   # 0 or negative: no limit

    def __init__(self, input_stream: Optional[IO] = None,
                 output_stream: Optional[IO] = None):
        self.regs = Registers()
        self.mem = Memory()
        self.io = IOPort(input_stream, output_stream)
        self.io.register(self.mem)

        self.halted = False

        self._trace = False
        self._trace_output: List[str] = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_words(self, words: Iterable[int]):
        """Load a program (list of words) at address 0 and reset the CPU."""
        self.mem.load(words)
        self.regs.reset()
        self.halted = False
        log.debug("Read in %d lines", self.mem.size)

    def load_hex(self, text: str):
        """Load machine code text (one hex word per line)."""
        self.mem.load_hex(text)
        self.regs.reset()
        self.halted = False
        log.debug("Read in %d lines", self.mem.size)

    def load_file(self, path):
        self.load_hex(Path(path).read_text(encoding='utf-8'))

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Run one cycle. Returns a StopReason if the machine stopped, else None.

        Raises MemoryFault on an out-of-range access.
        """
        if self.halted:
            return StopReason.HALT

        self.regs.steps += 1
        if self._trace or log.isEnabledFor(logging.DEBUG):
            line = self.regs.display()
            if self._trace:
                self._trace_output.append(line)
            log.debug(line)

        if self.regs.state is State.FETCH:
            self._fetch()
            self.regs.state = State.EXECUTE
            return None

        try:
            op, operand = decode_instruction(self.regs.IR, self.regs.PC - 1)
        except IllegalOpcode as e:
            log.error("%s", e)
            return StopReason.ILLEGAL

        return self._dispatch[op](operand)

    def run(self, limit: Optional[int] = None) -> StopReason:
        """Run until STP or until `limit` cycles have been executed.

        Args:
            limit: cycle cap for this call; None, 0 or negative means no cap

        Returns:
            StopReason.HALT, StopReason.ILLEGAL, or StopReason.TIMEOUT
        """
        if limit is None:
            limit = self.DEFAULT_STEP_LIMIT

        start = self.regs.steps
        while limit <= 0 or self.regs.steps - start < limit:
            reason = self.step()
            if reason is not None:
                return reason

        log.warning("Step limit exceeded")
        return StopReason.TIMEOUT

    def _fetch(self):
        """IR <- mem[PC], PC += 1."""
        self.regs.IR = self.mem.read(self.regs.PC)
        self.regs.PC += 1

    def _jump(self, target: int):
        """Taken branch: the target word is fetched in this same cycle."""
        self.regs.PC = target
        self._fetch()

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(operand) -> Optional[StopReason]

    def _build_dispatch(self) -> dict:
        return {
            Opcode.LDA: self._op_lda,
            Opcode.STO: self._op_sto,
            Opcode.ADD: self._op_add,
            Opcode.SUB: self._op_sub,
            Opcode.JMP: self._op_jmp,
            Opcode.JGE: self._op_jge,
            Opcode.JNE: self._op_jne,
            Opcode.STP: self._op_stp,
        }

    def _op_lda(self, operand):
        self.regs.ACC = self.mem.read(operand)
        self.regs.state = State.FETCH

    def _op_sto(self, operand):
        self.mem.write(operand, self.regs.ACC)
        self.regs.state = State.FETCH

    def _op_add(self, operand):
        self.regs.ACC += self.mem.read(operand)
        self.regs.state = State.FETCH

    def _op_sub(self, operand):
        self.regs.ACC -= self.mem.read(operand)
        self.regs.state = State.FETCH

    def _op_jmp(self, operand):
        self._jump(operand)

    def _op_jge(self, operand):
        if self.regs.ACC >= 0:
            self._jump(operand)
        else:
            self.regs.state = State.FETCH

    def _op_jne(self, operand):
        if self.regs.ACC != 0:
            self._jump(operand)
        else:
            self.regs.state = State.FETCH

    def _op_stp(self, operand):
        self.halted = True
        return StopReason.HALT

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record a register line per cycle in addition to debug logging."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Reset registers and I/O; memory keeps whatever STO left in it."""
        self.regs.reset()
        self.io.reset()
        self.halted = False
        self._trace_output.clear()
