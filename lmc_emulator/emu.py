"""
LMC Emulator — Main Emulator Class

Integrates:
  - Registers (cpu/regs.py)
  - Mailbox memory (mem/memory.py)
  - Decoder (cpu/decoder.py)
  - Input / output trays (periph/trays.py)

Execution model (one step):
  1. Fetch word at PC
  2. Advance PC by one (mod 100) — before the instruction can branch
  3. Decode word → mnemonic + operand
  4. Execute handler → update accumulator, NEG, memory, trays
  5. Count the cycle

Termination reasons:
  - HALT:     HLT executed
  - TIMEOUT:  max_cycles instructions executed without halting

Anything else (illegal opcode, empty input tray) is raised as an
EmulatorError carrying the failing mailbox and cycle number.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from .config import ADDRESS_MODULUS, DEFAULT_MAX_CYCLES, WORD_MODULUS
from .cpu.decoder import decode_instruction, disassemble
from .cpu.regs import Registers
from .errors import EmulatorError
from .mem.memory import Memory
from .periph.trays import InputTray, OutputTray

log = logging.getLogger('lmc.emu')


class StopReason(Enum):
    HALT = 'HALT'
    TIMEOUT = 'TIMEOUT'


@dataclass
class RunResult:
    """Outcome of LMCEmulator.run()."""
    stop_reason: StopReason
    cycles: int            # instructions executed by this run() call

    @property
    def halted(self) -> bool:
        return self.stop_reason is StopReason.HALT


class LMCEmulator:
    """Little Man Computer emulator.

    Usage:
        emu = LMCEmulator()
        emu.load_program(image)          # 100 words from the assembler
        emu.inject_input([4, 7])
        result = emu.run(max_cycles=500)
        print(emu.outputs)               # [11]
    """

    DEFAULT_MAX_CYCLES = DEFAULT_MAX_CYCLES

    def __init__(self):
        self.regs = Registers()
        self.mem = Memory()
        self.input_tray = InputTray()
        self.output_tray = OutputTray()

        self._trace = False
        self._trace_output: List[str] = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_program(self, image: Iterable[int]):
        """Load a program image into mailboxes 00–99 and reset registers."""
        image = list(image)
        self.mem.load_program(image)
        self.regs.reset()
        log.info("Loaded program: %d words", len(image))

    def load_machine_code(self, text: str):
        """Load machine-code text (one 3-digit word per line)."""
        self.mem.load_machine_code(text)
        self.regs.reset()
        log.info("Loaded machine code")

    def inject_input(self, values: Iterable[int]):
        """Queue values on the input tray, consumed in order by IN."""
        self.input_tray.inject(values)

    @property
    def outputs(self) -> List[int]:
        return list(self.output_tray.values)

    @property
    def halted(self) -> bool:
        return self.regs.halted

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason.HALT after HLT, else None.

        Calling step() on a halted machine is a no-op returning HALT.
        Raises EmulatorError (located at the fetched mailbox and the cycle
        number) on an illegal word or an empty input tray; the failing
        instruction is not counted.
        """
        if self.regs.halted:
            return StopReason.HALT

        pc = self.regs.PC
        cycle = self.regs.cycles + 1
        # Trace shows the registers as they were when the word was fetched
        state = self.regs.display() if self._trace else ""

        try:
            word = self.mem.read(pc)
            self.regs.PC = (pc + 1) % ADDRESS_MODULUS
            mnem, operand = decode_instruction(word)

            if self._trace:
                self._trace_output.append(
                    f"{pc:02d}: {word:03d}  {disassemble(word):<7s} {state}"
                )
            log.debug("%02d: %03d %s", pc, word, disassemble(word))

            self._dispatch[mnem](operand)
        except EmulatorError as e:
            e.locate(pc, cycle)
            if self._trace:
                self._trace_output.append(f"  ERROR: {e}")
            log.debug("Stopped on error: %s", e)
            raise

        self.regs.cycles = cycle

        if self.regs.halted:
            log.info("Program halted after %d cycles", self.regs.cycles)
            return StopReason.HALT
        return None

    def run(self, max_cycles: Optional[int] = None) -> RunResult:
        """Run until HLT or until max_cycles instructions have executed.

        Args:
            max_cycles: instruction budget for this call (None → default)

        Returns:
            RunResult with StopReason.HALT or StopReason.TIMEOUT and the
            number of instructions executed by this call.
        """
        if max_cycles is None:
            max_cycles = self.DEFAULT_MAX_CYCLES
        if max_cycles < 0:
            raise ValueError(f"max_cycles must be >= 0, got {max_cycles}")

        if self.regs.halted:
            return RunResult(StopReason.HALT, 0)

        executed = 0
        while executed < max_cycles:
            reason = self.step()
            executed += 1
            if reason is not None:
                return RunResult(reason, executed)

        log.info("Cycle budget of %d exhausted at PC=%02d", max_cycles, self.regs.PC)
        return RunResult(StopReason.TIMEOUT, executed)

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> dict:
        """Build mnemonic → handler dispatch table."""
        return {
            'HLT': self._op_hlt,
            'ADD': self._op_add,
            'SUB': self._op_sub,
            'STO': self._op_sto,
            'LDA': self._op_lda,
            'BR':  self._op_br,
            'BRZ': self._op_brz,
            'BRP': self._op_brp,
            'IN':  self._op_in,
            'OUT': self._op_out,
        }

    def _op_hlt(self, operand):
        self.regs.halted = True

    def _op_add(self, operand):
        # NEG is left alone: only SUB owns it
        self.regs.ACC = (self.regs.ACC + self.mem.read(operand)) % WORD_MODULUS

    def _op_sub(self, operand):
        raw = self.regs.ACC - self.mem.read(operand)
        if raw < 0:
            self.regs.NEG = True
            self.regs.ACC = (raw + WORD_MODULUS) % WORD_MODULUS
        else:
            self.regs.NEG = False
            self.regs.ACC = raw

    def _op_sto(self, operand):
        self.mem.write(operand, self.regs.ACC)

    def _op_lda(self, operand):
        self.regs.ACC = self.mem.read(operand)

    def _op_br(self, operand):
        self.regs.PC = operand

    def _op_brz(self, operand):
        if self.regs.ACC == 0:
            self.regs.PC = operand

    def _op_brp(self, operand):
        if not self.regs.NEG:
            self.regs.PC = operand

    def _op_in(self, operand):
        self.regs.ACC = self.input_tray.pop()

    def _op_out(self, operand):
        self.output_tray.push(self.regs.ACC)
        log.debug("OUT %03d", self.regs.ACC)

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record one line per executed instruction."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Reset registers, trays and trace. Memory is kept."""
        self.regs.reset()
        self.input_tray.reset()
        self.output_tray.reset()
        self._trace_output.clear()


def execute(image: Iterable[int], inputs: Iterable[int] = (),
            max_cycles: Optional[int] = None):
    """Run a program image on a fresh emulator.

    Returns (outputs, StopReason). Raises EmulatorError on fatal errors.
    """
    emu = LMCEmulator()
    emu.load_program(image)
    emu.inject_input(inputs)
    result = emu.run(max_cycles=max_cycles)
    return emu.outputs, result.stop_reason
