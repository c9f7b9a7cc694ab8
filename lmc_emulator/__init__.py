# LMC Emulator: Little Man Computer virtual machine and batch test harness
# Part of the LMC toolkit
#
# Layout:
#   emu.py                      LMCEmulator: fetch/decode/execute loop
#   cpu/regs.py                 accumulator, NEG flag, PC, cycle counter
#   cpu/decoder.py              word → (mnemonic, operand), disassembler
#   mem/memory.py               100 mailboxes, machine-code text I/O
#   periph/trays.py             input / output trays
#   harness/batch_harness.py    test records, verdicts, reports
#   config.py                   machine constants and defaults
#   log_setup.py                rich console + file logging for the CLI

from .config import DEFAULT_MAX_CYCLES, MAILBOX_COUNT
from .errors import (
    EmulatorError, AddressOutOfRange, InvalidWord, ProgramTooLarge,
    InvalidOpcode, InputTrayUnderflow,
)
from .emu import LMCEmulator, StopReason, RunResult, execute
from .harness.batch_harness import (
    BatchHarness, MalformedTestRecord, TestRecord, TestOutcome, Verdict,
    parse_test_record, parse_test_file, scan_test_file, run_test, run_batch,
)
