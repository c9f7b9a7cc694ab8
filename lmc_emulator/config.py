"""
LMC Emulator — Machine Constants and Defaults
==============================================

Fixed geometry of the Little Man Computer plus the defaults the CLI and
batch harness fall back to when nothing is given on the command line.
"""

import re

# =============================================================================
#  MACHINE GEOMETRY
# =============================================================================
MAILBOX_COUNT = 100       # Mailboxes 00-99
WORD_MAX = 999            # Largest value a mailbox / accumulator can hold
WORD_MODULUS = 1000       # Arithmetic wraps modulo this
ADDRESS_MODULUS = 100     # Program counter wraps modulo this

# Opcode 9 sub-operations (operand field of 9xx)
IO_INPUT = 1              # 901
IO_OUTPUT = 2             # 902


# =============================================================================
#  EXECUTION DEFAULTS
# =============================================================================
DEFAULT_MAX_CYCLES = 10_000


# =============================================================================
#  TEXT FORMATS
# =============================================================================
# Unsigned decimal literal, ASCII digits only (str.isdigit also accepts '²')
DECIMAL_RE = re.compile(r'[0-9]+')


# =============================================================================
#  FILE CONVENTIONS (used by the lmcc CLI)
# =============================================================================
SOURCE_SUFFIXES = ('.asm', '.lmc', '.s')
MACHINE_CODE_SUFFIXES = ('.mc', '.txt', '.obj')
