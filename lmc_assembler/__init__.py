"""
LMC Assembler
=============
A two-pass assembler for the Little Man Computer: mnemonic source in,
100-mailbox program image out.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌──────────────┐
    │ Source   │───>│  Pass 1  │───>│  Pass 2  │───>│ Image / .mc  │
    │ (.asm)   │    │ (labels) │    │ (encode) │    │ / listing    │
    └──────────┘    └──────────┘    └──────────┘    └──────────────┘

    - Pass 1 gives every instruction and DAT one mailbox and builds the
      symbol table.
    - Pass 2 encodes each line as opcode * 100 + operand, resolving labels
      against the finished table.

The image feeds lmc_emulator.LMCEmulator.load_program() directly.
"""

__version__ = "1.0.0"

from .assembler import (
    Assembler, AssemblerError, DuplicateLabel, UndefinedLabel,
    OperandOutOfRange, UnknownMnemonic, ProgramTooLarge,
    assemble, assemble_to_machine_code,
)
