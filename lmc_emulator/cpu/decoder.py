"""
LMC Emulator — Instruction Decoder

Maps a 3-digit word to (mnemonic, operand):

  0xx  HLT         5xx  LDA xx
  1xx  ADD xx      6xx  BR  xx
  2xx  SUB xx      7xx  BRZ xx
  3xx  STO xx      8xx  BRP xx
  4xx  (reserved)  901  IN
                   902  OUT

Opcode 4 and any 9xx other than 901/902 are illegal. The operand of HLT
is ignored, so every word 000–099 halts.
"""

from typing import Optional, Tuple

from ..config import IO_INPUT, IO_OUTPUT
from ..errors import InvalidOpcode


# ──────────────────────────────────────────────
# Opcode tables
# ──────────────────────────────────────────────

# Leading digit → mnemonic (opcode 9 handled by IO_OPCODES)
OPCODES = {
    0: 'HLT',
    1: 'ADD',
    2: 'SUB',
    3: 'STO',
    5: 'LDA',
    6: 'BR',
    7: 'BRZ',
    8: 'BRP',
}

IO_OPCODES = {
    IO_INPUT: 'IN',
    IO_OUTPUT: 'OUT',
}

# Mnemonics that take a mailbox operand
ADDRESS_MNEMONICS = {'ADD', 'SUB', 'STO', 'LDA', 'BR', 'BRZ', 'BRP'}


def decode_instruction(word: int) -> Tuple[str, Optional[int]]:
    """Decode one word.

    Returns: (mnemonic, operand) where operand is the mailbox address for
    ADDRESS_MNEMONICS and None otherwise.
    Raises InvalidOpcode for opcode 4 and for 9xx other than 901/902.
    """
    opcode, operand = divmod(word, 100)

    if opcode == 9:
        if operand in IO_OPCODES:
            return IO_OPCODES[operand], None
        raise InvalidOpcode(f"Invalid I/O opcode: {word:03d}")

    if opcode in OPCODES:
        mnem = OPCODES[opcode]
        return mnem, (operand if mnem in ADDRESS_MNEMONICS else None)

    raise InvalidOpcode(f"Invalid opcode: {word:03d}")


def disassemble(word: int) -> str:
    """Render a word as assembly text, or 'DAT nnn' when it is not an instruction."""
    try:
        mnem, operand = decode_instruction(word)
    except InvalidOpcode:
        return f"DAT {word:03d}"
    if operand is None:
        return mnem
    return f"{mnem:<4s}{operand:02d}"
