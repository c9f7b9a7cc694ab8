"""
LMC Two-Pass Assembler.

Assembles Little Man Computer mnemonic source into a 100-word program image.

Input:  Assembly text (str) or a sequence of source lines
Output: List of 100 words (000–999), machine-code text, or a listing

Line format:
  [label] MNEMONIC [operand]   # comment

  start   LDA     count        # label, mnemonic, operand
          ADD     one          # mnemonic, operand
          OUT                  # mnemonic only
  one     DAT     001          # data word

Fields are classified by count: one token is a mnemonic; two tokens are
"MNEMONIC operand" if the first token is a mnemonic, else "label MNEMONIC";
three tokens are "label MNEMONIC operand". Labels may carry a trailing ':'.

Instruction set:
  HLT/COB  000     LDA     5xx
  ADD      1xx     BR      6xx
  SUB      2xx     BRZ     7xx
  STO/STA  3xx     BRP     8xx
  IN       901     OUT     902
  DAT [n]  n (000–999, default 000)

How the two-pass algorithm works:
  Pass 1: Scan all lines, give every instruction or DAT one mailbox, and
          record each label at the mailbox it sits on.
  Pass 2: Encode every line using the complete symbol table, so forward
          and backward references resolve the same way.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Union
from dataclasses import dataclass
import logging
import re

__all__ = [
    'Assembler', 'AssemblerError', 'DuplicateLabel', 'UndefinedLabel',
    'OperandOutOfRange', 'UnknownMnemonic', 'ProgramTooLarge',
    'assemble', 'assemble_to_machine_code',
]

log = logging.getLogger('lmc.asm')

MAILBOX_COUNT = 100
ADDRESS_MAX = MAILBOX_COUNT - 1
WORD_MAX = 999


class AssemblerError(Exception):
    """Raised on assembly errors."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.reason = message
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class DuplicateLabel(AssemblerError):
    """Label defined more than once."""


class UndefinedLabel(AssemblerError):
    """Operand names a label that is never defined."""


class OperandOutOfRange(AssemblerError):
    """Literal operand outside 00–99 (instructions) or 000–999 (DAT)."""


class UnknownMnemonic(AssemblerError):
    """Mnemonic not in the instruction set."""


class ProgramTooLarge(AssemblerError):
    """Source needs more than 100 mailboxes."""


# ──────────────────────────────────────────────
# LMC Opcode Table
# ──────────────────────────────────────────────
# Format: { 'MNEMONIC': base_word }
# Address instructions add the operand to the base word.

ADDRESS_OPCODES: Dict[str, int] = {
    'ADD': 100,
    'SUB': 200,
    'STO': 300,
    'STA': 300,  # alias of STO
    'LDA': 500,
    'BR':  600,
    'BRZ': 700,
    'BRP': 800,
}

FIXED_OPCODES: Dict[str, int] = {
    'HLT': 0,
    'COB': 0,    # "coffee break", alias of HLT
    'IN':  901,
    'OUT': 902,
}

DATA_DIRECTIVE = 'DAT'

MNEMONICS = set(ADDRESS_OPCODES) | set(FIXED_OPCODES) | {DATA_DIRECTIVE}

LABEL_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
DECIMAL_RE = re.compile(r'-?[0-9]+')


def _is_mnemonic(token: str) -> bool:
    return token.upper() in MNEMONICS


# ──────────────────────────────────────────────
# Line Parser
# ──────────────────────────────────────────────

@dataclass
class AsmLine:
    """Parsed assembly source line."""
    label: Optional[str] = None
    mnemonic: Optional[str] = None
    operand: Optional[str] = None
    comment: Optional[str] = None
    line_num: int = 0
    raw: str = ""
    address: Optional[int] = None  # mailbox assigned in pass 1
    word: Optional[int] = None     # encoded in pass 2


def _parse_line(line: str, line_num: int) -> AsmLine:
    """Parse one line of assembly into label, mnemonic, operand, comment."""
    result = AsmLine(line_num=line_num, raw=line)

    text = line
    hash_pos = text.find('#')
    if hash_pos >= 0:
        result.comment = text[hash_pos+1:].strip()
        text = text[:hash_pos]

    parts = text.split()
    if not parts:
        return result

    if len(parts) == 1:
        result.mnemonic = parts[0]
    elif len(parts) == 2:
        if _is_mnemonic(parts[0]):
            result.mnemonic, result.operand = parts
        else:
            result.label, result.mnemonic = parts
    elif len(parts) == 3:
        result.label, result.mnemonic, result.operand = parts
    else:
        raise AssemblerError(
            f"Too many fields ({len(parts)}): expected [label] mnemonic [operand]",
            line_num, line)

    if result.label is not None:
        if result.label.endswith(':'):
            result.label = result.label[:-1]
        if not LABEL_RE.match(result.label):
            raise AssemblerError(f"Invalid label: '{result.label}'", line_num, line)
        if _is_mnemonic(result.label):
            raise AssemblerError(
                f"Label '{result.label}' is a reserved mnemonic", line_num, line)

    result.mnemonic = result.mnemonic.upper()
    return result


# ──────────────────────────────────────────────
# Operand Analysis
# ──────────────────────────────────────────────

def _parse_value(text: str, symbols: Dict[str, int], limit: int,
                 line: AsmLine) -> int:
    """Parse a decimal literal (0..limit) or a label reference."""
    if DECIMAL_RE.fullmatch(text):
        value = int(text)
        if text.startswith('-') or value > limit:
            raise OperandOutOfRange(
                f"Operand out of range 0-{limit}: {text}", line.line_num, line.raw)
        return value

    if text in symbols:
        return symbols[text]

    if not LABEL_RE.match(text):
        raise AssemblerError(f"Invalid operand: '{text}'", line.line_num, line.raw)

    raise UndefinedLabel(f"Undefined label: '{text}'", line.line_num, line.raw)


# ──────────────────────────────────────────────
# The Assembler
# ──────────────────────────────────────────────

class Assembler:
    """Two-pass LMC assembler.

    Usage:
        asm = Assembler()
        image = asm.assemble(source_text)
        text = asm.to_machine_code()
    """

    def __init__(self):
        self.symbols: Dict[str, int] = {}            # Label table: name -> mailbox
        self.pc: int = 0                             # Address counter
        self.image: List[int] = [0] * MAILBOX_COUNT  # Final program image
        self.size: int = 0                           # Mailboxes used
        self.errors: List[AssemblerError] = []       # Errors from the failing pass
        self._lines: List[AsmLine] = []              # Parsed assembly lines

    def assemble(self, source: Union[str, Iterable[str]]) -> List[int]:
        """Assemble source into a 100-word program image.

        Two-pass assembly:
          Pass 1: Assign a mailbox to every instruction and DAT, register labels.
          Pass 2: Encode every line using the now-complete symbol table.

        Errors are collected for the whole pass; if a pass produced any, the
        first one is raised and no image is produced.
        """
        self.symbols = {}
        self.errors = []
        self._lines = []
        self.image = [0] * MAILBOX_COUNT
        self.size = 0

        raw_lines = source.splitlines() if isinstance(source, str) else list(source)

        log.info("Assembling %d source lines", len(raw_lines))

        # Pass 1: parse, resolve labels, assign mailboxes
        self._pass1(raw_lines)
        self._raise_errors("Pass 1")

        # Pass 2: encode
        image = self._pass2()
        self._raise_errors("Pass 2")

        self.image = image
        log.info("Assembled %d mailboxes, %d labels", self.size, len(self.symbols))
        return list(self.image)

    def _raise_errors(self, stage: str):
        if not self.errors:
            return
        for err in self.errors:
            log.debug("%s error: %s", stage, err)
        raise self.errors[0]

    def _pass1(self, raw_lines: List[str]):
        """Pass 1: parse lines and compute label addresses."""
        self.pc = 0

        for i, raw in enumerate(raw_lines, 1):
            try:
                line = _parse_line(raw.rstrip('\r\n'), i)
            except AssemblerError as e:
                self.errors.append(e)
                continue
            self._lines.append(line)
            try:
                self._pass1_line(line)
            except ProgramTooLarge as e:
                self.errors.append(e)
                return
            except AssemblerError as e:
                self.errors.append(e)

        self.size = self.pc

    def _pass1_line(self, line: AsmLine):
        """Process one line in pass 1 (label registration + address advance)."""
        if line.mnemonic is None:
            return

        if self.pc > ADDRESS_MAX:
            raise ProgramTooLarge(
                f"Program too large: more than {MAILBOX_COUNT} mailboxes",
                line.line_num, line.raw)

        line.address = self.pc

        if line.label:
            if line.label in self.symbols:
                raise DuplicateLabel(
                    f"Duplicate label: '{line.label}' "
                    f"(already at mailbox {self.symbols[line.label]:02d})",
                    line.line_num, line.raw)
            self.symbols[line.label] = self.pc
            log.debug("label %s = %02d", line.label, self.pc)

        # Every instruction or DAT occupies exactly one mailbox
        self.pc += 1

    def _pass2(self) -> List[int]:
        """Pass 2: encode every line using the symbol table from pass 1."""
        self.pc = 0
        image = [0] * MAILBOX_COUNT

        for line in self._lines:
            if line.mnemonic is None:
                continue
            try:
                word = self._pass2_line(line)
            except AssemblerError as e:
                self.errors.append(e)
                self.pc += 1
                continue
            line.word = word
            image[self.pc] = word
            log.debug("%02d: %03d    %s", self.pc, word, line.raw.strip())
            self.pc += 1

        return image

    def _pass2_line(self, line: AsmLine) -> int:
        """Encode one line in pass 2."""
        mnem = line.mnemonic

        # ── Data ──
        if mnem == DATA_DIRECTIVE:
            if line.operand is None:
                return 0
            return _parse_value(line.operand, self.symbols, WORD_MAX, line)

        # ── Zero-operand instructions ──
        if mnem in FIXED_OPCODES:
            if line.operand is not None:
                raise AssemblerError(
                    f"{mnem} takes no operand (got '{line.operand}')",
                    line.line_num, line.raw)
            return FIXED_OPCODES[mnem]

        # ── Address instructions ──
        if mnem in ADDRESS_OPCODES:
            if line.operand is None:
                raise AssemblerError(f"{mnem}: missing operand", line.line_num, line.raw)
            addr = _parse_value(line.operand, self.symbols, ADDRESS_MAX, line)
            return ADDRESS_OPCODES[mnem] + addr

        raise UnknownMnemonic(f"Unknown mnemonic: {mnem}", line.line_num, line.raw)

    def to_machine_code(self) -> str:
        """Render the image as 100 lines of 3-digit words."""
        return '\n'.join(f"{word:03d}" for word in self.image) + '\n'

    def get_listing(self) -> str:
        """Return a human-readable listing showing address, word, and source."""
        lines = []
        lines.append(f"{'ADDR':>4}  {'WORD':<4}  SOURCE")
        lines.append("-" * 60)

        for asmline in self._lines:
            raw = asmline.raw.strip()
            if asmline.address is not None and asmline.word is not None:
                lines.append(f"{asmline.address:>4d}  {asmline.word:03d}   {raw}")
            elif raw:
                # Comments and blank-ish lines
                lines.append(f"{'':4}  {'':4}  {raw}")

        lines.append("-" * 60)
        lines.append(f"{self.size} mailboxes used, {len(self.symbols)} labels")
        return '\n'.join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: Union[str, Iterable[str]]) -> List[int]:
    """Assemble source, return the 100-word program image."""
    return Assembler().assemble(source)


def assemble_to_machine_code(source: Union[str, Iterable[str]]) -> str:
    """Assemble source, return machine-code text (100 lines)."""
    asm = Assembler()
    asm.assemble(source)
    return asm.to_machine_code()
