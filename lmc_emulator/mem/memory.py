"""
LMC Emulator — 100-Mailbox Memory

Memory map:
  00–99  Mailboxes, one 3-digit decimal word (000–999) each

Program and data share the same mailboxes (von Neumann). There is no
address wrapping here: every access is range checked, and an address
outside 00–99 is a fatal AddressOutOfRange. Only the program counter
wraps, and that happens in the engine, not in memory.
"""

from typing import Callable, Dict, Iterable, List, Optional

from ..config import DECIMAL_RE, MAILBOX_COUNT, WORD_MAX
from ..errors import AddressOutOfRange, InvalidWord, ProgramTooLarge


def parse_machine_code(text: str) -> List[int]:
    """Parse machine-code text into a list of words.

    One word per line is the canonical form; comma-separated words on a
    line, blank lines and '#' comments are also accepted. Returns only the
    words present; padding to 100 cells is done by Memory.load_program().
    """
    words = []
    for line_num, raw in enumerate(text.splitlines(), 1):
        line = raw.split('#', 1)[0].strip()
        if not line:
            continue
        for token in line.split(','):
            token = token.strip()
            if not token:
                continue
            if not DECIMAL_RE.fullmatch(token):
                raise InvalidWord(f"Line {line_num}: not a machine-code word: '{token}'")
            value = int(token)
            if value > WORD_MAX:
                raise InvalidWord(f"Line {line_num}: word out of range 000-999: {token}")
            words.append(value)
    return words


class Memory:
    """Fixed array of 100 mailboxes.

    Watchpoints fire on every write to a watched mailbox with
    callback(addr, old_val, new_val), so callers can observe STO traffic
    without stepping by hand.
    """

    def __init__(self):
        self._cells: List[int] = [0] * MAILBOX_COUNT

        # Watchpoints: addr → [callback(addr, old_val, new_val)]
        self._watchpoints: Dict[int, List[Callable]] = {}

    def __len__(self) -> int:
        return MAILBOX_COUNT

    # --- Core read/write ---

    def read(self, addr: int) -> int:
        """Read the word held in mailbox addr."""
        self._check_addr(addr)
        return self._cells[addr]

    def write(self, addr: int, value: int):
        """Write a word to mailbox addr."""
        self._check_addr(addr)
        if not 0 <= value <= WORD_MAX:
            raise InvalidWord(f"Value out of range 000-999: {value}")
        old = self._cells[addr]

        if addr in self._watchpoints:
            for cb in self._watchpoints[addr]:
                cb(addr, old, value)

        self._cells[addr] = value

    @staticmethod
    def _check_addr(addr: int):
        if not 0 <= addr < MAILBOX_COUNT:
            raise AddressOutOfRange(f"Mailbox address out of range 00-99: {addr}")

    # --- Bulk load ---

    def load_program(self, image: Iterable[int]):
        """Load a program image starting at mailbox 00.

        Short images are padded with 000 (halt); more than 100 words is
        ProgramTooLarge. Bypasses watchpoints.
        """
        words = list(image)
        if len(words) > MAILBOX_COUNT:
            raise ProgramTooLarge(
                f"Program too large: got {len(words)} words, limit is {MAILBOX_COUNT}")
        for i, word in enumerate(words):
            if isinstance(word, bool) or not isinstance(word, int) or not 0 <= word <= WORD_MAX:
                raise InvalidWord(f"Mailbox {i:02d}: word out of range 000-999: {word!r}")
        self._cells = words + [0] * (MAILBOX_COUNT - len(words))

    def load_machine_code(self, text: str):
        """Load machine-code text (see parse_machine_code)."""
        self.load_program(parse_machine_code(text))

    def clear(self):
        self._cells = [0] * MAILBOX_COUNT

    # --- Watchpoints ---

    def add_watchpoint(self, addr: int, callback: Callable):
        """Call callback(addr, old_val, new_val) on every write to addr."""
        self._check_addr(addr)
        self._watchpoints.setdefault(addr, []).append(callback)

    def remove_watchpoint(self, addr: int, callback: Optional[Callable] = None):
        """Remove a watchpoint. If callback is None, removes all on that addr."""
        if addr in self._watchpoints:
            if callback is None:
                del self._watchpoints[addr]
            else:
                self._watchpoints[addr] = [
                    cb for cb in self._watchpoints[addr] if cb != callback
                ]

    # --- Snapshots ---

    def snapshot(self) -> List[int]:
        """Copy of all 100 mailboxes, in address order."""
        return list(self._cells)

    @staticmethod
    def diff_snapshots(snap_a: List[int], snap_b: List[int]) -> Dict[int, tuple]:
        """Compare two snapshots, return {addr: (old, new)} for changes."""
        changes = {}
        for addr, (old, new) in enumerate(zip(snap_a, snap_b)):
            if old != new:
                changes[addr] = (old, new)
        return changes

    # --- Dump ---

    def dump(self) -> str:
        """10×10 grid of mailbox contents for debugging."""
        lines = ['    ' + ' '.join(f' {col:d} ' for col in range(10))]
        for row in range(0, MAILBOX_COUNT, 10):
            words = ' '.join(f'{self._cells[row + col]:03d}' for col in range(10))
            lines.append(f'{row:02d}  {words}')
        return '\n'.join(lines)
