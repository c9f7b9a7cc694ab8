"""
LMC Emulator — Input and Output Trays

The only I/O devices the LMC has:
  Input tray   — FIFO of words, consumed by IN (901)
  Output tray  — append-only list of words, written by OUT (902)

The input tray is filled before the run. IN on an empty tray is a fatal
InputTrayUnderflow; the emulator never blocks waiting for a value and
never substitutes zero.
"""

from collections import deque
from typing import Iterable, List, Optional

from ..config import WORD_MAX
from ..errors import InputTrayUnderflow, InvalidWord


class InputTray:
    """FIFO of words waiting to be read by IN."""

    def __init__(self):
        self._queue: deque = deque()

    def __len__(self) -> int:
        return len(self._queue)

    def inject(self, values: Iterable[int]):
        """Append values to the back of the tray, in order."""
        values = list(values)
        for value in values:
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= WORD_MAX:
                raise InvalidWord(f"Input value out of range 000-999: {value!r}")
        self._queue.extend(values)

    def pop(self) -> int:
        """Take the front value. Raises InputTrayUnderflow if empty."""
        if not self._queue:
            raise InputTrayUnderflow("Input tray empty")
        return self._queue.popleft()

    @property
    def pending(self) -> List[int]:
        return list(self._queue)

    def reset(self):
        self._queue.clear()


class OutputTray:
    """Every value written by OUT, oldest first."""

    def __init__(self):
        self.values: List[int] = []

    def __len__(self) -> int:
        return len(self.values)

    def push(self, value: int):
        self.values.append(value)

    @property
    def last(self) -> Optional[int]:
        """Most recently written value, or None if nothing was written."""
        return self.values[-1] if self.values else None

    def reset(self):
        self.values = []
