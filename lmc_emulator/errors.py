"""
LMC Emulator — Runtime Error Types

Every fatal condition the engine can hit derives from EmulatorError so the
batch harness can recover from any of them at record granularity.
"""

from typing import Optional


class EmulatorError(Exception):
    """Base class for fatal engine errors.

    address: mailbox of the instruction being executed (None for load errors)
    cycle:   1-based number of the instruction that failed (None for load errors)
    """
    def __init__(self, message: str, address: Optional[int] = None,
                 cycle: Optional[int] = None):
        self.reason = message
        self.address = address
        self.cycle = cycle
        super().__init__(self._format(message))

    def _format(self, message: str) -> str:
        if self.address is None and self.cycle is None:
            return message
        where = []
        if self.cycle is not None:
            where.append(f"cycle {self.cycle}")
        if self.address is not None:
            where.append(f"mailbox {self.address:02d}")
        return f"{message} ({', '.join(where)})"

    def locate(self, address: int, cycle: int) -> 'EmulatorError':
        """Attach the failing mailbox and cycle, keeping the original reason."""
        self.address = address
        self.cycle = cycle
        self.args = (self._format(self.reason),)
        return self

    @property
    def kind(self) -> str:
        return type(self).__name__


class AddressOutOfRange(EmulatorError):
    """Mailbox address outside 00-99."""


class InvalidWord(EmulatorError):
    """Cell value or machine-code token outside 000-999."""


class ProgramTooLarge(EmulatorError):
    """Program image with more than 100 cells."""


class InvalidOpcode(EmulatorError):
    """Word that does not decode to one of the ten instructions."""


class InputTrayUnderflow(EmulatorError):
    """IN executed with an empty input tray."""
