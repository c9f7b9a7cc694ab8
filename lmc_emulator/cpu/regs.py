"""
LMC Emulator — Register Set

Register model for the Little Man Computer:
  ACC     — 3-digit accumulator ("calculator"), 000–999
  NEG     — set by SUB when the result went below zero, cleared by a SUB
            that did not; nothing else touches it
  PC      — 2-digit program counter, 00–99, wraps 99 → 00
  cycles  — instructions executed since reset (HLT included)
  halted  — set by HLT, stops further fetches
"""


class Registers:
    """LMC register set."""

    __slots__ = ('ACC', 'NEG', 'PC', 'cycles', 'halted')

    def __init__(self):
        self.ACC: int = 0        # Accumulator (0–999)
        self.NEG: bool = False   # Negative flag (last SUB only)
        self.PC: int = 0         # Program counter (0–99)
        self.cycles: int = 0     # Executed instruction counter
        self.halted: bool = False

    @property
    def negative(self) -> bool:
        return self.NEG

    @property
    def zero(self) -> bool:
        return self.ACC == 0

    def display(self) -> str:
        """Format register state for traces."""
        flag = 'N' if self.NEG else '.'
        return f"PC={self.PC:02d} ACC={self.ACC:03d} [{flag}] CYC={self.cycles}"

    def reset(self):
        """Reset to power-on state."""
        self.ACC = 0
        self.NEG = False
        self.PC = 0
        self.cycles = 0
        self.halted = False
