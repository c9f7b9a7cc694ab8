"""
Logging setup shared by the lmcc CLI.

All toolkit loggers live under the 'lmc' namespace:
  lmc.asm    — assembler passes and encoded words
  lmc.emu    — program load, every executed instruction, halt
  lmc.batch  — one line per test record verdict

Console output goes through rich's RichHandler on stderr so it never mixes
with program output on stdout. An optional log file captures everything
at DEBUG.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = 'lmc'

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def setup_logging(
    console_level: int = logging.WARNING,
    log_file: Optional[Path] = None,
    name: str = ROOT_LOGGER,
) -> logging.Logger:
    """Configure and return the toolkit logger.

    Safe to call more than once: existing handlers are replaced.
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if log_file else console_level)
    logger.propagate = False

    ch = RichHandler(
        console=Console(stderr=True),
        level=console_level,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    logger.addHandler(ch)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(fh)
        logger.debug("Log file: %s", log_file)

    return logger
