"""
Logging setup for the mu0 toolchain.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, to the ``mu0`` logger by the command line front end.

Console output goes through rich to **stderr**: stdout belongs to the
emulated program's I/O cell and to the assembler listing.

Log files (only when a log_dir is given): ``<log_dir>/<name>_YYYYMMDD_HHMMSS.log``
"""

from __future__ import annotations
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

__all__ = ['setup_logging']


def setup_logging(
    name: str = "mu0",
    level: int = logging.DEBUG,
    console_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure and return the toolchain logger.

    Calling it again changes the levels and, given a new log_dir, adds a log
    file there; the console handler is only created once. The front end can
    therefore be invoked repeatedly in one process (tests do this).
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # ── Console handler ──
    consoles = [h for h in logger.handlers if isinstance(h, RichHandler)]
    if consoles:
        for ch in consoles:
            ch.setLevel(console_level)
    else:
        ch = RichHandler(
            console=Console(stderr=True),
            level=console_level,
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        ch.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(ch)

    # ── File handler: captures everything (DEBUG+) ──
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"{name}_{ts}.log"
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(fh)
        logger.debug("Log file: %s", log_file)

    return logger
