"""Logging utilities using Rich.

Library modules only call ``get_logger(__name__)``. Applications call
``setup_logging`` once; pipelines that own the root logger can pass
``package_only=True`` to keep linescan-adjust output on its own handlers.

The inverse solver logs one debug line per call, which is too chatty for
bulk projection at DEBUG level; ``set_solver_debug(False)`` silences it
while the rest of the package keeps logging at DEBUG.
"""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


PACKAGE_LOGGER = "linescan_adjust"
SOLVER_LOGGER = "linescan_adjust.camera.inverse"

THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "red bold",
    "debug": "dim",
})

console = Console(theme=THEME)


def _rich_handler(level: int) -> RichHandler:
    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    package_only: bool = False,
) -> logging.Logger:
    """Set up logging with Rich handler.
    
    Args:
        level: Logging level (e.g., logging.INFO, logging.DEBUG).
        log_file: Optional path to also log to a file.
        package_only: Attach handlers to the ``linescan_adjust`` logger
            instead of the root logger, leaving the root configuration alone.
    
    Returns:
        The logger the handlers were attached to.
    """
    target = logging.getLogger(PACKAGE_LOGGER if package_only else None)
    target.setLevel(level)
    target.handlers.clear()
    target.addHandler(_rich_handler(level))
    
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        target.addHandler(file_handler)
    
    if package_only:
        target.propagate = False
    
    return target


def set_solver_debug(enabled: bool) -> None:
    """Turn per-call inverse solver debug output on or off.
    
    When enabled, the solver logger inherits the configured level.
    """
    logging.getLogger(SOLVER_LOGGER).setLevel(logging.NOTSET if enabled else logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name.
    
    Args:
        name: Logger name, typically __name__ of the calling module.
    
    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)
