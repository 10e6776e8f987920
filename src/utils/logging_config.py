"""
src/utils/logging_config.py

Logging configuration for solver runs in scripts and notebooks.

Usage:
    from src.utils.logging_config import setup_logging
    setup_logging('INFO')  # Show fixed-point progress every `log_every` sweeps
"""

import logging
import sys
from typing import Optional


class SolverFormatter(logging.Formatter):
    """
    Compact formatter for solver progress with optional color support.

    Formats log messages as: [LEVEL] module: message
    Example: [INFO] arellano: Iter 150: distance=3.214e-04 (c=3.21e-04, d=1.02e-05, e=2.98e-04)
    """

    # ANSI color codes for terminal output
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[31m',
        'RESET': '\033[0m'
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        # Short module name, e.g. "arellano" from "src.collocation.arellano"
        module_short = record.name.rsplit('.', 1)[-1]
        message = record.getMessage()

        if self.use_colors:
            level_color = self.COLORS.get(record.levelname, '')
            reset = self.COLORS['RESET']
            return f"{level_color}[{record.levelname}]{reset} {module_short}: {message}"
        return f"[{record.levelname}] {module_short}: {message}"


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    use_colors: bool = True
) -> None:
    """
    Configure the root logger for solver runs.

    Args:
        level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
               - 'DEBUG': Basis construction and factorization details
               - 'INFO': Fixed-point progress and convergence (recommended)
               - 'WARNING': Infeasible nodes and iteration-cap exits only
        log_file: Optional path; if given, every record is also written there
                  with timestamps at DEBUG level.
        use_colors: Whether to use ANSI colors on the console.

    Example:
        >>> from src.utils.logging_config import setup_logging
        >>> setup_logging('INFO')
        >>> setup_logging('DEBUG', log_file='outputs/arellano.log')

    Notes:
        - Removes existing root handlers to avoid duplicate output
        - File logs always use DEBUG level regardless of console level
    """
    level_upper = level.upper()
    if level_upper not in {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}:
        raise ValueError(f"Invalid logging level: {level}. Use DEBUG, INFO, WARNING, ERROR, or CRITICAL")

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level_upper))
    console_handler.setFormatter(SolverFormatter(use_colors=use_colors))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)
        root_logger.setLevel(logging.DEBUG)
    else:
        root_logger.setLevel(getattr(logging, level_upper))

    logging.getLogger(__name__).debug(f"Logging configured: level={level_upper}, file={log_file}")


def disable_logging() -> None:
    """Silence everything below CRITICAL."""
    logging.getLogger().setLevel(logging.CRITICAL)


def reset_logging() -> None:
    """Remove all root handlers and restore the WARNING default."""
    root = logging.getLogger()
    root.setLevel(logging.WARNING)
    root.handlers.clear()


def get_current_log_level() -> str:
    """Effective level of the root logger, e.g. 'INFO'."""
    return logging.getLevelName(logging.getLogger().getEffectiveLevel())
