"""
Colored logging for the TypeScript generator.

Gives each log level and a few message shapes (progress, success, section
headers) a distinct ANSI color on interactive terminals.
"""

import logging
import sys
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Formatter that wraps log lines in ANSI color codes."""

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }

    SUCCESS = '\033[92m'
    PROGRESS = '\033[94m'
    HIGHLIGHT = '\033[96m'
    RESET = '\033[0m'
    BOLD = '\033[1m'

    # Markers prepended by the log_* helpers below
    SUCCESS_MARK = "✓"
    PROGRESS_MARK = "→"
    HIGHLIGHT_MARK = "•"

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True):
        super().__init__(fmt or "%(levelname)s: %(message)s")
        self.use_colors = use_colors and hasattr(sys.stderr, 'isatty') and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        if not self.use_colors:
            return formatted

        if record.levelname in self.LEVEL_COLORS and record.levelname != 'DEBUG':
            return f"{self.LEVEL_COLORS[record.levelname]}{formatted}{self.RESET}"

        message = record.getMessage()
        if message.startswith(self.SUCCESS_MARK):
            return f"{self.SUCCESS}{self.BOLD}{formatted}{self.RESET}"
        if message.startswith(self.PROGRESS_MARK):
            return f"{self.PROGRESS}{formatted}{self.RESET}"
        if message.startswith(self.HIGHLIGHT_MARK):
            return f"{self.HIGHLIGHT}{formatted}{self.RESET}"
        if self._is_section_message(message):
            return f"{self.BOLD}{self.HIGHLIGHT}{formatted}{self.RESET}"
        if record.levelname == 'DEBUG':
            return f"{self.LEVEL_COLORS['DEBUG']}{formatted}{self.RESET}"
        return formatted

    @staticmethod
    def _is_section_message(message: str) -> bool:
        return message.strip().startswith('=' * 20)


def setup_colored_logging(level: int = logging.INFO, use_colors: bool = True) -> None:
    """
    Install the colored formatter on the root logger.

    Args:
        level: Logging level (default: INFO)
        use_colors: Whether to use colors (default: True)
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter(use_colors=use_colors))
    console_handler.setLevel(level)

    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)


def log_success(logger: logging.Logger, message: str) -> None:
    """Log a success message."""
    logger.info(f"{ColoredFormatter.SUCCESS_MARK} {message}")


def log_progress(logger: logging.Logger, message: str) -> None:
    """Log a progress message."""
    logger.info(f"{ColoredFormatter.PROGRESS_MARK} {message}")


def log_highlight(logger: logging.Logger, message: str) -> None:
    """Log a highlighted message."""
    logger.info(f"{ColoredFormatter.HIGHLIGHT_MARK} {message}")


def log_section(logger: logging.Logger, section_name: str) -> None:
    """Log a section header."""
    separator = "=" * 60
    logger.info(separator)
    logger.info(f"  {section_name.upper()}")
    logger.info(separator)
