"""
Output formatting utilities for the CLI.

Provides the shared console and the logging setup used by the bridge.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

# Global console instance
console = Console()

# Log output goes to stderr so it never mixes with command output
err_console = Console(stderr=True)

# Chatty third-party loggers, only shown with --debug
NOISY_LOGGERS = ("httpx", "httpcore", "telegram", "apscheduler")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]i[/blue] {message}")


def setup_logging(debug: bool = False) -> None:
    """Configure the root logger with a rich handler.

    Args:
        debug: Log at DEBUG level, including third-party libraries.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=debug)],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)
