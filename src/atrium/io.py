"""Console I/O helpers for user-facing messages."""

from __future__ import annotations

import sys

from . import log


def say(message: str) -> None:
    """Print a normal message to stdout.

    Args:
        message: Text to print.

    Returns:
        None.

    Example:
        >>> say("Hello")
        Hello
    """
    print(message)


def die(message: str, code: int = 1, *, hint: str | None = None) -> None:
    """Print an error message in the error style and exit.

    Args:
        message: Error message to display.
        code: Exit code to use.
        hint: Optional recovery hint printed after the message.

    Returns:
        None. Exits the process via ``sys.exit``.
    """
    log.error(f"error: {message}")
    if hint:
        log.warning(f"hint: {hint}")
    sys.exit(code)
