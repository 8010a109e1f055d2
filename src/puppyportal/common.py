"""Common utility functions for the project."""

import sys
from enum import Enum
from typing import Any


class AnsiColors(Enum):
    """
    ANSI color codes for terminal output.
    """

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[33m"
    BLUE = "\033[94m"


def colored_print(text: str, color: AnsiColors, *args: Any, **kwargs: Any) -> None:
    """
    Print text in color, or plain when the target stream is not a terminal.

    Args:
        text: The text to print
        color: The color to use (AnsiColors enum)
        args: Additional positional arguments for print
        kwargs: Additional keyword arguments for print
    """
    stream = kwargs.get("file") or sys.stdout
    if not getattr(stream, "isatty", lambda: False)():
        print(text, *args, **kwargs)
        return
    print(f"{color.value}{text}\033[0m", *args, **kwargs)  # ANSI reset at the end
