"""
Colored, prefixed terminal messages.
"""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from colorama import Fore, Style, init as colorama_init

colorama_init()

PREFIX = "[codeextractor]"


def echo(
    message: str,
    color: str = "",
    verbose: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    if not verbose:
        return
    text = f"{PREFIX} {message}"
    if color:
        text = color + text + Style.RESET_ALL
    print(text, file=stream if stream is not None else sys.stdout)


def info(message: str, verbose: bool = True) -> None:
    echo(message, verbose=verbose)


def success(message: str, verbose: bool = True) -> None:
    echo(message, Fore.GREEN, verbose)


def warn(message: str, verbose: bool = True) -> None:
    echo(message, Fore.YELLOW, verbose)


def error(message: str) -> None:
    """Always printed, to stderr."""
    echo(f"Error: {message}", Fore.RED, True, sys.stderr)
