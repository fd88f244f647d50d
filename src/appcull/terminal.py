"""Scoped terminal state for long-running scans."""

from contextlib import contextmanager
from typing import Iterator

from rich.console import Console


def inline_loading(*consoles: Console) -> bool:
    """True when every console is attached to an interactive terminal."""
    return all(c.is_terminal for c in consoles)


@contextmanager
def reserved_terminal(console: Console, alt_screen: bool = False) -> Iterator[bool]:
    """
    Hide the cursor (and optionally switch to the alternate screen) for the
    duration of the block.

    Both are restored on every exit path, including KeyboardInterrupt.
    Yields whether the alternate screen was entered.
    """
    if not console.is_terminal:
        yield False
        return

    entered = False
    console.show_cursor(False)
    try:
        if alt_screen:
            entered = console.set_alt_screen(True)
            if entered:
                console.clear()
        yield entered
    finally:
        if entered:
            console.set_alt_screen(False)
        console.show_cursor(True)
