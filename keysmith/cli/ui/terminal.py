"""Scoped raw terminal mode for interactive prompts.

Each prompt call switches stdin to raw mode for its own duration only and the
previous terminal attributes are restored on every exit path.
"""

from __future__ import annotations

import contextlib
import sys
from contextlib import contextmanager
from typing import Any, Callable, Generator, Optional, TextIO, TypeVar

from keysmith.utils.log import get_logger

logger = get_logger()

T = TypeVar("T")


def _stdin_fd(stream: TextIO) -> Optional[int]:
    try:
        if not stream.isatty():
            return None
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


@contextmanager
def raw_mode(stream: Optional[TextIO] = None) -> Generator[None, None, None]:
    """Put ``stream`` (stdin by default) into raw mode for the block.

    Does nothing when the stream is not a TTY or termios is unavailable.
    """
    stream = stream if stream is not None else sys.stdin
    fd = _stdin_fd(stream)
    if fd is None:
        yield
        return

    try:
        import termios
        import tty
    except ImportError:
        yield
        return

    try:
        old_settings: Any = termios.tcgetattr(fd)
    except (OSError, termios.error, ValueError):
        yield
        return

    try:
        with contextlib.suppress(OSError, termios.error, ValueError):
            tty.setraw(fd)
        yield
    finally:
        try:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
        except (OSError, termios.error, ValueError) as exc:
            logger.debug(
                "[terminal] Failed to restore terminal mode: %s: %s",
                type(exc).__name__,
                exc,
            )


def with_raw_mode(fn: Callable[[], T], stream: Optional[TextIO] = None) -> T:
    """Call ``fn`` inside :func:`raw_mode` and return its result."""
    with raw_mode(stream):
        return fn()
