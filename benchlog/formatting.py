"""Bounded rendering of log text.

Every rendered line lives in a buffer of ``TEXT_BUFFER_SIZE`` characters
including the terminator, so at most ``TEXT_BUFFER_SIZE - 1`` characters come
out. Overflow clips; it is never an error for the caller.
"""

from __future__ import annotations

import os
import sys
from typing import Any

from .errors import BufferTruncated

TEXT_BUFFER_SIZE = 4096
_TEXT_CAPACITY = TEXT_BUFFER_SIZE - 1


def _format(fmt: str, args: tuple[Any, ...]) -> str:
    if not args:
        return fmt
    return fmt % args


def render(fmt: str, args: tuple[Any, ...], *, limit: int = _TEXT_CAPACITY) -> str:
    """Render ``fmt % args`` into at most ``limit`` characters.

    Raises BufferTruncated (carrying the clipped text) when the full rendering
    fills or exceeds the limit.
    """
    text = _format(fmt, args)
    if len(text) >= limit:
        raise BufferTruncated(text[:limit], len(text))
    return text


def _terminate(text: str, limit: int) -> str:
    return (text + "\n")[:limit]


def render_line(fmt: str, args: tuple[Any, ...], *, prefix: str = "") -> str:
    limit = _TEXT_CAPACITY - len(prefix)
    try:
        body = render(fmt, args, limit=limit)
    except BufferTruncated as exc:
        body = exc.text
    return prefix + _terminate(body, limit)


def render_timestamped(seconds: float, fmt: str, args: tuple[Any, ...]) -> str:
    return render_line(fmt, args, prefix="[ %.0fs ] " % seconds)


def current_errno(error: BaseException | None = None) -> int:
    if error is None:
        error = sys.exc_info()[1]
    code = getattr(error, "errno", None)
    if isinstance(code, int):
        return code
    return 0


def errno_suffix(code: int) -> str:
    return " errno = %d (%s)" % (code, os.strerror(code))
