"""printf-style formatting built on the spec parser and argument converter.

Text is produced one character at a time and handed to a ``putc``
callable, as the kernel does when it prints to the terminal. A format
string ends at its first NUL character. A ``%`` that does not start a
recognised specification is printed as it stands. Arguments are used
in order; missing arguments raise :class:`TypeError` and surplus ones
are ignored.
"""

from __future__ import annotations

import dataclasses
import operator
from collections.abc import Callable, Iterator, Sequence
from typing import Any

from geckokern.convert import convert, render
from geckokern.formatspec import Conversion, FormatSpec, OptionKind, parse_format_spec

_NO_ARGUMENT_CONVERSIONS = frozenset({Conversion.PERCENT})


class _Arguments:
    """Hands out the formatting arguments in order."""

    def __init__(self, args: Sequence[Any]) -> None:
        self._args = args
        self._next = 0

    def take(self) -> Any:
        if self._next >= len(self._args):
            raise TypeError("not enough arguments for format string")
        value = self._args[self._next]
        self._next += 1
        return value

    def take_int(self) -> int:
        return operator.index(self.take())


def _resolve_stars(spec: FormatSpec, args: _Arguments) -> FormatSpec:
    """Read ``*`` width and precision from the arguments."""
    changes: dict[str, Any] = {}
    if spec.field_width_opt == OptionKind.STAR:
        width = args.take_int()
        if width < 0:
            width = -width
            changes["left_justified"] = True
        changes["field_width"] = width
    if spec.prec_opt == OptionKind.STAR:
        prec = args.take_int()
        if prec < 0:
            changes["prec"] = 0
            changes["prec_opt"] = OptionKind.NONE
        else:
            changes["prec"] = prec
    return dataclasses.replace(spec, **changes) if changes else spec


def _pieces(fmt: str, args: Sequence[Any]) -> Iterator[str]:
    fmt = fmt.split("\0", 1)[0]
    arguments = _Arguments(args)
    cur = 0
    while cur < len(fmt):
        spec = parse_format_spec(fmt, cur) if fmt[cur] == "%" else None
        if spec is None:
            yield fmt[cur]
            cur += 1
            continue
        cur += spec.length
        spec = _resolve_stars(spec, arguments)
        arg = None if spec.conversion in _NO_ARGUMENT_CONVERSIONS else arguments.take()
        yield render(spec, convert(spec, arg))


def pprintf(putc: Callable[[str], Any], fmt: str, *args: Any) -> int:
    """Format ``args`` with ``fmt``, passing each character to ``putc``.

    Returns the number of characters produced.
    """
    count = 0
    for piece in _pieces(fmt, args):
        for ch in piece:
            putc(ch)
            count += 1
    return count


def format_string(fmt: str, *args: Any) -> str:
    """Return the fully formatted text."""
    return "".join(_pieces(fmt, args))


def snprintf(bufsz: int, fmt: str, *args: Any) -> tuple[str, int]:
    """Format into a buffer of ``bufsz`` characters including the terminator.

    Returns the text that fits (at most ``bufsz - 1`` characters) and the
    length the full text would have had.
    """
    bufsz = operator.index(bufsz)
    if bufsz < 0:
        raise ValueError("buffer size must not be negative")
    text = format_string(fmt, *args)
    kept = text[: bufsz - 1] if bufsz else ""
    return kept, len(text)