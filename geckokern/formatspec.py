"""Parsing of printf conversion specifications.

The kernel's formatter supports field width and precision, the ``-``,
``0``, ``+`` and space flags, the ``l`` length modifier and the
conversions ``% c s d i o u x X p``. Alternate form (``#``), short
length modifiers, floating point, binary and write-back conversions are
not supported, so specifications that use them are not recognised.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

_END = "\0"


class OptionKind(enum.IntEnum):
    """How a field width or precision was given."""

    NONE = 0
    LITERAL = 1
    STAR = 2


class LengthModifier(enum.IntEnum):
    NONE = 0
    LONG = 1


class Conversion(enum.IntEnum):
    NONE = 0
    PERCENT = 1
    CHAR = 2
    STRING = 3
    SIGNED_INT = 4
    OCTAL = 5
    HEX_INT = 6
    UNSIGNED_INT = 7
    POINTER = 8


_CONVERSIONS = {
    "%": Conversion.PERCENT,
    "c": Conversion.CHAR,
    "s": Conversion.STRING,
    "i": Conversion.SIGNED_INT,
    "d": Conversion.SIGNED_INT,
    "o": Conversion.OCTAL,
    "u": Conversion.UNSIGNED_INT,
    "x": Conversion.HEX_INT,
    "X": Conversion.HEX_INT,
    "p": Conversion.POINTER,
}


@dataclass
class FormatSpec:
    """One parsed conversion specification and the characters it spans."""

    conversion: Conversion = Conversion.NONE
    length_modifier: LengthModifier = LengthModifier.NONE
    field_width: int = 0
    field_width_opt: OptionKind = OptionKind.NONE
    prec: int = 0
    prec_opt: OptionKind = OptionKind.NONE
    left_justified: bool = False
    leading_zero_pad: bool = False
    prepend: str = ""
    uppercase: bool = False
    length: int = 0


def _char_at(fmt: str, index: int) -> str:
    return fmt[index] if index < len(fmt) else _END


def _read_digits(fmt: str, cur: int, value: int) -> tuple[int, int, bool]:
    found = False
    while _char_at(fmt, cur).isdigit() and _char_at(fmt, cur) in "0123456789":
        value = value * 10 + int(fmt[cur])
        cur += 1
        found = True
    return value, cur, found


def parse_format_spec(fmt: str, pos: int = 0) -> FormatSpec | None:
    """Parse the specification whose ``%`` is at ``fmt[pos]``.

    Returns the parsed spec, whose ``length`` counts every character from
    the ``%`` through the conversion letter, or None if the text at ``pos``
    is not a specification this formatter understands.
    """
    if _char_at(fmt, pos) != "%":
        raise ValueError(f"no '%' at position {pos}")

    spec = FormatSpec()
    cur = pos + 1

    while True:
        ch = _char_at(fmt, cur)
        if ch == "-":
            spec.left_justified = True
        elif ch == "0":
            spec.leading_zero_pad = True
        elif ch == "+":
            spec.prepend = "+"
        elif ch == " ":
            if not spec.prepend:
                spec.prepend = " "
        else:
            break
        cur += 1

    if _char_at(fmt, cur) == "*":
        spec.field_width_opt = OptionKind.STAR
        cur += 1
    else:
        spec.field_width, cur, found = _read_digits(fmt, cur, 0)
        if found:
            spec.field_width_opt = OptionKind.LITERAL

    if _char_at(fmt, cur) == ".":
        cur += 1
        if _char_at(fmt, cur) == "*":
            spec.prec_opt = OptionKind.STAR
            cur += 1
        else:
            if _char_at(fmt, cur) == "-":
                cur += 1
            else:
                spec.prec_opt = OptionKind.LITERAL
            spec.prec, cur, _ = _read_digits(fmt, cur, 0)

    if _char_at(fmt, cur) == "l":
        spec.length_modifier = LengthModifier.LONG
        cur += 1

    ch = _char_at(fmt, cur)
    conversion = _CONVERSIONS.get(ch)
    if conversion is None:
        return None
    cur += 1
    spec.conversion = conversion
    spec.uppercase = ch == "X"
    spec.length = cur - pos
    return spec