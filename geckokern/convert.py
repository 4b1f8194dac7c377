"""Conversion of one printf argument to text, and padding of the result.

Integers are 32 bits wide, as on the i386 target: signed conversions wrap
into ``-2**31 .. 2**31 - 1`` and unsigned ones into ``0 .. 2**32 - 1``.
A pointer prints as hexadecimal with eight digits unless a precision is
given. Field widths and precisions given with ``*`` must already be
resolved into the spec's ``field_width`` and ``prec`` before calling
:func:`convert` or :func:`render`.
"""

from __future__ import annotations

import dataclasses
import operator
from dataclasses import dataclass

from geckokern.formatspec import Conversion, FormatSpec, OptionKind

_WORD_BITS = 32
_WORD_MASK = (1 << _WORD_BITS) - 1
_POINTER_DIGITS = (_WORD_BITS + 3) // 4
_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

_INTEGER_CONVERSIONS = frozenset(
    {
        Conversion.SIGNED_INT,
        Conversion.OCTAL,
        Conversion.HEX_INT,
        Conversion.UNSIGNED_INT,
    }
)
_UNSIGNED_BASES = {
    Conversion.OCTAL: 8,
    Conversion.UNSIGNED_INT: 10,
    Conversion.HEX_INT: 16,
    Conversion.POINTER: 16,
}


@dataclass(frozen=True)
class Converted:
    """The text of a converted argument, before any padding.

    ``sign`` is the character printed before the digits ('-', '+', ' ' or
    empty) and ``zero`` tells whether the numeric value was zero.
    """

    text: str
    sign: str = ""
    zero: bool = False


def utoa(value: int, base: int = 10, uppercase: bool = False) -> str:
    """Digits of a non-negative integer in ``base``, most significant first."""
    value = operator.index(value)
    if value < 0:
        raise ValueError("utoa needs a non-negative value")
    if not 2 <= base <= len(_DIGITS):
        raise ValueError(f"base must be between 2 and {len(_DIGITS)}")
    digits = []
    while True:
        value, digit = divmod(value, base)
        digits.append(_DIGITS[digit])
        if not value:
            break
    text = "".join(reversed(digits))
    return text if uppercase else text.lower()


def _effective(spec: FormatSpec) -> FormatSpec:
    """Apply the default pointer precision and drop '0' when a precision is given."""
    changes = {}
    if spec.prec_opt == OptionKind.NONE and spec.conversion == Conversion.POINTER:
        changes["prec"] = _POINTER_DIGITS
    if spec.prec_opt != OptionKind.NONE and spec.conversion in _INTEGER_CONVERSIONS:
        changes["leading_zero_pad"] = False
    return dataclasses.replace(spec, **changes) if changes else spec


def _signed32(value: int) -> int:
    value = operator.index(value) & _WORD_MASK
    return value - (1 << _WORD_BITS) if value >> (_WORD_BITS - 1) else value


def _char(arg) -> str:
    if isinstance(arg, str):
        if len(arg) != 1:
            raise ValueError("a %c argument must be a single character")
        return arg
    return chr(operator.index(arg) & 0xFF)


def _string(spec: FormatSpec, arg) -> str:
    if arg is None:
        return ""
    if isinstance(arg, (bytes, bytearray)):
        arg = bytes(arg).decode("latin-1")
    if not isinstance(arg, str):
        raise TypeError("a %s argument must be a string")
    text = arg.split("\0", 1)[0]
    if spec.prec_opt != OptionKind.NONE:
        text = text[: max(spec.prec, 0)]
    return text


def _no_digits(spec: FormatSpec, value: int) -> bool:
    return not value and spec.prec_opt != OptionKind.NONE and not spec.prec


def convert(spec: FormatSpec, arg=None) -> Converted:
    """Turn one argument into text according to its specification."""
    spec = _effective(spec)
    conversion = spec.conversion

    if conversion == Conversion.PERCENT:
        return Converted("%")
    if conversion == Conversion.CHAR:
        return Converted(_char(arg))
    if conversion == Conversion.STRING:
        return Converted(_string(spec, arg))
    if conversion == Conversion.SIGNED_INT:
        if arg is None:
            raise TypeError("a %d argument must be an integer")
        value = _signed32(arg)
        sign = "-" if value < 0 else spec.prepend
        text = "" if _no_digits(spec, value) else utoa(abs(value), 10, spec.uppercase)
        return Converted(text, sign, value == 0)
    if conversion in _UNSIGNED_BASES:
        if arg is None:
            if conversion != Conversion.POINTER:
                raise TypeError("an unsigned conversion needs an integer")
            arg = 0
        value = operator.index(arg) & _WORD_MASK
        if _no_digits(spec, value):
            text = ""
        else:
            text = utoa(value, _UNSIGNED_BASES[conversion], spec.uppercase)
        return Converted(text, "", value == 0)
    raise ValueError(f"cannot convert with {conversion!r}")


def render(spec: FormatSpec, converted: Converted) -> str:
    """Apply precision padding, sign and field width to a converted argument."""
    spec = _effective(spec)
    text = converted.text
    sign = converted.sign
    is_string = spec.conversion == Conversion.STRING

    pad_c = ""
    if spec.field_width_opt != OptionKind.NONE:
        if spec.leading_zero_pad and not spec.left_justified:
            if spec.prec_opt != OptionKind.NONE and not spec.prec and converted.zero:
                pad_c = " "
            else:
                pad_c = "0"
        else:
            pad_c = " "

    prec_pad = 0 if is_string else max(0, spec.prec - len(text))
    field_pad = max(0, spec.field_width - len(text) - (1 if sign else 0) - prec_pad)

    out = []
    if not spec.left_justified and pad_c:
        if pad_c == "0" and sign:
            out.append(sign)
            sign = ""
        out.append(pad_c * field_pad)

    if is_string:
        out.append(text)
    else:
        out.append(sign)
        out.append("0" * prec_pad)
        out.append(text)

    if spec.left_justified and pad_c:
        out.append(pad_c * field_pad)
    return "".join(out)