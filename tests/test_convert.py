import pytest

from geckokern.convert import Converted, convert, render, utoa
from geckokern.formatspec import parse_format_spec


def spec(text):
    parsed = parse_format_spec(text)
    assert parsed is not None
    return parsed


def fmt(text, arg=None):
    s = spec(text)
    return render(s, convert(s, arg))


@pytest.mark.parametrize("base", [2, 8, 10, 16, 36])
@pytest.mark.parametrize("value", [0, 1, 7, 255, 4096, 2**31, 2**32 - 1])
def test_utoa_round_trip(base, value):
    assert int(utoa(value, base), base) == value


def test_utoa_case():
    lower = utoa(0xABCDEF, 16, False)
    assert utoa(0xABCDEF, 16, True) == lower.upper()
    assert lower == lower.lower()


def test_utoa_zero_is_single_digit():
    assert utoa(0, 16) == "0"


def test_utoa_rejects_negative_and_bad_base():
    with pytest.raises(ValueError):
        utoa(-1, 10)
    with pytest.raises(ValueError):
        utoa(5, 1)


def test_signed_negative():
    result = convert(spec("%d"), -12345)
    assert result == Converted(str(12345), "-", False)


def test_signed_wraps_to_32_bits():
    result = convert(spec("%d"), 2**31)
    assert result.sign == "-"
    assert result.text == str(2**31)


def test_unsigned_of_negative_wraps():
    assert fmt("%u", -1) == str(2**32 - 1)


def test_hex_upper_and_lower():
    assert fmt("%x", 0xBEEF) == "beef"
    assert fmt("%X", 0xBEEF) == "BEEF"


def test_octal_round_trip():
    assert int(fmt("%o", 511), 8) == 511


def test_plus_and_space_prepend():
    assert fmt("%+d", 5) == "+5"
    assert fmt("% d", 5) == " 5"
    assert fmt("%+u", 5) == "5"


def test_zero_padding_with_sign_first():
    out = fmt("%06d", -42)
    assert len(out) == 6
    assert out.startswith("-0")
    assert int(out) == -42


def test_space_padding_right_justified():
    out = fmt("%8d", 42)
    assert len(out) == 8
    assert out.strip() == "42"
    assert out.endswith("42")


def test_left_justified():
    out = fmt("%-8d", 42)
    assert len(out) == 8
    assert out.startswith("42")
    assert out.rstrip() == "42"


def test_precision_pads_with_zeros():
    out = fmt("%.5d", 42)
    assert len(out) == 5
    assert int(out) == 42


def test_zero_flag_ignored_with_precision():
    out = fmt("%08.3d", 7)
    assert len(out) == 8
    assert out.lstrip(" ") == "007"


def test_zero_with_zero_precision_prints_nothing():
    assert fmt("%.0d", 0) == ""
    assert fmt("%.0x", 0) == ""
    assert fmt("%5.0d", 0) == " " * 5


def test_string_precision_truncates():
    assert fmt("%.3s", "hello") == "hello"[:3]


def test_string_width_and_none():
    out = fmt("%10s", "abc")
    assert out == "abc".rjust(10)
    assert fmt("%s", None) == ""


def test_string_stops_at_nul():
    assert fmt("%s", "ab\0cd") == "ab"


def test_char_from_int_and_str():
    assert fmt("%c", 65) == chr(65)
    assert fmt("%3c", "z") == "z".rjust(3)
    with pytest.raises(ValueError):
        convert(spec("%c"), "zz")


def test_percent():
    assert fmt("%%") == "%"


def test_pointer_has_eight_digits():
    out = fmt("%p", 0x1234)
    assert len(out) == 8
    assert int(out, 16) == 0x1234


def test_pointer_none_is_zero():
    assert int(fmt("%p", None), 16) == 0


def test_integer_needs_argument():
    with pytest.raises(TypeError):
        convert(spec("%d"), None)
    with pytest.raises(TypeError):
        convert(spec("%s"), 5)


def test_long_modifier_same_as_int():
    assert fmt("%ld", -7) == fmt("%d", -7)


def test_render_uses_converted_fields():
    s = spec("%5d")
    out = render(s, Converted("9", "-", False))
    assert len(out) == 5
    assert out.strip() == "-9"