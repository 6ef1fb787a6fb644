# thread_dump_parser/hexcodec.py

import re

from .errors import InvalidHexFormat

HEX_DIGITS_PATTERN = re.compile(r'[0-9a-fA-F]+')

MAX_UNSIGNED_LONG = (1 << 64) - 1
MAX_UNSIGNED_INT = (1 << 32) - 1


def _parse_unsigned(text: str, max_value: int, kind: str) -> int:
    if not isinstance(text, str):
        raise InvalidHexFormat(f"not a hexadecimal string: {text!r}")

    digits = text
    if digits.startswith("0x") or digits.startswith("0X"):
        digits = digits[2:]

    # int(x, 16) also accepts signs, whitespace and underscores
    if not HEX_DIGITS_PATTERN.fullmatch(digits):
        raise InvalidHexFormat(f"invalid hexadecimal {kind}: \"{text}\"")

    value = int(digits, 16)
    if value > max_value:
        raise InvalidHexFormat(f"hexadecimal {kind} out of range: \"{text}\"")
    return value


def parse_unsigned_long(text: str) -> int:
    """
    Convert a hexadecimal string to an unsigned 64-bit value.

    A leading "0x" or "0X" is optional.

    Raises:
        InvalidHexFormat: empty digits, non-hex characters or overflow.
    """
    return _parse_unsigned(text, MAX_UNSIGNED_LONG, "long")


def parse_unsigned_int(text: str) -> int:
    """Same as parse_unsigned_long(), for an unsigned 32-bit value."""
    return _parse_unsigned(text, MAX_UNSIGNED_INT, "int")


def format_hex(value: int, width: int = 16) -> str:
    """Format an unsigned value the way HotSpot prints tids: 0x + zero-padded lower-case digits."""
    if value < 0:
        raise ValueError(f"negative value: {value}")
    return f"0x{value:0{width}x}"
