"""Human-readable byte sizes ("10MB", "1B") to and from integer byte counts."""

from __future__ import annotations

import re
from decimal import Decimal, ROUND_HALF_UP

from .cli_errors import InvalidSizeFormat
from .constants import BYTES_LABEL, DISPLAY_UNITS, SIZE_SCALE, SIZE_UNIT_ALIASES, SIZE_UNITS

_MULTIPLIERS = {unit: SIZE_SCALE**index for index, unit in enumerate(SIZE_UNITS)}
for _alias, _unit in SIZE_UNIT_ALIASES.items():
    _MULTIPLIERS[_alias] = _MULTIPLIERS[_unit]

# Plain digits with an optional fraction; no signs, exponents or separators
_NUMBER = re.compile(r"[0-9]+(\.[0-9]+)?")

# Longest suffix first so "mb" wins over "b"
_SUFFIXES = sorted(_MULTIPLIERS, key=len, reverse=True)


def _split_unit(text: str) -> tuple[str, str | None]:
    lowered = text.lower()
    for suffix in _SUFFIXES:
        if lowered.endswith(suffix):
            return text[: -len(suffix)], suffix
    return text, None


def parse_size(text: str) -> int:
    """
    Parse a size literal into a byte count.

    A trailing unit (b, kb, mb, gb, tb or "bytes", case-insensitive) scales the
    number by 1024 ** n. Without a unit the number is taken as raw bytes.
    Fractional values such as "1.50 KB" round to the nearest byte.

    Raises:
        InvalidSizeFormat: the literal is empty, negative or not a number
    """
    if text is None:
        raise InvalidSizeFormat("Size must not be empty")

    stripped = str(text).strip()
    number, unit = _split_unit(stripped)
    number = number.strip()

    if not _NUMBER.fullmatch(number):
        raise InvalidSizeFormat(f"Invalid size: {text!r}")

    value = Decimal(number)

    multiplier = _MULTIPLIERS[unit] if unit else 1
    return int((value * multiplier).to_integral_value(rounding=ROUND_HALF_UP))


def format_size(num_bytes: int) -> str:
    """Format a byte count with the largest fitting unit, e.g. ``10.00 MB`` or ``512 Bytes``."""
    threshold = SIZE_SCALE ** len(DISPLAY_UNITS)
    for unit in DISPLAY_UNITS:
        if num_bytes >= threshold:
            return f"{num_bytes / threshold:.2f} {unit}"
        threshold //= SIZE_SCALE

    if num_bytes > 0:
        return f"{int(num_bytes)} {BYTES_LABEL}"
    return f"0 {BYTES_LABEL}"
