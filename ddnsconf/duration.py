"""Parsing and formatting of time durations such as ``1h30m`` or ``250ms``."""

from __future__ import annotations

import re
from datetime import timedelta

_NANOSECOND = 1
_MICROSECOND = 1_000 * _NANOSECOND
_MILLISECOND = 1_000 * _MICROSECOND
_SECOND = 1_000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE

_UNITS = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "\u00b5s": _MICROSECOND,
    "\u03bcs": _MICROSECOND,
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}

_MAX_NANOSECONDS = (1 << 63) - 1
_COMPONENT = re.compile(r"([0-9]*)(\.([0-9]*))?([^0-9.]*)")


class DurationError(ValueError):
    """A text is not a valid duration."""


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def parse_duration(text: str) -> timedelta:
    """Parse a signed sequence of decimal numbers with units (ns, us, µs, ms, s, m, h).

    The result is rounded to microseconds.
    """
    original = text
    negative = False
    if text[:1] in ("-", "+"):
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise DurationError(f"time: invalid duration {_quote(original)}")

    total = 0
    pos = 0
    while pos < len(text):
        if not (text[pos] == "." or "0" <= text[pos] <= "9"):
            raise DurationError(f"time: invalid duration {_quote(original)}")
        match = _COMPONENT.match(text, pos)
        assert match is not None
        whole, dot, frac, unit = match.group(1), match.group(2), match.group(3) or "", match.group(4)
        if not whole and not frac:
            raise DurationError(f"time: invalid duration {_quote(original)}")
        if not unit:
            raise DurationError(f"time: missing unit in duration {_quote(original)}")
        scale = _UNITS.get(unit)
        if scale is None:
            raise DurationError(
                f"time: unknown unit {_quote(unit)} in duration {_quote(original)}"
            )
        value = int(whole or "0") * scale
        if dot and frac:
            value += int(frac) * scale // 10 ** len(frac)
        total += value
        limit = _MAX_NANOSECONDS + 1 if negative else _MAX_NANOSECONDS
        if total > limit:
            raise DurationError(f"time: invalid duration {_quote(original)}")
        pos = match.end()

    micro = (total + 500) // 1_000
    return timedelta(microseconds=-micro if negative else micro)


def _fraction(value: int, precision: int) -> str:
    whole, frac = divmod(value, 10**precision)
    digits = f"{frac:0{precision}d}".rstrip("0") if precision else ""
    return str(whole) + ("." + digits if digits else "")


def format_duration(value: timedelta) -> str:
    """Format a duration in the style ``72h3m0.5s``; zero is ``0s``."""
    nanos = (value // timedelta(microseconds=1)) * _MICROSECOND
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)

    if nanos < _SECOND:
        if nanos < _MICROSECOND:
            return f"{sign}{nanos}ns"
        if nanos < _MILLISECOND:
            return f"{sign}{_fraction(nanos, 3)}\u00b5s"
        return f"{sign}{_fraction(nanos, 6)}ms"

    total_minutes, second_nanos = divmod(nanos, _MINUTE)
    seconds = _fraction(second_nanos, 9) + "s"
    if total_minutes == 0:
        return sign + seconds
    hours, minutes = divmod(total_minutes, 60)
    prefix = f"{hours}h" if hours else ""
    return f"{sign}{prefix}{minutes}m{seconds}"