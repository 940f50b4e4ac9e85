"""Parsing of duration strings such as ``"30s"``, ``"1m30s"`` or ``"100ms"``.

The accepted grammar is a signed sequence of decimal numbers, each with an
optional fraction and a mandatory unit suffix. The bare string ``"0"`` is
the only unit-less value allowed.
"""

import re

# Seconds per unit.
UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5 micro sign
    "μs": 1e-6,  # U+03BC greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class DurationError(ValueError):
    """Raised when a duration string does not follow the duration grammar."""


def parse_duration(text: str) -> float:
    """Convert a duration string into seconds.

    Args:
        text: Duration such as ``"1s"``, ``"1.5h"``, ``"-2m"`` or ``"1h15m30.5s"``.

    Returns:
        float: The duration in seconds (negative when the sign is ``-``).

    Raises:
        DurationError: If ``text`` is empty, lacks a unit, or contains an
            unknown unit or stray characters.

    Example:
        >>> parse_duration("1m30s")
        90.0
    """
    if not isinstance(text, str):
        raise DurationError(f"invalid duration {text!r}")

    body = text
    sign = 1.0
    if body[:1] in ("-", "+"):
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]

    if body == "0":
        return 0.0
    if not body:
        raise DurationError(f"invalid duration {text!r}")

    total = 0.0
    pos = 0
    while pos < len(body):
        match = _COMPONENT.match(body, pos)
        if match is None:
            raise DurationError(f"invalid duration {text!r}")
        number, unit = match.groups()
        total += float(number) * UNITS[unit]
        pos = match.end()

    return sign * total


def format_duration(seconds: float) -> str:
    """Render seconds compactly for log messages (``1.5s``, ``250ms``)."""
    if seconds and abs(seconds) < 1:
        return f"{seconds * 1000:g}ms"
    return f"{seconds:g}s"
