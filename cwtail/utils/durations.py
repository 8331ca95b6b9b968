"""Go-style duration strings such as ``-12h``, ``1h30m`` or ``1.5h``."""

from __future__ import annotations

import re
from datetime import timedelta

from cwtail.core.errors import ConfigurationError

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_COMPONENT_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(text: str) -> timedelta:
    """Parse a signed sequence of ``<number><unit>`` components.

    Raises ConfigurationError on anything that is not a valid duration.
    """
    raw = text.strip()
    if not raw:
        raise ConfigurationError("empty duration")

    sign = 1
    body = raw
    if body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body == "0":
        return timedelta(0)
    if not body:
        raise ConfigurationError(f"invalid duration {text!r}")

    seconds = 0.0
    pos = 0
    while pos < len(body):
        match = _COMPONENT_RE.match(body, pos)
        if match is None:
            raise ConfigurationError(f"invalid duration {text!r}")
        value, unit = match.groups()
        seconds += float(value) * _UNIT_SECONDS[unit]
        pos = match.end()
    return timedelta(seconds=sign * seconds)


def as_lookback(text: str) -> timedelta:
    """Parse a lookback, forcing it negative by prefixing ``-`` when missing."""
    if not text.startswith("-"):
        text = "-" + text
    lookback = parse_duration(text)
    if lookback >= timedelta(0):
        raise ConfigurationError(f"lookback {text!r} must be a non-zero duration")
    return lookback


def format_duration(value: timedelta) -> str:
    """Render like Go's ``time.Duration.String`` for whole-second values.

    ``timedelta(hours=-12)`` -> ``-12h0m0s``; sub-second values fall back to
    ``ms``.
    """
    total = value.total_seconds()
    if total == 0:
        return "0s"
    sign = "-" if total < 0 else ""
    total = abs(total)
    if total < 1:
        return f"{sign}{total * 1000:g}ms"

    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    secs_text = f"{secs:.9f}".rstrip("0").rstrip(".")
    if hours:
        return f"{sign}{int(hours)}h{int(minutes)}m{secs_text}s"
    if minutes:
        return f"{sign}{int(minutes)}m{secs_text}s"
    return f"{sign}{secs_text}s"
