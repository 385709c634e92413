from datetime import timedelta
import math
import re

Duration = int | float | str | timedelta

_DURATION_RE = re.compile(
    r"^(?P<value>-?(?:\d+)?\.?\d+)\s*(?P<unit>[a-z]+)?$", re.IGNORECASE
)

# Multipliers in seconds, keyed by every accepted unit spelling
_UNIT_SECONDS: dict[str, float] = {
    **dict.fromkeys(("ms", "msec", "msecs", "millisecond", "milliseconds"), 0.001),
    **dict.fromkeys(("s", "sec", "secs", "second", "seconds"), 1),
    **dict.fromkeys(("m", "min", "mins", "minute", "minutes"), 60),
    **dict.fromkeys(("h", "hr", "hrs", "hour", "hours"), 3600),
    **dict.fromkeys(("d", "day", "days"), 86400),
    **dict.fromkeys(("w", "week", "weeks"), 604800),
    **dict.fromkeys(("y", "yr", "yrs", "year", "years"), 31557600),
}


def parse_duration(value: Duration) -> int:
    """
    Convert a duration to whole seconds.

    Numbers are seconds, timedeltas are converted, strings follow the
    ``ms`` notation used by JWT libraries: ``"90"`` is 90 milliseconds,
    ``"1h"``, ``"2 days"`` and ``"-1s"`` are what they say.

    :param value: The duration to convert.
    :return: Whole seconds, rounded down; negative values are kept.
    :raises ValueError: If the value is not a recognizable duration.
    """
    if isinstance(value, bool):
        raise ValueError("Duration must be a number, string or timedelta, not bool")

    if isinstance(value, timedelta):
        return math.floor(value.total_seconds())

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"Duration must be finite, got {value!r}")
        return math.floor(value)

    if isinstance(value, str):
        match = _DURATION_RE.match(value.strip())
        if match is None:
            raise ValueError(f"Invalid duration string: {value!r}")
        number = float(match.group("value"))
        unit = (match.group("unit") or "ms").lower()
        if unit not in _UNIT_SECONDS:
            raise ValueError(f"Unknown duration unit: {unit!r}")
        return math.floor(number * _UNIT_SECONDS[unit])

    raise ValueError(f"Unsupported duration type: {type(value).__name__}")
