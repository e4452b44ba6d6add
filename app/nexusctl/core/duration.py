"""Human-readable duration parsing.

Converts age strings such as "90d" or "12h" from the config into
timedelta values.
"""

import logging
import re
from datetime import timedelta

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^[+-]?\d+")

# Single trailing unit letter; anything else counts as seconds
_UNITS: dict[str, str] = {
    "w": "weeks",
    "d": "days",
    "h": "hours",
    "m": "minutes",
}


def parse_duration(text: str) -> timedelta:
    """Parse an age string with an optional unit suffix.

    The leading integer is the magnitude. A trailing ``w``, ``d``, ``h`` or
    ``m`` selects weeks, days, hours or minutes; any other suffix, or none,
    means seconds. Note that "5min" therefore ends in "n" and parses as
    five seconds.

    An unparsable magnitude is logged and treated as zero. Negative values
    are accepted as-is.

    Args:
        text: Age string, e.g. "90d", "2w", "30".

    Returns:
        Parsed duration.

    Example:
        >>> parse_duration("2d")
        datetime.timedelta(days=2)
    """
    age = text.strip()

    match = _LEADING_INT.match(age)
    if match is None:
        logger.warning("Can't convert '%s' to a number, using 0", age)
        value = 0
    else:
        value = int(match.group())

    unit = _UNITS.get(age[-1:], "seconds")
    return timedelta(**{unit: value})
