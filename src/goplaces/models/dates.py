"""ISO-8601 date handling shared by wire models.

Servers emit timestamps either with microsecond precision
(``2025-09-05T00:35:57.458710Z``) or whole seconds (``2025-09-05T00:35:57Z``).
Both decode; encoding always uses the whole-second UTC form.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

_ISO_PATTERN = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2})"
    r"(?:[.,](?P<fraction>\d+))?"
    r"(?P<tz>[Zz]|[+-]\d{2}:?\d{2})?$"
)


def parse_iso8601(value: str) -> datetime:
    """Parse an ISO-8601 timestamp with or without fractional seconds.

    Fractions longer than microseconds are truncated. Strings without an
    offset are read as UTC.

    Raises:
        ValueError: If the string is not an ISO-8601 date-time.
    """
    match = _ISO_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"Expected ISO-8601 date string, got {value!r}")

    base = match["base"].replace("t", "T").replace(" ", "T")
    parsed = datetime.strptime(base, "%Y-%m-%dT%H:%M:%S")

    fraction = match["fraction"]
    if fraction:
        parsed = parsed.replace(microsecond=int(fraction[:6].ljust(6, "0")))

    tz = match["tz"]
    if tz is None or tz in ("Z", "z"):
        tzinfo = timezone.utc
    else:
        digits = tz[1:].replace(":", "")
        offset = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
        tzinfo = timezone(offset if tz[0] == "+" else -offset)

    return parsed.replace(tzinfo=tzinfo)


def format_iso8601(value: datetime) -> str:
    """Format a datetime as whole-second UTC ISO-8601 (``...T00:35:57Z``)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _coerce_datetime(value: Any) -> Any:
    if isinstance(value, str):
        return parse_iso8601(value)
    return value


ISODateTime = Annotated[
    datetime,
    BeforeValidator(_coerce_datetime),
    PlainSerializer(format_iso8601, return_type=str, when_used="json"),
]
