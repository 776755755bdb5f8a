"""URL helpers for shared links."""

import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

MAX_URL_LENGTH = 2048

TRACKING_PARAMS = frozenset(
    {"utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content", "fbclid", "gclid"}
)

_URL_IN_TEXT = re.compile(r"https?://[^\s<>\"'{}|\\^`\[\]]+", re.IGNORECASE)


def is_valid_place_url(value: str) -> bool:
    """Cheap structural check: absolute http(s) URL with a host."""
    candidate = value.strip()
    if not candidate or len(candidate) > MAX_URL_LENGTH:
        return False
    if any(ch.isspace() for ch in candidate):
        return False
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.hostname)


def clean_url(value: str) -> str:
    """Drop tracking query parameters and the fragment.

    Used as the deduplication key for stored places. Returns the input
    unchanged when it cannot be parsed.
    """
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return value
    if not parts.scheme:
        return value

    query = [
        (key, val)
        for key, val in parse_qsl(parts.query, keep_blank_values=True)
        if key.lower() not in TRACKING_PARAMS
    ]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), ""))


def extract_url_from_text(text: str) -> str | None:
    """Return the first http(s) URL found in shared text, if any."""
    match = _URL_IN_TEXT.search(text)
    if match is None:
        return None
    # Trailing sentence punctuation is not part of the link
    return match.group(0).rstrip(".,;:!?)")
