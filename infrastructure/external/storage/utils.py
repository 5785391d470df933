"""Storage utility functions: keys, URLs, write metadata and retries."""
import mimetypes
import re
import secrets
from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from .exceptions import TransientError
from .models import WriteMetadata


STORAGE_STANDARD = "STANDARD"
STORAGE_REDUCED_REDUNDANCY = "REDUCED_REDUNDANCY"
STORAGE_STANDARD_IA = "STANDARD_IA"

CALLER_REFERENCE_PREFIX = "s3volume-"

_SLASHES_RE = re.compile(r"/{2,}")

# "<amount> <unit>" pairs, optionally separated by commas
_INTERVAL_TOKEN_RE = re.compile(r"\s*(\d+)\s*([A-Za-z]+)[\s,]*")

_INTERVAL_UNITS = {
    "sec": "seconds",
    "second": "seconds",
    "min": "minutes",
    "minute": "minutes",
    "hour": "hours",
    "day": "days",
    "week": "weeks",
    "month": "months",
    "year": "years",
}


# Key and URL helpers
def join_key(subfolder: str, path: str) -> str:
    """Build the remote object key for a volume-relative path.

    Example:
        join_key("assets/", "/img/a.png") -> "assets/img/a.png"
    """
    parts = [p for p in (subfolder.strip("/"), path.lstrip("/")) if p]
    return _SLASHES_RE.sub("/", "/".join(parts))


def strip_subfolder(subfolder: str, key: str) -> str:
    """Inverse of :func:`join_key` for keys inside the subfolder."""
    prefix = subfolder.strip("/")
    if prefix and key.startswith(prefix + "/"):
        return key[len(prefix) + 1:]
    return key


def root_url(base_url: str, subfolder: str) -> str:
    """Public root URL of a volume, always ending with one slash."""
    return (base_url.rstrip("/") + "/" + subfolder.strip("/")).rstrip("/") + "/"


def cdn_path(path: str) -> str:
    """Path as sent to the CDN: exactly one leading slash."""
    return "/" + path.lstrip("/")


def caller_reference() -> str:
    """Fresh unique token for a CDN invalidation batch."""
    return CALLER_REFERENCE_PREFIX + secrets.token_hex(12)


def guess_content_type(filename: str) -> str:
    """Guess content type from filename.

    Args:
        filename: File name or path

    Returns:
        MIME type string
    """
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or "application/octet-stream"


# Write metadata
def parse_interval(value: Optional[str]) -> Optional[relativedelta]:
    """Parse a relative interval such as ``"1 month"`` or ``"+2 weeks 3 days"``.

    Returns None for anything that is not a valid positive interval.
    """
    text = (value or "").strip()
    if text.startswith("+"):
        text = text[1:]

    amounts: dict[str, int] = {}
    pos = 0
    while pos < len(text):
        match = _INTERVAL_TOKEN_RE.match(text, pos)
        if not match:
            return None
        unit = match.group(2).lower()
        if unit.endswith("s") and unit[:-1] in _INTERVAL_UNITS:
            unit = unit[:-1]
        if unit not in _INTERVAL_UNITS:
            return None
        name = _INTERVAL_UNITS[unit]
        amounts[name] = amounts.get(name, 0) + int(match.group(1))
        pos = match.end()

    if not amounts or not any(amounts.values()):
        return None
    return relativedelta(**amounts)


def is_valid_interval(value: Optional[str]) -> bool:
    return parse_interval(value) is not None


def cache_control_for(expires: Optional[str], now: datetime) -> Optional[str]:
    """Cache-Control header for an expiry interval relative to ``now``.

    The interval is applied to the clock reading so that calendar units
    (months, years) count their actual length.
    """
    delta = parse_interval(expires)
    if delta is None:
        return None
    try:
        expires_at = now + delta
        seconds = int(expires_at.timestamp()) - int(now.timestamp())
    except (ValueError, OverflowError):
        # Past the last representable date
        return None
    return f"max-age={seconds}, must-revalidate"


def build_write_metadata(
    expires: Optional[str],
    storage_class: Optional[str],
    now: datetime
) -> WriteMetadata:
    """Derive per-write metadata; unset inputs stay unset."""
    return WriteMetadata(
        cache_control=cache_control_for(expires, now),
        storage_class=storage_class or None,
    )


def storage_classes() -> dict[str, str]:
    """Storage classes offered in volume settings."""
    return {
        STORAGE_STANDARD: "Standard",
        STORAGE_REDUCED_REDUNDANCY: "Reduced Redundancy Storage",
        STORAGE_STANDARD_IA: "Infrequent Access Storage",
    }


def period_list() -> dict[str, str]:
    """Interval units offered for the cache expiry setting."""
    return {
        "seconds": "Seconds",
        "minutes": "Minutes",
        "hours": "Hours",
        "days": "Days",
        "weeks": "Weeks",
        "months": "Months",
        "years": "Years",
    }


# Retry policy for transient errors
def retrying(
    max_attempts: int = 3,
    wait_multiplier: float = 0.5,
    wait_max: float = 10
) -> AsyncRetrying:
    """Async retry controller for transient errors.

    Args:
        max_attempts: Maximum number of attempts
        wait_multiplier: Exponential backoff multiplier
        wait_max: Maximum wait time between retries
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=wait_multiplier, max=wait_max),
        retry=retry_if_exception_type(TransientError),
        reraise=True
    )
