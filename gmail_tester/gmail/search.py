"""Gmail search query construction."""

import math
from dataclasses import dataclass, fields
from datetime import datetime, timedelta, timezone
from typing import Any

DEFAULT_LABEL = "INBOX"
DEFAULT_WAIT_TIME_SEC = 30
DEFAULT_MAX_WAIT_TIME_SEC = 30

# Accepted aliases for option keys, mapped to field names
_OPTION_ALIASES = {
    "from": "sender",
    "includeBody": "include_body",
    "includeAttachments": "include_attachments",
    "waitIntervalSeconds": "wait_time_sec",
    "maxWaitSeconds": "max_wait_time_sec",
}


@dataclass(frozen=True)
class FilterOptions:
    """Message filter and polling options.

    Filter fields map onto Gmail search operators; polling fields are
    only read by the inbox poller.
    """

    to: str | None = None
    sender: str | None = None
    subject: str | None = None
    before: datetime | None = None
    after: datetime | None = None

    # Gmail label to search in (INBOX, SPAM, TRASH or a custom label)
    label: str = DEFAULT_LABEL

    include_body: bool = False
    include_attachments: bool = False

    # Polling (seconds)
    wait_time_sec: float = DEFAULT_WAIT_TIME_SEC
    max_wait_time_sec: float = DEFAULT_MAX_WAIT_TIME_SEC

    def to_query(self) -> str:
        """Convert to a Gmail search query string.

        Returns:
            Space-joined operators in the order to, from, subject, after,
            before. Empty when no filter field is set.
        """
        query_parts: list[str] = []

        if self.to:
            query_parts.append(f'to:"{self.to}"')

        if self.sender:
            query_parts.append(f'from:"{self.sender}"')

        # Not quoted, so the subject may carry its own search operators
        if self.subject:
            query_parts.append(f"subject:({self.subject})")

        if self.after:
            query_parts.append(f"after:{to_epoch_seconds(self.after)}")

        if self.before:
            query_parts.append(f"before:{to_epoch_seconds(self.before)}")

        return " ".join(query_parts).strip()

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "FilterOptions":
        """Create options from a plain mapping.

        Accepts field names as well as the ``from`` and camelCase aliases.
        Keys with a ``None`` value fall back to the field default.

        Raises:
            ValueError: If a key is not a known option.
        """
        if not data:
            return cls()

        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown filter option: {key}")
            if value is None:
                continue
            if name in ("before", "after"):
                value = _coerce_datetime(value)
            kwargs[name] = value

        return cls(**kwargs)


def build_query(options: FilterOptions) -> str:
    """Build the Gmail search query for the given options."""
    return options.to_query()


def to_epoch_seconds(value: datetime) -> int:
    """Convert a datetime to Unix seconds, rounding halves up.

    Naive datetimes are taken as local time.
    """
    return math.floor(value.timestamp() + 0.5)


def _coerce_datetime(value: Any) -> datetime:
    """Accept a datetime, a date string or epoch milliseconds."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        return parse_date_string(value)
    raise ValueError(f"Invalid date value: {value!r}")


def parse_date_string(date_str: str) -> datetime:
    """Parse date string to datetime.

    Supports formats:
    - ISO 8601 (2024-01-15, 2024-01-15T10:30:00+00:00)
    - DD-Mon-YYYY
    - relative: "30m", "2h", "7d" (minutes/hours/days ago)

    Args:
        date_str: Date string to parse.

    Returns:
        Parsed datetime.

    Raises:
        ValueError: If format is invalid.
    """
    date_str = date_str.strip()
    relative_units = {"m": "minutes", "h": "hours", "d": "days"}

    suffix = date_str[-1:].lower()
    if suffix in relative_units:
        try:
            amount = int(date_str[:-1])
            return datetime.now() - timedelta(**{relative_units[suffix]: amount})
        except ValueError:
            pass

    try:
        return datetime.fromisoformat(date_str)
    except ValueError:
        pass

    for fmt in ("%d-%b-%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(date_str, fmt)
        except ValueError:
            continue

    raise ValueError(f"Invalid date format: {date_str}")
