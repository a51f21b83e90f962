import datetime

from dateutil import parser


def parse_datetime(value) -> datetime.datetime:
    """
    Parses an ISO-8601 string (or passes through a date/datetime) into a timezone-aware UTC datetime.
    Naive values are taken to be UTC.
    Example: "2024-01-15" -> 2024-01-15 00:00:00+00:00
    """
    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, datetime.date):
        parsed = datetime.datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = parser.isoparse(value.strip())
    else:
        raise TypeError(f"Cannot parse a date from {type(value).__name__}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.astimezone(datetime.timezone.utc)


def parse_calendar_date(value) -> datetime.date:
    """
    Returns the UTC calendar date for a string, date or datetime.
    Example: "2024-01-15T23:30:00-05:00" -> date(2024, 1, 16)
    """
    if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        return value
    return parse_datetime(value).date()


def format_date(date_value: datetime.date, output_format: str = "%Y-%m-%d") -> str:
    """
    Formats a date as a string, ISO calendar format by default.
    Example: date(2024, 11, 18) -> "2024-11-18"
    """
    return date_value.strftime(output_format)


def filter_items_by_created_at(items: list, start_date: str, end_date: str) -> list:
    """
    Keeps the items whose 'created_at' falls within [start_date, end_date].
    Items with a missing or unreadable 'created_at' are dropped.

    :param items: List of Monday item dictionaries
    :param start_date: Inclusive lower bound (ISO string)
    :param end_date: Inclusive upper bound (ISO string)
    :return: Filtered list, original order preserved
    """
    start = parse_datetime(start_date)
    end = parse_datetime(end_date)
    kept = []
    for item in items:
        created_at = item.get('created_at') if isinstance(item, dict) else None
        if not created_at:
            continue
        try:
            created = parse_datetime(created_at)
        except (ValueError, OverflowError):
            continue
        if start <= created <= end:
            kept.append(item)
    return kept
