"""Month identifier helpers.

Months are keyed by their canonical ``YYYY-MM`` string.
"""

from datetime import date, datetime

from dateutil.relativedelta import relativedelta


def month_key(day: date) -> str:
    """Return the YYYY-MM identifier for the month containing ``day``."""
    return f"{day.year:04d}-{day.month:02d}"


def parse_month_key(key: str) -> date:
    """Parse a YYYY-MM identifier into the first day of that month.

    Raises:
        ValueError: If key is not a valid YYYY-MM identifier
    """
    try:
        parsed = datetime.strptime(key.strip(), "%Y-%m")
    except (AttributeError, ValueError) as e:
        raise ValueError(f"Invalid month identifier '{key}': expected YYYY-MM") from e
    return parsed.date()


def next_month_key(key: str) -> str:
    """Return the identifier of the month following ``key``."""
    return month_key(parse_month_key(key) + relativedelta(months=1))


def month_label(key: str) -> str:
    """Human readable month name, e.g. '2024-01' -> 'January 2024'."""
    return parse_month_key(key).strftime("%B %Y")
