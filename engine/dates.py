# engine/dates.py
"""
Calendar date helpers for the YYYYMMDD wire format.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

from .errors import InvalidDate

DATE_FORMAT = "%Y%m%d"

_DATE_PATTERN = re.compile(r"^\d{8}$")


def today() -> date:
    """Current local calendar date."""
    return date.today()


def as_date(value: Union[date, datetime]) -> date:
    """Truncate a datetime to its calendar date; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_date(text: str) -> date:
    """Parse an 8-digit YYYYMMDD string.

    Raises:
        InvalidDate: If the text is not exactly eight digits or is not a real
            calendar date (e.g. 20230230).
    """
    if not isinstance(text, str) or not _DATE_PATTERN.match(text):
        raise InvalidDate(f"Invalid date {text!r}, expected YYYYMMDD")
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        raise InvalidDate(f"Invalid calendar date: {text}")


def parse_optional_date(text: Optional[str]) -> Optional[date]:
    """Parse a date string where empty/None means "absent"."""
    if text is None or text == "":
        return None
    return parse_date(text)


def format_date(value: Union[date, datetime]) -> str:
    return as_date(value).strftime(DATE_FORMAT)


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def anniversary(month: int, day: int, year: int) -> date:
    """Month/day placed in the given year, rolling Feb 29 to Mar 1 in non-leap years."""
    if month == 2 and day == 29 and not is_leap_year(year):
        return date(year, 3, 1)
    return date(year, month, day)
