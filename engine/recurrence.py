# engine/recurrence.py
"""
Next-occurrence calculation for recurring tasks.

This module provides the date engine used by the task store and the preview
endpoint:
- Daily interval stepping with the "already due today" rule
- Yearly anniversaries with Feb 29 -> Mar 1 correction
- Monthly and weekly scans through dateutil.rrule
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Union

from dateutil.rrule import rrule, MONTHLY, DAILY

from .dates import as_date, anniversary, format_date, parse_date, parse_optional_date
from .errors import InvalidDate, InvalidRule
from .rules import Daily, Monthly, Rule, Weekly, Yearly, parse_rule

logger = logging.getLogger(__name__)

# Any reachable monthly rule matches within 8 years (Feb 29 across a skipped
# century leap year), so the scan window is bounded.
_SCAN_HORIZON = timedelta(days=366 * 9)


def next_occurrence(today: Union[date, datetime], anchor: Optional[date],
                    rule: Union[str, Rule]) -> date:
    """
    Calculate the next date a recurring task falls due.

    Args:
        today: Current date (a datetime is truncated to its date)
        anchor: The task's stored date; None means "today"
        rule: Rule text or an already-parsed Rule

    Returns:
        The next occurrence date

    Raises:
        InvalidRule: If the rule text is invalid
        InvalidDate: If the next occurrence falls outside the calendar
    """
    today = as_date(today)
    anchor = as_date(anchor) if anchor is not None else today
    if isinstance(rule, str):
        rule = parse_rule(rule)

    try:
        if isinstance(rule, Daily):
            result = _next_daily(today, anchor, rule.interval)
        elif isinstance(rule, Yearly):
            result = _next_yearly(today, anchor)
        elif isinstance(rule, Monthly):
            result = _next_monthly(max(anchor, today), rule)
        elif isinstance(rule, Weekly):
            result = _next_weekly(max(anchor, today), rule)
        else:
            raise InvalidRule(f"Unsupported rule type: {type(rule).__name__}")
    except (OverflowError, ValueError) as e:
        # Stepping past 9999-12-31
        raise InvalidDate(f"Date out of range for rule '{rule}': {format_date(anchor)}") from e

    logger.debug(f"Next occurrence for '{rule}' (today={today}, anchor={anchor}): {result}")
    return result


def _next_daily(today: date, anchor: date, interval: int) -> date:
    if anchor < today:
        steps = (today - anchor).days // interval + 1
        result = anchor + timedelta(days=interval * steps)
    elif anchor == today:
        result = today
    else:
        result = anchor + timedelta(days=interval)
    return anniversary(result.month, result.day, result.year)


def _next_yearly(today: date, anchor: date) -> date:
    if anchor.year < today.year:
        # Realign an old anchor to the current year without iterating; the
        # result may already be behind today.
        return anniversary(anchor.month, anchor.day, today.year)
    return anniversary(anchor.month, anchor.day, anchor.year + 1)


def _scan_until(start: datetime, span: timedelta) -> datetime:
    try:
        return start + span
    except OverflowError:
        return datetime.max


def _scan(rule_set: rrule, reference: date, rule: Rule) -> date:
    start = datetime.combine(reference, time())
    found = rule_set.after(start, inc=False)
    if found is None:
        # Parsed rules always recur, so only the end of the calendar stops the scan.
        raise InvalidDate(f"Date out of range: '{rule}' has no occurrence after {format_date(reference)}")
    return found.date()


def _next_monthly(reference: date, rule: Monthly) -> date:
    start = datetime.combine(reference.replace(day=1), time())
    rule_set = rrule(
        MONTHLY,
        dtstart=start,
        bymonthday=sorted(rule.days),
        bymonth=sorted(rule.months) or None,
        until=_scan_until(start, _SCAN_HORIZON),
    )
    return _scan(rule_set, reference, rule)


def _next_weekly(reference: date, rule: Weekly) -> date:
    start = datetime.combine(reference, time())
    rule_set = rrule(
        DAILY,
        dtstart=start,
        # dateutil counts weekdays from Monday = 0
        byweekday=[weekday - 1 for weekday in sorted(rule.weekdays)],
        until=_scan_until(start, timedelta(days=8)),
    )
    return _scan(rule_set, reference, rule)


def next_date(now: Union[str, date, datetime], date_text: Optional[str], repeat: str) -> str:
    """
    String-level wrapper around next_occurrence for the YYYYMMDD wire format.

    Args:
        now: Current date as a date or YYYYMMDD text
        date_text: Anchor date text; empty or None means "no anchor"
        repeat: Rule text

    Returns:
        Next occurrence formatted as YYYYMMDD

    Raises:
        InvalidDate: If ``now`` or a non-empty ``date_text`` is malformed
        InvalidRule: If the rule is invalid
    """
    if isinstance(now, str):
        now = parse_date(now)
    anchor = parse_optional_date(date_text)
    return format_date(next_occurrence(now, anchor, repeat))


def upcoming(today: Union[date, datetime], anchor: Optional[date],
             rule: Union[str, Rule], count: int = 5) -> List[date]:
    """
    Preview the next ``count`` occurrences of a rule.

    The first date is next_occurrence(today, anchor, rule); every following
    date is one period after the previous one.
    """
    if isinstance(rule, str):
        rule = parse_rule(rule)

    occurrences = []
    if count < 1:
        return occurrences
    current = next_occurrence(today, anchor, rule)
    occurrences.append(current)
    while len(occurrences) < count:
        # Seen from the day before, the previous date is still ahead and
        # every rule advances exactly one period past it.
        try:
            day_before = current - timedelta(days=1)
        except OverflowError as e:
            raise InvalidDate(f"Date out of range: {format_date(current)}") from e
        current = next_occurrence(day_before, current, rule)
        occurrences.append(current)
    return occurrences
