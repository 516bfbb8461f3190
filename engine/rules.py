# engine/rules.py
"""
Repeat rule grammar for recurring tasks.

Rule text is parsed once into an immutable tagged variant:
- ``d <n>``                  Daily(interval=n), 1 <= n <= 400
- ``y``                      Yearly()
- ``m <days>[ <months>]``    Monthly(days, months), days in [-31, 31] without 0,
                             months in [1, 12] (omitted = every month)
- ``w <weekdays>``           Weekly(weekdays), 1=Monday .. 7=Sunday
"""

import re
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Union

from .errors import InvalidRule

logger = logging.getLogger(__name__)

MAX_RULE_LENGTH = 128
MAX_DAILY_INTERVAL = 400

# Longest possible length of each month (February counted in a leap year).
MONTH_MAX_DAYS = {
    1: 31, 2: 29, 3: 31, 4: 30, 5: 31, 6: 30,
    7: 31, 8: 31, 9: 30, 10: 31, 11: 30, 12: 31,
}

_INT_PATTERN = re.compile(r"^-?\d+$")


def _join(values: Iterable[int]) -> str:
    return ",".join(str(v) for v in sorted(values))


@dataclass(frozen=True)
class Daily:
    interval: int
    kind = "daily"

    def __str__(self) -> str:
        return f"d {self.interval}"


@dataclass(frozen=True)
class Yearly:
    kind = "yearly"

    def __str__(self) -> str:
        return "y"


@dataclass(frozen=True)
class Monthly:
    days: FrozenSet[int]
    months: FrozenSet[int] = frozenset()
    kind = "monthly"

    def applies_to(self, month: int) -> bool:
        return not self.months or month in self.months

    def __str__(self) -> str:
        text = f"m {_join(self.days)}"
        if self.months:
            text += f" {_join(self.months)}"
        return text


@dataclass(frozen=True)
class Weekly:
    weekdays: FrozenSet[int]
    kind = "weekly"

    def __str__(self) -> str:
        return f"w {_join(self.weekdays)}"


Rule = Union[Daily, Yearly, Monthly, Weekly]


class RuleParser:
    """Parser and validator for repeat rule text."""

    def parse(self, text: str) -> Rule:
        """Parse rule text into a Rule.

        Args:
            text: Rule text such as ``"d 7"`` or ``"m 1,-1 1,6"``

        Returns:
            Parsed Daily, Yearly, Monthly or Weekly rule

        Raises:
            InvalidRule: If the text does not match the grammar or holds
                out-of-range values
        """
        if not isinstance(text, str):
            raise InvalidRule(f"Repeat rule must be text, got {type(text).__name__}")
        if len(text) > MAX_RULE_LENGTH:
            raise InvalidRule(f"Repeat rule longer than {MAX_RULE_LENGTH} characters")

        tokens = text.split()
        if not tokens:
            raise InvalidRule("Repeat rule is empty")

        head, args = tokens[0], tokens[1:]
        if head == "d":
            return self._parse_daily(text, args)
        if head == "y":
            if args:
                raise InvalidRule(f"Yearly rule takes no arguments: {text}")
            return Yearly()
        if head == "m":
            return self._parse_monthly(text, args)
        if head == "w":
            return self._parse_weekly(text, args)

        raise InvalidRule(f"Unsupported repeat rule: {text}")

    def _parse_daily(self, text: str, args) -> Daily:
        if len(args) != 1:
            raise InvalidRule(f"Daily rule expects exactly one interval: {text}")
        interval = self._parse_int(args[0], text)
        if not 1 <= interval <= MAX_DAILY_INTERVAL:
            raise InvalidRule(f"Daily interval must be between 1 and {MAX_DAILY_INTERVAL}: {text}")
        return Daily(interval)

    def _parse_monthly(self, text: str, args) -> Monthly:
        if len(args) not in (1, 2):
            raise InvalidRule(f"Monthly rule expects days and optional months: {text}")

        days = self._parse_int_list(args[0], text)
        for day in days:
            if day == 0 or not -31 <= day <= 31:
                raise InvalidRule(f"Invalid month day {day} in rule: {text}")

        months = frozenset()
        if len(args) == 2:
            months = self._parse_int_list(args[1], text)
            for month in months:
                if not 1 <= month <= 12:
                    raise InvalidRule(f"Invalid month {month} in rule: {text}")

        rule = Monthly(days=days, months=months)
        self._validate_monthly_reachable(rule, text)
        return rule

    def _parse_weekly(self, text: str, args) -> Weekly:
        if len(args) != 1:
            raise InvalidRule(f"Weekly rule expects one weekday list: {text}")
        weekdays = self._parse_int_list(args[0], text)
        for weekday in weekdays:
            if not 1 <= weekday <= 7:
                raise InvalidRule(f"Invalid weekday {weekday} in rule: {text}")
        return Weekly(weekdays)

    def _validate_monthly_reachable(self, rule: Monthly, text: str):
        """Reject day/month combinations that no calendar ever contains (e.g. Feb 30)."""
        months = [month for month in MONTH_MAX_DAYS if rule.applies_to(month)]
        for month in months:
            if any(abs(day) <= MONTH_MAX_DAYS[month] for day in rule.days):
                return
        raise InvalidRule(f"Repeat rule never matches a calendar date: {text}")

    @staticmethod
    def _parse_int(token: str, text: str) -> int:
        if not _INT_PATTERN.match(token):
            raise InvalidRule(f"Invalid number {token!r} in rule: {text}")
        return int(token)

    def _parse_int_list(self, token: str, text: str) -> FrozenSet[int]:
        return frozenset(self._parse_int(part, text) for part in token.split(","))


_parser = RuleParser()


def parse_rule(text: str) -> Rule:
    """Parse rule text with the shared parser. See RuleParser.parse."""
    return _parser.parse(text)


def validate_rule(text: str) -> bool:
    """Return True when the text parses; log and return False otherwise."""
    try:
        parse_rule(text)
        return True
    except InvalidRule as e:
        logger.debug(f"Repeat rule rejected: {e}")
        return False
