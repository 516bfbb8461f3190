"""
Task Planner Engine Module

This module provides the recurrence-date engine, including:
- Repeat rule parsing and validation
- Next-occurrence calculation
- YYYYMMDD date helpers
"""

from .errors import SchedulerError, InvalidDate, InvalidRule, TaskNotFound, TaskValidationError
from .dates import parse_date, format_date, is_leap_year, today
from .rules import Daily, Yearly, Monthly, Weekly, Rule, parse_rule, validate_rule
from .recurrence import next_occurrence, next_date, upcoming

__version__ = "1.0.0"

__all__ = [
    'SchedulerError',
    'InvalidDate',
    'InvalidRule',
    'TaskNotFound',
    'TaskValidationError',
    'parse_date',
    'format_date',
    'is_leap_year',
    'today',
    'Daily',
    'Yearly',
    'Monthly',
    'Weekly',
    'Rule',
    'parse_rule',
    'validate_rule',
    'next_occurrence',
    'next_date',
    'upcoming',
]
