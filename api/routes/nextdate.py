"""
Stateless next-date preview route.

Answers with plain text, matching what the web client expects: the computed
date on success, or the error message with status 400.
"""

from datetime import date
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import PlainTextResponse

from engine import InvalidDate, InvalidRule, format_date, next_date, parse_date, parse_rule, upcoming, validate_rule
from engine.dates import parse_optional_date, today
from observability.logging import api_logger
from observability.metrics import planner_metrics

router = APIRouter(prefix="/api", tags=["nextdate"])

MAX_PREVIEW_COUNT = 50


def get_clock(request: Request) -> Callable[[], date]:
    """Dependency returning the application's clock (today's date provider)."""
    return getattr(request.app.state, "clock", today)


def _rule_kind(repeat: str) -> Optional[str]:
    if not validate_rule(repeat):
        return None
    return parse_rule(repeat).kind


@router.get("/nextdate", response_class=PlainTextResponse)
def preview_next_date(
    now: Optional[str] = Query(None, description="Reference date YYYYMMDD (default: today)"),
    date_text: Optional[str] = Query(None, alias="date", description="Anchor date YYYYMMDD"),
    repeat: str = Query("", description="Repeat rule"),
    count: int = Query(1, ge=1, le=MAX_PREVIEW_COUNT, description="Number of dates to return"),
    clock: Callable[[], date] = Depends(get_clock),
) -> PlainTextResponse:
    """
    Compute the next occurrence of a repeat rule.

    With ``count`` > 1 the following occurrences are returned too, one per line.
    """
    try:
        reference = parse_date(now) if now else clock()
        if count == 1:
            body = next_date(reference, date_text, repeat)
        else:
            dates = upcoming(reference, parse_optional_date(date_text), repeat, count)
            body = "\n".join(format_date(d) for d in dates)
    except (InvalidDate, InvalidRule) as e:
        planner_metrics.record_next_date(_rule_kind(repeat), success=False)
        api_logger.debug("Next date preview rejected", repeat=repeat, reason=str(e))
        return PlainTextResponse(str(e), status_code=status.HTTP_400_BAD_REQUEST)

    planner_metrics.record_next_date(_rule_kind(repeat), success=True)
    return PlainTextResponse(body)
