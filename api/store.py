"""
SQLite task store.

Persists tasks through SQLAlchemy and calls the recurrence engine to
validate repeat rules on insert/update and to advance dates on completion.
A store instance is created once per application and handed to request
handlers through FastAPI dependencies.
"""

from contextlib import contextmanager
from datetime import date, timedelta
from typing import Callable, Iterator, List, Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from engine import (
    InvalidRule, Rule, TaskNotFound, TaskValidationError,
    format_date, next_occurrence, parse_date, parse_rule, today,
)
from engine.dates import parse_optional_date
from observability.logging import set_request_context, store_logger
from observability.metrics import SchedulerMetrics, planner_metrics

from .models import Task

DEFAULT_LIST_LIMIT = 50

# SQLite INTEGER is a signed 64-bit value
MAX_TASK_ID = 2 ** 63 - 1

TaskId = Union[int, str]


class TaskStore:
    """
    Task persistence with date normalization.

    Stored dates are never in the past: a past date is clamped to today for
    one-shot tasks and moved to the next occurrence for recurring ones.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Callable[[], date] = today,
        metrics: SchedulerMetrics = planner_metrics,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self.metrics = metrics

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def today(self) -> date:
        return self._clock()

    # ---- validation helpers ----

    @staticmethod
    def _coerce_id(task_id: TaskId) -> int:
        if isinstance(task_id, int) and not isinstance(task_id, bool):
            value = task_id
        else:
            raw = str(task_id).strip()
            if not raw.isdigit():
                raise TaskNotFound(task_id)
            value = int(raw)
        if not 0 < value <= MAX_TASK_ID:
            raise TaskNotFound(task_id)
        return value

    @staticmethod
    def _rule_kind(repeat: Optional[str]) -> Optional[str]:
        if not repeat:
            return None
        try:
            return parse_rule(repeat).kind
        except InvalidRule:
            return None

    def _normalize(self, *, title: str, date_text: Optional[str], repeat: Optional[str]):
        """Validate task fields and return (title, date, repeat) ready for storage."""
        title = (title or "").strip()
        if not title:
            raise TaskValidationError("Task title is required")

        repeat = (repeat or "").strip()
        current = self.today()
        task_date = parse_optional_date(date_text) or current

        if repeat:
            try:
                rule = parse_rule(repeat)
            except InvalidRule as e:
                store_logger.rule_rejected(repeat, str(e))
                self.metrics.record_next_date(None, success=False)
                raise
            if task_date < current:
                task_date = self._next_due(task_date, rule)
            self.metrics.record_next_date(rule.kind, success=True)
        elif task_date < current:
            task_date = current

        return title, format_date(task_date), repeat

    def _next_due(self, anchor: date, rule: Rule, after_anchor: bool = False) -> date:
        """
        Next occurrence of ``rule`` that is not before today.

        With ``after_anchor`` the result is also strictly after ``anchor``,
        which completion needs for a daily task due today.
        """
        current = self.today()
        due = next_occurrence(current, anchor, rule)
        while due < current or (after_anchor and due <= anchor):
            # Seen from the day before, every rule moves one period past ``due``.
            due = next_occurrence(due - timedelta(days=1), due, rule)
        return due

    def _get(self, db: Session, task_id: TaskId) -> Task:
        task = db.query(Task).filter(Task.id == self._coerce_id(task_id)).first()
        if task is None:
            raise TaskNotFound(task_id)
        set_request_context(task_id=str(task.id))
        return task

    # ---- public API ----

    def count(self) -> int:
        with self._session() as db:
            return int(db.query(func.count(Task.id)).scalar() or 0)

    def insert(self, *, title: str, date: str = "", comment: str = "", repeat: str = "") -> int:
        """Store a new task and return its id."""
        title, task_date, repeat = self._normalize(title=title, date_text=date, repeat=repeat)

        with self._session() as db:
            task = Task(date=task_date, title=title, comment=comment or "", repeat=repeat)
            db.add(task)
            db.commit()
            db.refresh(task)
            task_id = task.id

        set_request_context(task_id=str(task_id))
        store_logger.task_created(task_id, task_date, repeat)
        self.metrics.record_task_operation("created", self._rule_kind(repeat))
        return task_id

    def update(self, task_id: TaskId, *, title: str, date: str = "",
               comment: str = "", repeat: str = "") -> Task:
        """Replace all fields of an existing task."""
        title, task_date, repeat = self._normalize(title=title, date_text=date, repeat=repeat)

        with self._session() as db:
            task = self._get(db, task_id)
            task.date = task_date
            task.title = title
            task.comment = comment or ""
            task.repeat = repeat
            db.commit()
            db.refresh(task)

        store_logger.task_updated(task.id, task_date, repeat)
        self.metrics.record_task_operation("updated", self._rule_kind(repeat))
        return task

    def get(self, task_id: TaskId) -> Task:
        with self._session() as db:
            return self._get(db, task_id)

    def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Task]:
        """Tasks ordered by date (earliest first), at most ``limit`` of them."""
        with self._session() as db:
            return (
                db.query(Task)
                .order_by(Task.date.asc(), Task.id.asc())
                .limit(int(limit))
                .all()
            )

    def delete(self, task_id: TaskId) -> None:
        with self._session() as db:
            task = self._get(db, task_id)
            kind = self._rule_kind(task.repeat)
            db.delete(task)
            db.commit()

        store_logger.task_deleted(task_id)
        self.metrics.record_task_operation("deleted", kind)

    def complete(self, task_id: TaskId) -> Optional[Task]:
        """
        Mark a task done.

        One-shot tasks are deleted and None is returned. Recurring tasks move
        to their next occurrence; the updated task is returned.
        """
        with self._session() as db:
            task = self._get(db, task_id)

            if not task.is_recurring:
                db.delete(task)
                db.commit()
                store_logger.task_completed(task.id, None)
                self.metrics.record_task_operation("completed", None)
                return None

            rule = parse_rule(task.repeat)
            next_due = self._next_due(parse_date(task.date), rule, after_anchor=True)
            self.metrics.record_next_date(rule.kind, success=True)

            task.date = format_date(next_due)
            db.commit()
            db.refresh(task)

        store_logger.task_completed(task.id, task.date)
        self.metrics.record_task_operation("completed", rule.kind)
        return task
