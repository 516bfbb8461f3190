# engine/errors.py
"""
Exception hierarchy shared by the recurrence engine, the task store and the API.
"""


class SchedulerError(Exception):
    """Base exception for task planner errors."""
    pass


class InvalidDate(SchedulerError):
    """Raised when a date string is not a valid YYYYMMDD calendar date."""
    pass


class InvalidRule(SchedulerError):
    """Raised when a repeat rule violates the grammar or holds out-of-range values."""
    pass


class TaskNotFound(SchedulerError):
    """Raised when a referenced task does not exist."""

    def __init__(self, task_id):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class TaskValidationError(SchedulerError):
    """Raised when task fields fail validation (e.g. empty title)."""
    pass
