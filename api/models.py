"""
SQLAlchemy ORM model for stored tasks.

The table layout matches the database file used by the web client:
one ``scheduler`` table indexed by date.
"""

from sqlalchemy import Column, Integer, Text, CheckConstraint, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Task(Base):
    """
    A planned task.
    ``date`` is always a YYYYMMDD string; an empty ``repeat`` marks a one-shot task.
    """
    __tablename__ = "scheduler"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    comment = Column(Text, nullable=True, default="")
    repeat = Column(Text, nullable=True, default="")

    __table_args__ = (
        CheckConstraint("LENGTH(repeat) <= 128", name="ck_scheduler_repeat_length"),
        Index("scheduler_date", "date"),
        {"sqlite_autoincrement": True},
    )

    @property
    def is_recurring(self) -> bool:
        return bool(self.repeat)

    def __repr__(self):
        return f"<Task(id={self.id}, date='{self.date}', title='{self.title}', repeat='{self.repeat}')>"
