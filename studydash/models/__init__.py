"""Data models for studydash."""

from studydash.models.items import (
    ItemKind,
    ItemStatus,
    ExamStatus,
    Task,
    Deadline,
    Exam,
    WorkItem,
    CalendarEvent,
)
from studydash.models.recurrence import (
    RecurrenceType,
    RecurrenceRule,
    RecurrencePattern,
    PatternCreate,
    PatternUpdate,
    GenerationReport,
)
from studydash.models.user import User

__all__ = [
    "ItemKind",
    "ItemStatus",
    "ExamStatus",
    "Task",
    "Deadline",
    "Exam",
    "WorkItem",
    "CalendarEvent",
    "RecurrenceType",
    "RecurrenceRule",
    "RecurrencePattern",
    "PatternCreate",
    "PatternUpdate",
    "GenerationReport",
    "User",
]
