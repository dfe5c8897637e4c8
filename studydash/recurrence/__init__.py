"""Recurrence expansion engine for studydash."""

from studydash.recurrence.stepping import next_occurrence, first_occurrence
from studydash.recurrence.adapters import TemplateAdapter, get_adapter
from studydash.recurrence.generator import extend
from studydash.recurrence.collapse import collapse_active_view
from studydash.recurrence.errors import (
    RecurrenceError,
    TemplateError,
    PatternNotFoundError,
    PatternCreationError,
    PatternUpdateError,
)

__all__ = [
    "next_occurrence",
    "first_occurrence",
    "TemplateAdapter",
    "get_adapter",
    "extend",
    "collapse_active_view",
    "RecurrenceError",
    "TemplateError",
    "PatternNotFoundError",
    "PatternCreationError",
    "PatternUpdateError",
]
