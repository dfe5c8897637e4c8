"""Exceptions raised by the recurrence engine."""


class RecurrenceError(Exception):
    """Base class for recurrence engine errors."""


class TemplateError(RecurrenceError, ValueError):
    """A pattern template cannot produce items of its kind (e.g. an exam without a time)."""


class PatternNotFoundError(RecurrenceError, LookupError):
    """No pattern with that id exists for the user."""


class PatternCreationError(RecurrenceError):
    """The initial batch of a new pattern failed; the pattern was removed again."""


class PatternUpdateError(RecurrenceError, ValueError):
    """A pattern update asks for something that cannot be changed in place."""
