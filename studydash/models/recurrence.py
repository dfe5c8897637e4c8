"""Recurrence models for studydash.

A recurring pattern is a rule (how often) plus a template (what to create) and
end conditions (how long). The generic engine only reads the rule and the end
conditions; the template is interpreted by the per-kind adapters.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from studydash.models.items import ItemKind


class RecurrenceType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class RecurrenceRule(BaseModel):
    """Rule half of a pattern: the input of the stepping function.

    Notes:
    - days_of_week uses 0=Sunday..6=Saturday.
    - Values are not range-checked here; out-of-range entries are ignored by the
      stepping function so a bad stored rule degrades instead of failing.
    """

    recurrence_type: RecurrenceType
    interval_days: Optional[int] = Field(None, description="Every N days (custom only)")
    days_of_week: List[int] = Field(default_factory=list, description="Weekly/biweekly weekdays, 0=Sunday")
    days_of_month: List[int] = Field(default_factory=list, description="Monthly days of month, 1-31")

    @field_validator("days_of_week", "days_of_month", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return [] if v is None else v


class RecurrencePattern(BaseModel):
    """Persisted recurring pattern."""

    id: str = Field(..., description="Unique pattern identifier (UUID v4)")
    user_id: str = Field(..., description="Owner user id")
    item_kind: ItemKind = Field(..., description="Which kind of item the pattern generates")

    recurrence_type: RecurrenceType
    interval_days: Optional[int] = None
    days_of_week: List[int] = Field(default_factory=list)
    days_of_month: List[int] = Field(default_factory=list)

    # Range / end conditions
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    occurrence_count: Optional[int] = None

    # Generation bookkeeping
    instance_count: int = Field(0, ge=0, description="Instances ever created for this pattern")
    last_generated: Optional[datetime] = None
    generated_through: Optional[date] = Field(None, description="Window end reached by the last generation pass")
    is_active: bool = True

    template: Dict[str, Any] = Field(default_factory=dict, description="Fields copied onto every instance")

    created_at: datetime
    updated_at: datetime

    @field_validator("days_of_week", "days_of_month", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return [] if v is None else v

    @property
    def rule(self) -> RecurrenceRule:
        return RecurrenceRule(
            recurrence_type=self.recurrence_type,
            interval_days=self.interval_days,
            days_of_week=self.days_of_week,
            days_of_month=self.days_of_month,
        )

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class PatternCreate(BaseModel):
    """Input for creating a pattern (rule + end conditions + template)."""

    item_kind: ItemKind
    recurrence_type: RecurrenceType
    interval_days: Optional[int] = Field(None, ge=1)
    days_of_week: List[int] = Field(default_factory=list)
    days_of_month: List[int] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    occurrence_count: Optional[int] = Field(None, ge=1)
    template: Dict[str, Any]

    @field_validator("days_of_week")
    @classmethod
    def _validate_days_of_week(cls, v):
        out = sorted(set(v))
        if any(d < 0 or d > 6 for d in out):
            raise ValueError("days_of_week entries must be 0 (Sunday) .. 6 (Saturday)")
        return out

    @field_validator("days_of_month")
    @classmethod
    def _validate_days_of_month(cls, v):
        out = sorted(set(v))
        if any(d < 1 or d > 31 for d in out):
            raise ValueError("days_of_month entries must be 1 .. 31")
        return out

    @field_validator("end_date")
    @classmethod
    def _validate_end_date(cls, v, info):
        start = info.data.get("start_date")
        if v is not None and start is not None and v < start:
            raise ValueError("end_date must be >= start_date")
        return v


class PatternUpdate(BaseModel):
    """Partial update of a pattern. Only fields present in the payload change.

    The rule fields are accepted so they can be refused with a clear message:
    editing the rule of a live pattern is unsupported (deactivate it and create a
    new one instead).
    """

    template: Optional[Dict[str, Any]] = None
    end_date: Optional[date] = None
    occurrence_count: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None

    recurrence_type: Optional[Any] = None
    interval_days: Optional[Any] = None
    days_of_week: Optional[Any] = None
    days_of_month: Optional[Any] = None
    start_date: Optional[Any] = None


RULE_FIELDS = frozenset({"recurrence_type", "interval_days", "days_of_week", "days_of_month", "start_date"})


class PatternError(BaseModel):
    pattern_id: str
    error: str


class GenerationReport(BaseModel):
    """Outcome of one batch extension pass."""

    patterns_processed: int = 0
    instances_created: int = 0
    errors: List[PatternError] = Field(default_factory=list)

    def merge(self, other: "GenerationReport") -> "GenerationReport":
        return GenerationReport(
            patterns_processed=self.patterns_processed + other.patterns_processed,
            instances_created=self.instances_created + other.instances_created,
            errors=[*self.errors, *other.errors],
        )
