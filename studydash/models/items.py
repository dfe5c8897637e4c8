"""Item data models for studydash.

Five kinds of dated items can be generated by a recurring pattern. They share
the recurrence linkage fields (recurring_pattern_id, instance_date,
is_recurring) and otherwise carry their own fields.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ItemKind(str, Enum):
    """Item kind enumeration (one storage table per kind)."""
    TASK = "task"
    DEADLINE = "deadline"
    EXAM = "exam"
    WORK_ITEM = "work_item"
    CALENDAR_EVENT = "calendar_event"


class ItemStatus(str, Enum):
    """Status of tasks, deadlines and work items."""
    OPEN = "open"
    DONE = "done"


class ExamStatus(str, Enum):
    """Exam status enumeration."""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses after which an instance no longer counts as "open" for collapsing.
TERMINAL_STATUSES = frozenset(
    {ItemStatus.DONE.value, ExamStatus.COMPLETED.value, ExamStatus.CANCELLED.value}
)


class Importance(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Effort(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class WorkItemType(str, Enum):
    TASK = "task"
    ASSIGNMENT = "assignment"
    READING = "reading"
    PROJECT = "project"


class WorkItemPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Link(BaseModel):
    label: str = ""
    url: str


class BaseItem(BaseModel):
    """Fields common to every item kind."""

    id: str = Field(..., description="Unique item identifier (UUID v4)")
    user_id: str = Field(..., description="User ID who owns this item")
    title: str = Field(..., description="Item title")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    # Recurrence linkage (optional)
    recurring_pattern_id: Optional[str] = Field(
        None, description="If generated from a recurring pattern, the pattern id"
    )
    instance_date: Optional[date] = Field(
        None, description="Occurrence date this instance represents (the recurrence key)"
    )
    is_recurring: bool = Field(False, description="Whether the item was generated by a pattern")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class Task(BaseItem):
    course_id: Optional[str] = None
    due_at: Optional[datetime] = None
    pinned: bool = False
    importance: Optional[Importance] = None
    checklist: List[Dict[str, Any]] = Field(default_factory=list)
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)
    status: ItemStatus = ItemStatus.OPEN
    working_on: bool = False


class Deadline(BaseItem):
    course_id: Optional[str] = None
    due_at: Optional[datetime] = None
    priority: Optional[int] = Field(None, ge=1, le=3, description="1 = highest, 3 = lowest")
    effort: Optional[Effort] = None
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)
    status: ItemStatus = ItemStatus.OPEN
    working_on: bool = False


class Exam(BaseItem):
    course_id: Optional[str] = None
    exam_at: Optional[datetime] = None
    location: Optional[str] = None
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)
    status: ExamStatus = ExamStatus.SCHEDULED


class WorkItem(BaseItem):
    type: WorkItemType = WorkItemType.TASK
    course_id: Optional[str] = None
    due_at: Optional[datetime] = None
    priority: Optional[WorkItemPriority] = None
    effort: Optional[Effort] = None
    pinned: bool = False
    checklist: List[Dict[str, Any]] = Field(default_factory=list)
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)
    status: ItemStatus = ItemStatus.OPEN
    working_on: bool = False


class CalendarEvent(BaseItem):
    description: str = ""
    start_at: datetime
    end_at: Optional[datetime] = None
    all_day: bool = False
    color: Optional[str] = None
    location: Optional[str] = None
