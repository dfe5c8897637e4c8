"""Per-kind template payloads stored on a recurring pattern.

Templates are validated once, when the pattern is created. Generation re-reads
the stored JSON with the same models.
"""

from __future__ import annotations

from datetime import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from studydash.models.items import Effort, Importance, Link, WorkItemPriority, WorkItemType

END_OF_DAY = time(23, 59)


class ItemTemplate(BaseModel):
    """Fields shared by every kind of template."""

    title: str
    course_id: Optional[str] = None
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("title is required")
        return v

    @field_validator("notes", mode="before")
    @classmethod
    def _none_notes(cls, v):
        return "" if v is None else v

    @field_validator("links", mode="before")
    @classmethod
    def _normalize_links(cls, v):
        # Links without a url are dropped; a missing label falls back to the host.
        if v is None:
            return []
        out: List[Dict[str, Any]] = []
        for link in v:
            if isinstance(link, Link):
                link = link.model_dump()
            url = (link or {}).get("url")
            if not url:
                continue
            label = link.get("label") or urlparse(url).hostname or url
            out.append({"label": label, "url": url})
        return out

    @field_validator("due_time", mode="before", check_fields=False)
    @classmethod
    def _blank_due_time_is_end_of_day(cls, v):
        return END_OF_DAY if v in (None, "") else v

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskTemplate(ItemTemplate):
    due_time: time = END_OF_DAY
    importance: Optional[Importance] = None
    pinned: bool = False
    checklist: List[Dict[str, Any]] = Field(default_factory=list)


class DeadlineTemplate(ItemTemplate):
    due_time: time = END_OF_DAY
    priority: Optional[int] = Field(None, ge=1, le=3)
    effort: Optional[Effort] = None


class ExamTemplate(ItemTemplate):
    # Required: an exam without a time of day is a construction error.
    exam_time: time
    location: Optional[str] = None


class WorkItemTemplate(ItemTemplate):
    type: WorkItemType = WorkItemType.TASK
    due_time: time = END_OF_DAY
    priority: Optional[WorkItemPriority] = None
    effort: Optional[Effort] = None
    pinned: bool = False
    checklist: List[Dict[str, Any]] = Field(default_factory=list)


class CalendarEventTemplate(ItemTemplate):
    description: str = ""
    all_day: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    color: Optional[str] = None
    location: Optional[str] = None
