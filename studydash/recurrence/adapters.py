"""Per-kind template adapters.

The window generator is kind-agnostic. An adapter tells it, for one item kind,
how to read the pattern template and how to merge a time of day onto an
occurrence date to build the item.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import Dict, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from studydash.database.models import enum_to_value
from studydash.models.items import (
    BaseItem,
    CalendarEvent,
    Deadline,
    Exam,
    ExamStatus,
    ItemKind,
    ItemStatus,
    Task,
    WorkItem,
)
from studydash.models.recurrence import RecurrencePattern
from studydash.models.templates import (
    CalendarEventTemplate,
    DeadlineTemplate,
    ExamTemplate,
    ItemTemplate,
    TaskTemplate,
    WorkItemTemplate,
)
from studydash.recurrence.errors import TemplateError


def merge_time(day: date, time_of_day: time) -> datetime:
    return datetime.combine(day, time_of_day.replace(second=0, microsecond=0))


class TemplateAdapter:
    """Strategy for one item kind."""

    kind: ItemKind
    template_model: Type[ItemTemplate]
    item_model: Type[BaseItem]
    # Whether active-list views collapse a pattern's open instances to one row.
    collapsible: bool = True

    def parse_template(self, raw: Union[dict, BaseModel]) -> ItemTemplate:
        """Validate a template payload, raising TemplateError when it is unusable."""
        if isinstance(raw, BaseModel):
            raw = raw.model_dump()
        try:
            return self.template_model.model_validate(raw or {})
        except ValidationError as e:
            raise TemplateError(f"Invalid {self.kind.value} template: {e}") from e

    def normalize_template(self, raw: Union[dict, BaseModel]) -> dict:
        """Validated template as the JSON document stored on the pattern."""
        return self.parse_template(raw).model_dump(mode="json")

    def item_fields(self, template: ItemTemplate, day: date) -> dict:
        raise NotImplementedError

    def build_instance(self, pattern: RecurrencePattern, day: date, now: Optional[datetime] = None) -> BaseItem:
        """Materialize the occurrence of `pattern` on `day` (template fields copied, not linked)."""
        now = now or datetime.utcnow()
        template = self.parse_template(pattern.template)
        return self.item_model(
            id=str(uuid.uuid4()),
            user_id=pattern.user_id,
            title=template.title,
            created_at=now,
            updated_at=now,
            recurring_pattern_id=pattern.id,
            instance_date=day,
            is_recurring=True,
            **self.item_fields(template, day),
        )


class TaskAdapter(TemplateAdapter):
    kind = ItemKind.TASK
    template_model = TaskTemplate
    item_model = Task

    def item_fields(self, template: TaskTemplate, day: date) -> dict:
        return {
            "course_id": template.course_id,
            "due_at": merge_time(day, template.due_time),
            "pinned": template.pinned,
            "importance": template.importance,
            "checklist": [dict(entry) for entry in template.checklist],
            "notes": template.notes,
            "tags": list(template.tags),
            "links": [link.model_dump() for link in template.links],
            "status": ItemStatus.OPEN,
        }


class DeadlineAdapter(TemplateAdapter):
    kind = ItemKind.DEADLINE
    template_model = DeadlineTemplate
    item_model = Deadline

    def item_fields(self, template: DeadlineTemplate, day: date) -> dict:
        return {
            "course_id": template.course_id,
            "due_at": merge_time(day, template.due_time),
            "priority": template.priority,
            "effort": template.effort,
            "notes": template.notes,
            "tags": list(template.tags),
            "links": [link.model_dump() for link in template.links],
            "status": ItemStatus.OPEN,
        }


class ExamAdapter(TemplateAdapter):
    kind = ItemKind.EXAM
    template_model = ExamTemplate
    item_model = Exam

    def item_fields(self, template: ExamTemplate, day: date) -> dict:
        return {
            "course_id": template.course_id,
            "exam_at": merge_time(day, template.exam_time),
            "location": template.location,
            "notes": template.notes,
            "tags": list(template.tags),
            "links": [link.model_dump() for link in template.links],
            "status": ExamStatus.SCHEDULED,
        }


class WorkItemAdapter(TemplateAdapter):
    kind = ItemKind.WORK_ITEM
    template_model = WorkItemTemplate
    item_model = WorkItem

    def item_fields(self, template: WorkItemTemplate, day: date) -> dict:
        return {
            "type": template.type,
            "course_id": template.course_id,
            "due_at": merge_time(day, template.due_time),
            "priority": template.priority,
            "effort": template.effort,
            "pinned": template.pinned,
            "checklist": [dict(entry) for entry in template.checklist],
            "notes": template.notes,
            "tags": list(template.tags),
            "links": [link.model_dump() for link in template.links],
            "status": ItemStatus.OPEN,
        }


class CalendarEventAdapter(TemplateAdapter):
    kind = ItemKind.CALENDAR_EVENT
    template_model = CalendarEventTemplate
    item_model = CalendarEvent
    collapsible = False

    def item_fields(self, template: CalendarEventTemplate, day: date) -> dict:
        if template.all_day:
            start_at, end_at = merge_time(day, time(0, 0)), None
        else:
            start_at = merge_time(day, template.start_time or time(0, 0))
            end_at = merge_time(day, template.end_time) if template.end_time else None
        return {
            "description": template.description,
            "start_at": start_at,
            "end_at": end_at,
            "all_day": template.all_day,
            "color": template.color,
            "location": template.location,
        }


ADAPTERS: Dict[ItemKind, TemplateAdapter] = {
    adapter.kind: adapter
    for adapter in (
        TaskAdapter(),
        DeadlineAdapter(),
        ExamAdapter(),
        WorkItemAdapter(),
        CalendarEventAdapter(),
    )
}


def get_adapter(kind: Union[str, ItemKind]) -> TemplateAdapter:
    return ADAPTERS[ItemKind(enum_to_value(kind))]
