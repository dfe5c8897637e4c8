"""SQLAlchemy database models for studydash."""

from datetime import datetime
from typing import Union, TypeVar
import uuid
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import declared_attr

from studydash.database.database import Base
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
from studydash.models.recurrence import RecurrencePattern

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from studydash.models.user import User
        return User(
            id=self.id,
            email=self.email,
            name=self.name,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class RecurrencePatternDB(Base):
    """Database model for a recurring pattern (rule + end conditions + template)."""

    __tablename__ = "recurring_patterns"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    item_kind = Column(String, nullable=False, index=True)

    # Rule
    recurrence_type = Column(String, nullable=False)
    interval_days = Column(Integer, nullable=True)
    days_of_week = Column(JSON, nullable=False, default=list)
    days_of_month = Column(JSON, nullable=False, default=list)

    # Range / end conditions
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    occurrence_count = Column(Integer, nullable=True)

    # Generation bookkeeping
    instance_count = Column(Integer, nullable=False, default=0)
    last_generated = Column(DateTime, nullable=True)
    generated_through = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    template = Column(JSON, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self) -> RecurrencePattern:
        """Convert database model to Pydantic model.

        Raises pydantic.ValidationError for corrupt rows; callers that iterate many
        patterns convert one row at a time so one bad row stays isolated.
        """
        return RecurrencePattern(
            id=self.id,
            user_id=self.user_id,
            item_kind=self.item_kind,
            recurrence_type=self.recurrence_type,
            interval_days=self.interval_days,
            days_of_week=self.days_of_week or [],
            days_of_month=self.days_of_month or [],
            start_date=self.start_date,
            end_date=self.end_date,
            occurrence_count=self.occurrence_count,
            instance_count=self.instance_count or 0,
            last_generated=self.last_generated,
            generated_through=self.generated_through,
            is_active=self.is_active,
            template=self.template or {},
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, pattern: RecurrencePattern):
        """Create database model from Pydantic model."""
        return cls(
            id=pattern.id,
            user_id=pattern.user_id,
            item_kind=enum_to_value(pattern.item_kind),
            recurrence_type=enum_to_value(pattern.recurrence_type),
            interval_days=pattern.interval_days,
            days_of_week=list(pattern.days_of_week),
            days_of_month=list(pattern.days_of_month),
            start_date=pattern.start_date,
            end_date=pattern.end_date,
            occurrence_count=pattern.occurrence_count,
            instance_count=pattern.instance_count,
            last_generated=pattern.last_generated,
            generated_through=pattern.generated_through,
            is_active=pattern.is_active,
            template=pattern.template,
            created_at=pattern.created_at,
            updated_at=pattern.updated_at,
        )


class ItemRowMixin:
    """Columns and conversions shared by every item table.

    Each table carries the recurrence linkage and a uniqueness constraint on
    (recurring_pattern_id, instance_date) so that two generation passes racing on
    the same pattern cannot both insert the same occurrence. NULL pattern ids
    (non-recurring items) do not participate.
    """

    pydantic_model = None

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    instance_date = Column(Date, nullable=True, index=True)
    is_recurring = Column(Boolean, nullable=False, default=False)

    @declared_attr
    def user_id(cls):
        return Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    @declared_attr
    def recurring_pattern_id(cls):
        return Column(
            String,
            ForeignKey("recurring_patterns.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        )

    @declared_attr
    def __table_args__(cls):
        return (
            UniqueConstraint(
                "recurring_pattern_id",
                "instance_date",
                name=f"uq_{cls.__tablename__}_pattern_instance_date",
            ),
        )

    def to_pydantic(self):
        """Convert database row to the kind's Pydantic model."""
        data = {column.name: getattr(self, column.name) for column in self.__table__.columns}
        return self.pydantic_model.model_validate(data)

    @classmethod
    def from_pydantic(cls, item):
        """Create database row from a Pydantic item (enum fields are already plain values)."""
        columns = set(cls.__table__.columns.keys())
        return cls(**{k: v for k, v in item.model_dump().items() if k in columns})


class TaskDB(ItemRowMixin, Base):
    """Database model for Task."""

    __tablename__ = "tasks"
    pydantic_model = Task

    course_id = Column(String, nullable=True, index=True)
    due_at = Column(DateTime, nullable=True)
    pinned = Column(Boolean, nullable=False, default=False)
    importance = Column(String, nullable=True)
    checklist = Column(JSON, nullable=False, default=list)
    notes = Column(String, nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    links = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default=ItemStatus.OPEN.value, index=True)
    working_on = Column(Boolean, nullable=False, default=False)


class DeadlineDB(ItemRowMixin, Base):
    """Database model for Deadline."""

    __tablename__ = "deadlines"
    pydantic_model = Deadline

    course_id = Column(String, nullable=True, index=True)
    due_at = Column(DateTime, nullable=True)
    priority = Column(Integer, nullable=True)
    effort = Column(String, nullable=True)
    notes = Column(String, nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    links = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default=ItemStatus.OPEN.value, index=True)
    working_on = Column(Boolean, nullable=False, default=False)


class ExamDB(ItemRowMixin, Base):
    """Database model for Exam."""

    __tablename__ = "exams"
    pydantic_model = Exam

    course_id = Column(String, nullable=True, index=True)
    exam_at = Column(DateTime, nullable=True)
    location = Column(String, nullable=True)
    notes = Column(String, nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    links = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default=ExamStatus.SCHEDULED.value, index=True)


class WorkItemDB(ItemRowMixin, Base):
    """Database model for WorkItem (tasks, assignments, readings, projects)."""

    __tablename__ = "work_items"
    pydantic_model = WorkItem

    type = Column(String, nullable=False, default="task")
    course_id = Column(String, nullable=True, index=True)
    due_at = Column(DateTime, nullable=True)
    priority = Column(String, nullable=True)
    effort = Column(String, nullable=True)
    pinned = Column(Boolean, nullable=False, default=False)
    checklist = Column(JSON, nullable=False, default=list)
    notes = Column(String, nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    links = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default=ItemStatus.OPEN.value, index=True)
    working_on = Column(Boolean, nullable=False, default=False)


class CalendarEventDB(ItemRowMixin, Base):
    """Database model for CalendarEvent."""

    __tablename__ = "calendar_events"
    pydantic_model = CalendarEvent

    description = Column(String, nullable=False, default="")
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=True)
    all_day = Column(Boolean, nullable=False, default=False)
    color = Column(String, nullable=True)
    location = Column(String, nullable=True)


ITEM_TABLES = {
    ItemKind.TASK: TaskDB,
    ItemKind.DEADLINE: DeadlineDB,
    ItemKind.EXAM: ExamDB,
    ItemKind.WORK_ITEM: WorkItemDB,
    ItemKind.CALENDAR_EVENT: CalendarEventDB,
}


def item_table(kind: Union[str, ItemKind]):
    """Return the table model storing items of the given kind."""
    return ITEM_TABLES[ItemKind(enum_to_value(kind))]
