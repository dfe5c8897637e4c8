"""Recurrence service: pattern lifecycle and batch extension over storage.

This is the layer the HTTP API (and the maintenance sweep) talk to. It wires
the pure window generator to the pattern and instance repositories:

- create_pattern: validate the template, persist the pattern, generate its
  initial batch; the pattern is removed again if that batch fails.
- update_pattern: template, end conditions and active flag; future generation only.
- extend_all_for_owner / extend_all: extend every active pattern of an owner
  (or of every owner) up to `now + window_days`. A failing pattern is logged
  and reported, and never stops the others.
- list_items: the read path. Extends the owner's patterns of that kind first,
  then reads, then collapses recurring rows for active views.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from studydash.database.instance_repository import InstanceRepository
from studydash.database.models import RecurrencePatternDB
from studydash.database.pattern_repository import RecurrencePatternRepository
from studydash.models.constants import (
    ACTIVE_VIEW_WINDOW_DAYS,
    CALENDAR_VIEW_WINDOW_DAYS,
    INITIAL_WINDOW_DAYS,
    REFRESH_INTERVAL_MINUTES,
    SWEEP_WINDOW_DAYS,
)
from studydash.models.items import BaseItem, ItemKind
from studydash.models.recurrence import (
    RULE_FIELDS,
    GenerationReport,
    PatternCreate,
    PatternError,
    PatternUpdate,
    RecurrencePattern,
)
from studydash.recurrence.adapters import get_adapter
from studydash.recurrence.collapse import collapse_active_view
from studydash.recurrence.errors import PatternCreationError, PatternNotFoundError, PatternUpdateError
from studydash.recurrence.generator import extend

logger = logging.getLogger(__name__)


class RecurrenceService:
    def __init__(self, db: Session):
        self.db = db
        self.patterns = RecurrencePatternRepository(db)

    def _instances(self, kind: Union[str, ItemKind]) -> InstanceRepository:
        return InstanceRepository(self.db, kind)

    def _require_pattern(self, user_id: str, pattern_id: str) -> RecurrencePattern:
        pattern = self.patterns.get(user_id, pattern_id)
        if pattern is None:
            raise PatternNotFoundError(f"Recurring pattern {pattern_id} not found")
        return pattern

    # Creation

    def create_pattern(
        self,
        user_id: str,
        data: PatternCreate,
        now: Optional[datetime] = None,
    ) -> Tuple[RecurrencePattern, Optional[BaseItem]]:
        """Create a pattern and its initial batch of instances.

        Returns the stored pattern and its first instance (None when the end
        conditions leave nothing to generate).

        Raises:
            TemplateError: the template cannot produce items of the pattern's kind.
            PatternCreationError: the initial batch failed; the pattern was deleted.
        """
        now = now or datetime.utcnow()
        adapter = get_adapter(data.item_kind)
        template = adapter.normalize_template(data.template)

        pattern = self.patterns.create(
            RecurrencePattern(
                id=str(uuid.uuid4()),
                user_id=user_id,
                item_kind=adapter.kind,
                recurrence_type=data.recurrence_type,
                interval_days=data.interval_days,
                days_of_week=data.days_of_week,
                days_of_month=data.days_of_month,
                start_date=data.start_date,
                end_date=data.end_date,
                occurrence_count=data.occurrence_count,
                instance_count=0,
                is_active=True,
                template=template,
                created_at=now,
                updated_at=now,
            )
        )

        try:
            created = self.extend_pattern(pattern, now.date() + timedelta(days=INITIAL_WINDOW_DAYS), now=now)
        except Exception as e:
            logger.error(
                f"Initial generation failed for pattern {pattern.id}, removing it: {type(e).__name__}: {str(e)}"
            )
            self.patterns.delete(user_id, pattern.id)
            raise PatternCreationError(f"Failed to generate instances for new pattern: {e}") from e

        if not created:
            logger.warning(f"Pattern {pattern.id} created with no instances (end conditions already reached)")
        else:
            logger.info(f"Created {adapter.kind.value} pattern {pattern.id} with {len(created)} instances")

        first = self._instances(adapter.kind).list_for_pattern(pattern.id)
        return self._require_pattern(user_id, pattern.id), (first[0] if first else None)

    # Extension

    def extend_pattern(
        self,
        pattern: RecurrencePattern,
        window_end,
        now: Optional[datetime] = None,
    ) -> List[BaseItem]:
        """Generate and persist the instances `pattern` is missing up to `window_end`."""
        if not pattern.is_active:
            return []
        now = now or datetime.utcnow()
        adapter = get_adapter(pattern.item_kind)
        instances = self._instances(adapter.kind)

        # Anchor is re-derived from storage on every pass.
        existing = instances.instance_dates(pattern.id)
        items = extend(pattern, existing, window_end, adapter, now=now)
        if not items:
            return []
        through = max(window_end, pattern.generated_through or window_end)
        return instances.bulk_create(pattern.id, items, generated_at=now, generated_through=through)

    def _extend_rows(
        self,
        rows: List[RecurrencePatternDB],
        window_days: int,
        now: datetime,
    ) -> GenerationReport:
        window_end = now.date() + timedelta(days=window_days)
        report = GenerationReport()
        # Ids first: rows expire on every commit below.
        pending = [(row.id, row) for row in rows]
        for pattern_id, row in pending:
            report.patterns_processed += 1
            try:
                pattern = row.to_pydantic()
                created = self.extend_pattern(pattern, window_end, now=now)
                report.instances_created += len(created)
            except Exception as e:
                logger.error(f"Failed to extend pattern {pattern_id}: {type(e).__name__}: {str(e)}")
                report.errors.append(PatternError(pattern_id=pattern_id, error=f"{type(e).__name__}: {str(e)}"))
        return report

    def extend_all_for_owner(
        self,
        user_id: str,
        window_days: int,
        item_kind: Optional[Union[str, ItemKind]] = None,
        now: Optional[datetime] = None,
        refresh_interval_minutes: int = 0,
    ) -> GenerationReport:
        """Extend every active pattern of one owner (optionally one kind)."""
        now = now or datetime.utcnow()
        stale_before = now - timedelta(minutes=refresh_interval_minutes) if refresh_interval_minutes > 0 else None
        # Recently generated patterns are skipped only when their last pass already covered this window.
        rows = self.patterns.list_active(
            user_id=user_id,
            item_kind=item_kind,
            stale_before=stale_before,
            window_end=now.date() + timedelta(days=window_days),
        )
        report = self._extend_rows(rows, window_days, now)
        if report.instances_created or report.errors:
            logger.info(
                f"Extended {report.patterns_processed} patterns for user {user_id}: "
                f"{report.instances_created} created, {len(report.errors)} failed"
            )
        return report

    def extend_all(self, window_days: int = SWEEP_WINDOW_DAYS, now: Optional[datetime] = None) -> GenerationReport:
        """Maintenance sweep over every owner with active patterns."""
        now = now or datetime.utcnow()
        report = GenerationReport()
        for user_id in self.patterns.list_active_owner_ids():
            report = report.merge(self.extend_all_for_owner(user_id, window_days, now=now))
        return report

    # Lifecycle

    def deactivate_pattern(self, user_id: str, pattern_id: str) -> RecurrencePattern:
        self._require_pattern(user_id, pattern_id)
        self.patterns.deactivate(user_id, pattern_id)
        return self._require_pattern(user_id, pattern_id)

    def update_pattern(self, user_id: str, pattern_id: str, data: PatternUpdate) -> RecurrencePattern:
        """Change a pattern's template, end conditions or active flag.

        Only fields present in `data` change, and only future generation sees
        them: instances already created keep the fields they were created with.
        An explicit null clears `end_date` / `occurrence_count`.

        Raises:
            PatternNotFoundError: no such pattern for this user.
            PatternUpdateError: a rule field was sent, or the new values conflict.
            TemplateError: the new template cannot produce items of the pattern's kind.
        """
        pattern = self._require_pattern(user_id, pattern_id)
        fields = data.model_fields_set

        rule_edits = sorted(fields & RULE_FIELDS)
        if rule_edits:
            raise PatternUpdateError(
                f"Recurrence rule cannot be changed ({', '.join(rule_edits)}); "
                "deactivate the pattern and create a new one"
            )

        changes = {}
        if "template" in fields:
            if data.template is None:
                raise PatternUpdateError("template cannot be null")
            changes["template"] = get_adapter(pattern.item_kind).normalize_template(data.template)
        if "end_date" in fields:
            if data.end_date is not None and pattern.start_date is not None and data.end_date < pattern.start_date:
                raise PatternUpdateError("end_date must be >= start_date")
            changes["end_date"] = data.end_date
        if "occurrence_count" in fields:
            changes["occurrence_count"] = data.occurrence_count
        if "is_active" in fields:
            if data.is_active is None:
                raise PatternUpdateError("is_active cannot be null")
            changes["is_active"] = data.is_active

        if not changes:
            return pattern
        updated = self.patterns.update(user_id, pattern_id, changes)
        logger.info(f"Updated pattern {pattern_id}: {', '.join(sorted(changes))}")
        return updated

    def delete_all_instances_for_pattern(self, user_id: str, pattern_id: str) -> int:
        """Delete every instance of a pattern and deactivate it so they are not regenerated."""
        pattern = self._require_pattern(user_id, pattern_id)
        self.patterns.deactivate(user_id, pattern_id)
        return self._instances(pattern.item_kind).delete_for_pattern(user_id, pattern_id)

    def delete_pattern(self, user_id: str, pattern_id: str, delete_instances: bool = False) -> int:
        """Remove a pattern. Its instances are deleted, or kept as standalone items.

        Returns the number of instances deleted or unlinked.
        """
        pattern = self._require_pattern(user_id, pattern_id)
        instances = self._instances(pattern.item_kind)
        if delete_instances:
            affected = instances.delete_for_pattern(user_id, pattern_id)
        else:
            affected = instances.unlink_pattern(user_id, pattern_id)
        self.patterns.delete(user_id, pattern_id)
        return affected

    # Items

    def bulk_delete_items(
        self,
        user_id: str,
        kind: Union[str, ItemKind],
        item_ids: List[str],
    ) -> Dict[str, object]:
        """Delete items; patterns they came from are deactivated first so nothing is regenerated."""
        instances = self._instances(kind)
        pattern_ids = instances.pattern_ids_for(user_id, item_ids)
        deactivated = self.patterns.deactivate_many(user_id, pattern_ids)
        result = instances.bulk_delete(user_id, item_ids)
        result["deactivated_pattern_count"] = deactivated
        return result

    def update_item_status(
        self,
        user_id: str,
        kind: Union[str, ItemKind],
        item_id: str,
        status: str,
    ) -> Optional[BaseItem]:
        return self._instances(kind).update_status(user_id, item_id, status)

    def list_items(
        self,
        user_id: str,
        kind: Union[str, ItemKind],
        show_all: bool = False,
        status: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[List[BaseItem], GenerationReport]:
        """Extend the owner's patterns of this kind, then read their items.

        Active views use the short window and collapse each pattern to its next
        open instance; show-all views (and calendar events) use the long window
        and return every row.
        """
        adapter = get_adapter(kind)
        collapse = adapter.collapsible and not show_all
        report = self.extend_all_for_owner(
            user_id,
            ACTIVE_VIEW_WINDOW_DAYS if collapse else CALENDAR_VIEW_WINDOW_DAYS,
            item_kind=adapter.kind,
            now=now,
            refresh_interval_minutes=REFRESH_INTERVAL_MINUTES,
        )
        items = self._instances(adapter.kind).list_for_user(user_id, status=status)
        if collapse:
            items = collapse_active_view(items)
        return items, report
