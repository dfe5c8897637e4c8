"""Repository for RecurrencePattern database operations."""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from studydash.database.models import RecurrencePatternDB, enum_to_value
from studydash.models.recurrence import RecurrencePattern

logger = logging.getLogger(__name__)


class RecurrencePatternRepository:
    """Pattern store. Instance rows live in the per-kind tables (see InstanceRepository)."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, pattern: RecurrencePattern) -> RecurrencePattern:
        """Persist a new pattern."""
        try:
            row = RecurrencePatternDB.from_pydantic(pattern)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Created {row.item_kind} pattern {row.id} ({row.recurrence_type})")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create recurring pattern {pattern.id}: {type(e).__name__}: {str(e)}")
            raise

    def _get_row(self, user_id: str, pattern_id: str) -> Optional[RecurrencePatternDB]:
        return (
            self.db.query(RecurrencePatternDB)
            .filter(
                RecurrencePatternDB.user_id == user_id,
                RecurrencePatternDB.id == pattern_id,
            )
            .first()
        )

    def get(self, user_id: str, pattern_id: str) -> Optional[RecurrencePattern]:
        row = self._get_row(user_id, pattern_id)
        return row.to_pydantic() if row else None

    def list_for_user(self, user_id: str, item_kind: Optional[str] = None) -> List[RecurrencePattern]:
        """All patterns of a user (active and inactive), newest first."""
        query = self.db.query(RecurrencePatternDB).filter(RecurrencePatternDB.user_id == user_id)
        if item_kind is not None:
            query = query.filter(RecurrencePatternDB.item_kind == enum_to_value(item_kind))
        rows = query.order_by(RecurrencePatternDB.created_at.desc()).all()
        return [row.to_pydantic() for row in rows]

    def list_active(
        self,
        user_id: Optional[str] = None,
        item_kind: Optional[str] = None,
        stale_before: Optional[datetime] = None,
        window_end: Optional[date] = None,
    ) -> List[RecurrencePatternDB]:
        """Active pattern rows, optionally narrowed to one owner / kind.

        Rows are returned unconverted so callers can convert (and fail) one at a time.
        With `stale_before`, patterns generated at or after that instant are left out,
        unless `window_end` is given and their last pass stopped short of it.
        """
        query = self.db.query(RecurrencePatternDB).filter(RecurrencePatternDB.is_active.is_(True))
        if user_id is not None:
            query = query.filter(RecurrencePatternDB.user_id == user_id)
        if item_kind is not None:
            query = query.filter(RecurrencePatternDB.item_kind == enum_to_value(item_kind))
        if stale_before is not None:
            due = [
                RecurrencePatternDB.last_generated.is_(None),
                RecurrencePatternDB.last_generated < stale_before,
            ]
            if window_end is not None:
                due.append(RecurrencePatternDB.generated_through.is_(None))
                due.append(RecurrencePatternDB.generated_through < window_end)
            query = query.filter(or_(*due))
        return query.order_by(RecurrencePatternDB.created_at).all()

    def list_active_owner_ids(self) -> List[str]:
        rows = (
            self.db.query(RecurrencePatternDB.user_id)
            .filter(RecurrencePatternDB.is_active.is_(True))
            .distinct()
            .all()
        )
        return sorted(row[0] for row in rows)

    def update(self, user_id: str, pattern_id: str, changes: Dict[str, Any]) -> Optional[RecurrencePattern]:
        """Apply field changes to a pattern. Instances already generated are not touched."""
        row = self._get_row(user_id, pattern_id)
        if row is None:
            return None
        for field, value in changes.items():
            setattr(row, field, value)
        row.updated_at = datetime.utcnow()
        try:
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Updated pattern {pattern_id}: {', '.join(sorted(changes))}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update pattern {pattern_id}: {type(e).__name__}: {str(e)}")
            raise

    def deactivate(self, user_id: str, pattern_id: str) -> bool:
        """Stop generation for a pattern. Existing instances are untouched."""
        row = self._get_row(user_id, pattern_id)
        if row is None:
            return False
        if not row.is_active:
            return True
        try:
            row.is_active = False
            row.updated_at = datetime.utcnow()
            self.db.commit()
            logger.debug(f"Deactivated pattern {pattern_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to deactivate pattern {pattern_id}: {type(e).__name__}: {str(e)}")
            raise

    def deactivate_many(self, user_id: str, pattern_ids: List[str]) -> int:
        unique_ids = sorted(set(pattern_ids))
        if not unique_ids:
            return 0
        try:
            affected = (
                self.db.query(RecurrencePatternDB)
                .filter(
                    RecurrencePatternDB.user_id == user_id,
                    RecurrencePatternDB.id.in_(unique_ids),
                    RecurrencePatternDB.is_active.is_(True),
                )
                .update(
                    {RecurrencePatternDB.is_active: False, RecurrencePatternDB.updated_at: datetime.utcnow()},
                    synchronize_session=False,
                )
            )
            self.db.commit()
            logger.debug(f"Deactivated {affected} patterns for user {user_id}")
            return int(affected)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to deactivate patterns for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, user_id: str, pattern_id: str) -> bool:
        """Permanently delete a pattern. Instances still linked to it are unlinked by the FK."""
        row = self._get_row(user_id, pattern_id)
        if row is None:
            return False
        try:
            self.db.delete(row)
            self.db.commit()
            logger.debug(f"Deleted pattern {pattern_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete pattern {pattern_id}: {type(e).__name__}: {str(e)}")
            raise
