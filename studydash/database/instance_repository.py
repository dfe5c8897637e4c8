"""Repository for item rows of one kind (tasks, deadlines, exams, work items, calendar events)."""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Set, Union

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studydash.database.models import RecurrencePatternDB, enum_to_value, item_table
from studydash.models.items import BaseItem, ItemKind

logger = logging.getLogger(__name__)


class InstanceRepository:
    """Item store for a single item kind."""

    def __init__(self, db: Session, kind: Union[str, ItemKind]):
        self.db = db
        self.kind = ItemKind(enum_to_value(kind))
        self.model = item_table(self.kind)

    def _as_unique_ids(self, item_ids: List[str]) -> List[str]:
        """Deduplicate while preserving order."""
        seen: Set[str] = set()
        unique: List[str] = []
        for item_id in item_ids:
            if item_id not in seen:
                seen.add(item_id)
                unique.append(item_id)
        return unique

    # Reads

    def get(self, user_id: str, item_id: str) -> Optional[BaseItem]:
        row = self.db.query(self.model).filter(
            self.model.id == item_id,
            self.model.user_id == user_id,
        ).first()
        return row.to_pydantic() if row else None

    def list_for_user(self, user_id: str, status: Optional[str] = None) -> List[BaseItem]:
        """Items of a user, by occurrence date (standalone items last, oldest first)."""
        query = self.db.query(self.model).filter(self.model.user_id == user_id)
        if status is not None:
            if not hasattr(self.model, "status"):
                return []
            query = query.filter(self.model.status == enum_to_value(status))
        rows = query.order_by(
            self.model.instance_date.is_(None),
            self.model.instance_date,
            self.model.created_at,
        ).all()
        return [row.to_pydantic() for row in rows]

    def list_for_pattern(self, pattern_id: str) -> List[BaseItem]:
        rows = (
            self.db.query(self.model)
            .filter(self.model.recurring_pattern_id == pattern_id)
            .order_by(self.model.instance_date)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def instance_dates(self, pattern_id: str) -> Set[date]:
        rows = (
            self.db.query(self.model.instance_date)
            .filter(
                self.model.recurring_pattern_id == pattern_id,
                self.model.instance_date.isnot(None),
            )
            .all()
        )
        return {row[0] for row in rows}

    def count_for_pattern(self, pattern_id: str) -> int:
        return int(
            self.db.query(func.count(self.model.id))
            .filter(self.model.recurring_pattern_id == pattern_id)
            .scalar()
            or 0
        )

    def pattern_ids_for(self, user_id: str, item_ids: List[str]) -> List[str]:
        """Distinct patterns referenced by the given items."""
        unique_ids = self._as_unique_ids(item_ids)
        if not unique_ids:
            return []
        rows = (
            self.db.query(self.model.recurring_pattern_id)
            .filter(
                self.model.user_id == user_id,
                self.model.id.in_(unique_ids),
                self.model.recurring_pattern_id.isnot(None),
            )
            .distinct()
            .all()
        )
        return sorted(row[0] for row in rows)

    # Writes

    def _insert_batch(
        self,
        pattern_id: str,
        items: List[BaseItem],
        generated_at: datetime,
        generated_through: Optional[date],
    ) -> None:
        values = {
            "instance_count": RecurrencePatternDB.instance_count + len(items),
            "last_generated": generated_at,
        }
        if generated_through is not None:
            values["generated_through"] = generated_through
        self.db.add_all([self.model.from_pydantic(item) for item in items])
        self.db.execute(
            update(RecurrencePatternDB)
            .where(RecurrencePatternDB.id == pattern_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

    def bulk_create(
        self,
        pattern_id: str,
        items: List[BaseItem],
        generated_at: Optional[datetime] = None,
        generated_through: Optional[date] = None,
    ) -> List[BaseItem]:
        """Insert a pattern's new instances and bump its counter in one transaction.

        A concurrent pass may already have written some of the same occurrence
        dates; the (pattern, instance_date) constraint rejects the batch, and it is
        retried once without those dates. `generated_through` records the window
        end the pass reached. Returns the instances actually written.
        """
        if not items:
            return []
        generated_at = generated_at or datetime.utcnow()

        try:
            self._insert_batch(pattern_id, items, generated_at, generated_through)
        except IntegrityError as e:
            self.db.rollback()
            present = self.instance_dates(pattern_id)
            remaining = [item for item in items if item.instance_date not in present]
            logger.info(
                f"Pattern {pattern_id}: {len(items) - len(remaining)} of {len(items)} "
                f"{self.kind.value} instances already exist, skipping ({type(e).__name__})"
            )
            if not remaining:
                return []
            try:
                self._insert_batch(pattern_id, remaining, generated_at, generated_through)
            except Exception as retry_error:
                self.db.rollback()
                logger.error(
                    f"Failed to create {self.kind.value} instances for pattern {pattern_id}: "
                    f"{type(retry_error).__name__}: {str(retry_error)}"
                )
                raise
            items = remaining
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to create {self.kind.value} instances for pattern {pattern_id}: "
                f"{type(e).__name__}: {str(e)}"
            )
            raise

        logger.debug(f"Created {len(items)} {self.kind.value} instances for pattern {pattern_id}")
        return items

    def update_status(self, user_id: str, item_id: str, status: str) -> Optional[BaseItem]:
        """Set an item's status. Raises ValueError for a status the kind does not have."""
        row = self.db.query(self.model).filter(
            self.model.id == item_id,
            self.model.user_id == user_id,
        ).first()
        if row is None:
            return None
        if not hasattr(self.model, "status"):
            raise ValueError(f"{self.kind.value} items have no status")

        # Validate through the pydantic model so only the kind's own statuses pass.
        current = row.to_pydantic()
        updated = type(current).model_validate({**current.model_dump(), "status": status})

        try:
            row.status = enum_to_value(updated.status)
            row.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Set {self.kind.value} {item_id} status to {row.status}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update {self.kind.value} {item_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete_for_pattern(self, user_id: str, pattern_id: str) -> int:
        try:
            affected = (
                self.db.query(self.model)
                .filter(
                    self.model.user_id == user_id,
                    self.model.recurring_pattern_id == pattern_id,
                )
                .delete(synchronize_session=False)
            )
            self.db.commit()
            logger.debug(f"Deleted {affected} {self.kind.value} instances of pattern {pattern_id}")
            return int(affected)
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to delete instances of pattern {pattern_id}: {type(e).__name__}: {str(e)}"
            )
            raise

    def unlink_pattern(self, user_id: str, pattern_id: str) -> int:
        """Turn a pattern's instances into standalone items."""
        try:
            affected = (
                self.db.query(self.model)
                .filter(
                    self.model.user_id == user_id,
                    self.model.recurring_pattern_id == pattern_id,
                )
                .update(
                    {
                        self.model.recurring_pattern_id: None,
                        self.model.instance_date: None,
                        self.model.is_recurring: False,
                        self.model.updated_at: datetime.utcnow(),
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()
            logger.debug(f"Unlinked {affected} {self.kind.value} instances from pattern {pattern_id}")
            return int(affected)
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to unlink instances of pattern {pattern_id}: {type(e).__name__}: {str(e)}"
            )
            raise

    def bulk_delete(self, user_id: str, item_ids: List[str]) -> Dict[str, object]:
        """Permanently delete multiple items for a user."""
        unique_ids = self._as_unique_ids(item_ids)
        if not unique_ids:
            return {"affected_count": 0, "not_found_ids": []}

        existing_ids = {
            row[0]
            for row in self.db.query(self.model.id).filter(
                self.model.user_id == user_id,
                self.model.id.in_(unique_ids),
            ).all()
        }
        not_found_ids = [item_id for item_id in unique_ids if item_id not in existing_ids]

        try:
            affected = (
                self.db.query(self.model)
                .filter(
                    self.model.user_id == user_id,
                    self.model.id.in_(list(existing_ids)),
                )
                .delete(synchronize_session=False)
            )
            self.db.commit()
            logger.debug(f"Deleted {affected} {self.kind.value} items for user {user_id}")
            return {"affected_count": int(affected), "not_found_ids": not_found_ids}
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to bulk delete {self.kind.value} items for user {user_id}: {type(e).__name__}: {str(e)}"
            )
            raise
