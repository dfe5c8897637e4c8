"""Window generator: expand one pattern into the instances missing from a window."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Collection, List, Optional

from studydash.models.constants import MAX_GENERATION_ITERATIONS
from studydash.models.items import BaseItem
from studydash.models.recurrence import RecurrencePattern
from studydash.recurrence.adapters import TemplateAdapter
from studydash.recurrence.stepping import first_occurrence, next_occurrence

logger = logging.getLogger(__name__)


def extend(
    pattern: RecurrencePattern,
    existing_dates: Collection[date],
    window_end: date,
    adapter: TemplateAdapter,
    last_instance_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> List[BaseItem]:
    """Return the new instances of `pattern` up to and including `window_end`.

    Pure: nothing is read or written. Generation continues from the latest
    existing instance date (or `last_instance_date` when given); a pattern with
    no instances starts at its start date, or today when it has none.

    End conditions are checked for every candidate in this order: end date,
    lifetime occurrence count, window end. Dates already present in
    `existing_dates` are skipped without counting.
    """
    if not pattern.is_active:
        return []

    now = now or datetime.utcnow()
    rule = pattern.rule
    existing = set(existing_dates)

    anchor = last_instance_date
    if anchor is None and existing:
        anchor = max(existing)
    candidate = next_occurrence(anchor, rule) if anchor is not None else first_occurrence(
        pattern.start_date or now.date(), rule
    )

    created: List[BaseItem] = []
    total = pattern.instance_count
    for _ in range(MAX_GENERATION_ITERATIONS):
        if pattern.end_date is not None and candidate > pattern.end_date:
            break
        if pattern.occurrence_count is not None and total >= pattern.occurrence_count:
            break
        if candidate > window_end:
            break
        if candidate not in existing:
            created.append(adapter.build_instance(pattern, candidate, now=now))
            existing.add(candidate)
            total += 1
        candidate = next_occurrence(candidate, rule)
    else:
        logger.warning(
            f"Pattern {pattern.id} hit the {MAX_GENERATION_ITERATIONS}-candidate limit before {window_end}"
        )

    return created
