"""Active-list view: one open instance per recurring pattern."""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Sequence

from studydash.models.items import TERMINAL_STATUSES, BaseItem


def _is_terminal(item: BaseItem) -> bool:
    return getattr(item, "status", None) in TERMINAL_STATUSES


def collapse_active_view(items: Sequence[BaseItem]) -> List[BaseItem]:
    """Keep each pattern's earliest non-terminal instance, plus all terminal ones.

    Non-recurring items pass through. Input order is preserved.
    """
    earliest_open: Dict[str, BaseItem] = {}
    for item in items:
        pattern_id = item.recurring_pattern_id
        if not pattern_id or _is_terminal(item):
            continue
        current = earliest_open.get(pattern_id)
        if current is None or (item.instance_date or date.max) < (current.instance_date or date.max):
            earliest_open[pattern_id] = item

    keep_ids = {item.id for item in earliest_open.values()}
    return [
        item
        for item in items
        if not item.recurring_pattern_id or _is_terminal(item) or item.id in keep_ids
    ]
