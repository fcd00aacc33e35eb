"""Ordering for the action items view.

Action items are shown most pressing first: by project priority, then
newest first, then by id so the order is fully deterministic.
"""

from collections.abc import Iterable

from src.models.activity import PRIORITY_ORDER, ActivityItem


def rank_action_items(items: Iterable[ActivityItem]) -> list[ActivityItem]:
    """Keep action items only and order them for display."""
    actionable = [item for item in items if item.is_action_item]
    # Stable sorts: secondary keys first
    actionable.sort(key=lambda i: (i.timestamp, i.id), reverse=True)
    actionable.sort(key=lambda i: PRIORITY_ORDER[i.priority])
    return actionable
