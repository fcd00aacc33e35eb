"""Action item classification.

Tags each normalized item as an action item (someone in the caller's
role still has to respond) or informational. Rules are deterministic
per activity type and depend only on the item and the caller's role.
"""

from collections.abc import Iterable

from src.models.activity import ActivityItem, ActivityType, CallerRole


def is_action_item(item: ActivityItem, role: CallerRole) -> bool:
    """Decide whether an item needs a response from the given role.

    Rules:
    - change_request: until the team has resolved it
    - file_flag: while unresolved and flagged for the caller's audience
    - project_blocked: while the project is still blocked
    - deliverable_review: while approval is pending (is_approved is None)
    - everything else: never
    """
    state = item.state

    if item.type is ActivityType.CHANGE_REQUEST:
        return state.resolved is not True
    if item.type is ActivityType.FILE_FLAG:
        return state.resolved is not True and state.flagged_for == role.audience
    if item.type is ActivityType.PROJECT_BLOCKED:
        return state.is_blocked is True
    if item.type is ActivityType.DELIVERABLE_REVIEW:
        return state.is_approved is None
    return False


def classify(item: ActivityItem, role: CallerRole) -> ActivityItem:
    """Return a copy of the item with is_action_item computed for the role."""
    flag = is_action_item(item, role)
    if flag == item.is_action_item:
        return item
    return item.model_copy(update={"is_action_item": flag})


def classify_items(items: Iterable[ActivityItem], role: CallerRole) -> list[ActivityItem]:
    """Classify a sequence of items, preserving order."""
    return [classify(item, role) for item in items]
