"""Activity feed aggregation.

This module provides the pieces that turn per-source records into one
time-ordered feed:
- normalize_records: map raw source records to ActivityItem
- classify_items: flag action items for a caller role
- paginate: k-way merge, filter and truncate per-source streams
- ActivityFeedService: fan-out to source adapters and assemble a feed
"""

from src.activity.action_items import rank_action_items
from src.activity.cache import FeedCache
from src.activity.classifier import classify, classify_items, is_action_item
from src.activity.errors import (
    ActivityFeedError,
    InvalidCompanyError,
    InvalidFilterError,
    MalformedRecordError,
    SourceUnavailableError,
)
from src.activity.feed_service import ActivityFeedService, parse_type_filter
from src.activity.merger import Page, merge_sorted, paginate
from src.activity.normalizer import normalize_record, normalize_records

__all__ = [
    "ActivityFeedError",
    "ActivityFeedService",
    "FeedCache",
    "InvalidCompanyError",
    "InvalidFilterError",
    "MalformedRecordError",
    "Page",
    "SourceUnavailableError",
    "classify",
    "classify_items",
    "is_action_item",
    "merge_sorted",
    "normalize_record",
    "normalize_records",
    "paginate",
    "parse_type_filter",
    "rank_action_items",
]
