"""Selection of which feed entries survive a prune."""

from __future__ import annotations

import bisect
import enum
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .models import Entry

logger = logging.getLogger(__name__)

_MIN_DATETIME = datetime.min.replace(tzinfo=timezone.utc)


class PruneStrategy(enum.Enum):
    RECENTLY_PUBLISHED = "published"
    RECENTLY_UPDATED = "updated"
    SINCE_DATE = "since-date"

    @classmethod
    def from_name(cls, name: str) -> "PruneStrategy":
        """Look up a strategy by its command-line name."""
        for strategy in cls:
            if strategy.value == name:
                return strategy
        raise ValueError(f"unknown pruning strategy: {name}")


def _published(entry: Entry) -> datetime:
    return entry.published or _MIN_DATETIME


def _updated(entry: Entry) -> datetime:
    return entry.updated or _MIN_DATETIME


def _sort_newest_first(entries: List[Entry], key: Callable[[Entry], datetime]) -> None:
    entries.sort(key=key)
    entries.reverse()


def prune(
    entries: List[Entry],
    count: int,
    strategy: PruneStrategy,
    since_date: Optional[datetime] = None,
) -> List[Entry]:
    """Sort *entries* by *strategy* and keep only as many as the strategy allows.

    *entries* is truncated in place to the kept entries; the rejected
    remainder is returned in the same sorted order.
    """
    if strategy is PruneStrategy.RECENTLY_UPDATED:
        _sort_newest_first(entries, _updated)
        keep = count
    elif strategy is PruneStrategy.SINCE_DATE:
        _sort_newest_first(entries, _published)
        if since_date is None:
            # No date to filter on, only the count applies.
            ppoint = len(entries)
        else:
            # Entries are newest first, so the ones on or after since_date form a prefix.
            ppoint = bisect.bisect_left(
                entries, True, key=lambda entry: not _published(entry) >= since_date
            )
        logger.debug("%d entries published since %s", ppoint, since_date)
        keep = count if ppoint > count else ppoint
    else:
        _sort_newest_first(entries, _published)
        keep = count

    rejected = entries[keep:]
    del entries[keep:]
    logger.info("Keeping %d entries, rejecting %d", len(entries), len(rejected))
    return rejected
