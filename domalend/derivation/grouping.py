"""Event grouper — partitions events per entity and orders each partition."""
from __future__ import annotations

import logging
from dataclasses import replace
from operator import attrgetter
from typing import Iterable, TypeVar

from ..models import AuctionEvent, LoanEvent, PoolEvent
from .timestamps import normalize_timestamp

logger = logging.getLogger(__name__)

E = TypeVar("E", LoanEvent, PoolEvent, AuctionEvent)


def group_events(events: Iterable[E]) -> dict[str, list[E]]:
    """Group events by entity id, each group sorted by normalized timestamp.

    Returned events carry their timestamp (and a loan's repayment deadline)
    as epoch milliseconds. The sort is stable, so events sharing a timestamp
    keep the order the source emitted them in. Events without an entity id
    or with an unreadable timestamp are dropped and logged.
    """
    grouped: dict[str, list[E]] = {}

    for event in events:
        if not event.entity_id:
            logger.warning(
                "Dropping %s event without entity id", event.event_type.value
            )
            continue

        ts = normalize_timestamp(event.timestamp)
        if ts is None:
            logger.warning(
                "Dropping %s event for %s: malformed timestamp %r",
                event.event_type.value,
                event.entity_id,
                event.timestamp,
            )
            continue

        changes: dict[str, int | None] = {"timestamp": ts}
        if isinstance(event, LoanEvent) and event.repayment_deadline is not None:
            changes["repayment_deadline"] = normalize_timestamp(event.repayment_deadline)
        grouped.setdefault(event.entity_id, []).append(replace(event, **changes))

    for partition in grouped.values():
        partition.sort(key=attrgetter("timestamp"))

    return grouped
