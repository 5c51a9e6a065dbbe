"""Upvote toggling for problems and solutions."""

import logging
from dataclasses import dataclass

from ..store import EntityKind, EntityStore

logger = logging.getLogger(__name__)


@dataclass
class UpvoteResult:
    count: int
    has_upvoted: bool


def toggle_upvote(store: EntityStore, kind: EntityKind, entity_id: int, user_id: int) -> UpvoteResult:
    """
    Flip ``user_id``'s membership in the entity's upvoter set.

    The counter only moves when the membership write actually changed the
    set. A duplicate request that loses the race to an identical one leaves
    the count untouched and reports the membership that is now stored.
    """
    store.get(kind, entity_id)

    if store.has_member(kind, entity_id, user_id):
        if store.remove_member(kind, entity_id, user_id):
            entity = store.apply_delta(kind, entity_id, "upvote_count", -1)
            logger.info(f"Upvote removed | {kind.value}={entity_id}, user={user_id}, count={entity.upvote_count}")
        else:
            entity = store.get(kind, entity_id)
            logger.warning(f"Concurrent upvote removal detected | {kind.value}={entity_id}, user={user_id}")
        return UpvoteResult(count=entity.upvote_count, has_upvoted=False)

    if store.add_member(kind, entity_id, user_id):
        entity = store.apply_delta(kind, entity_id, "upvote_count", 1)
        logger.info(f"Upvote added | {kind.value}={entity_id}, user={user_id}, count={entity.upvote_count}")
    else:
        entity = store.get(kind, entity_id)
        logger.warning(f"Concurrent upvote insert detected | {kind.value}={entity_id}, user={user_id}")
    return UpvoteResult(count=entity.upvote_count, has_upvoted=True)
