"""
Activity collection coordinator: a user's casts plus the direct replies they received.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from community_pulse.config import (
    CASTS_PAGE_SIZE,
    MAX_CASTS,
    MAX_REPLIES_PER_ROOT,
    RATE_LIMIT_DELAY_SECONDS,
    REPLY_FETCH_CONCURRENCY,
)
from community_pulse.core.lexicon import has_action_signal
from community_pulse.models import CastRecord, InteractionEdge, ReplyRecord
from community_pulse.sources.neynar import NeynarFetcher
from community_pulse.utils import chunk

logger = logging.getLogger(__name__)


@dataclass
class Activity:
    """Everything collected for one user."""

    fid: int
    casts: List[CastRecord] = field(default_factory=list)
    replies: List[ReplyRecord] = field(default_factory=list)


def deduplicate_replies(replies: Iterable[ReplyRecord]) -> List[ReplyRecord]:
    """
    Remove duplicate replies based on hash, keeping the first occurrence.

    Args:
        replies: Iterable of ReplyRecord objects

    Returns:
        List of unique ReplyRecord objects
    """
    seen: set[str] = set()
    unique: List[ReplyRecord] = []
    for reply in replies:
        if reply.hash in seen:
            continue
        seen.add(reply.hash)
        unique.append(reply)
    return unique


async def fetch_all_user_casts(fetcher: NeynarFetcher, fid: int, limit: int = MAX_CASTS) -> List[CastRecord]:
    """
    Page through a user's casts until `limit` is reached or the feed ends.

    Args:
        fetcher: Social graph fetcher
        fid: User id
        limit: Maximum number of casts

    Returns:
        Up to `limit` casts, newest first
    """
    all_casts: List[CastRecord] = []
    cursor: Optional[str] = None

    while len(all_casts) < limit:
        batch, cursor = await fetcher.fetch_user_casts(
            fid,
            limit=min(CASTS_PAGE_SIZE, limit - len(all_casts)),
            cursor=cursor,
            include_replies=True,
        )
        all_casts.extend(batch)

        if not cursor or not batch:
            break
        await asyncio.sleep(RATE_LIMIT_DELAY_SECONDS)

    return all_casts[:limit]


async def fetch_replies_to_roots(
    fetcher: NeynarFetcher,
    root_casts: List[CastRecord],
    max_replies_per_root: int = MAX_REPLIES_PER_ROOT,
) -> List[ReplyRecord]:
    """Fetch direct replies for root casts, a fixed number of casts at a time."""
    all_replies: List[ReplyRecord] = []
    for batch in chunk(root_casts, REPLY_FETCH_CONCURRENCY):
        batch_replies = await asyncio.gather(
            *(fetcher.fetch_cast_replies(cast.hash, limit=max_replies_per_root) for cast in batch)
        )
        for replies in batch_replies:
            all_replies.extend(replies)
        await asyncio.sleep(RATE_LIMIT_DELAY_SECONDS)
    return all_replies


async def collect_activity(
    fetcher: NeynarFetcher,
    fid: int,
    max_casts: int = MAX_CASTS,
    max_replies_per_root: int = MAX_REPLIES_PER_ROOT,
) -> Activity:
    """
    Collect a user's casts and the replies their root casts received.

    Args:
        fetcher: Social graph fetcher
        fid: User id
        max_casts: Maximum casts to collect
        max_replies_per_root: Maximum replies fetched per root cast

    Returns:
        Activity with reply counts and action signals filled in
    """
    casts = await fetch_all_user_casts(fetcher, fid, max_casts)
    root_casts = [cast for cast in casts if cast.is_root]

    replies = deduplicate_replies(await fetch_replies_to_roots(fetcher, root_casts, max_replies_per_root))

    reply_counts: Dict[str, int] = {}
    for reply in replies:
        reply.has_action_signal = has_action_signal(reply.text)
        reply_counts[reply.parent_hash] = reply_counts.get(reply.parent_hash, 0) + 1

    for cast in root_casts:
        cast.reply_count = reply_counts.get(cast.hash, 0)

    logger.info(
        "Collected %d casts (%d root) and %d replies for fid %s",
        len(casts), len(root_casts), len(replies), fid,
    )
    return Activity(fid=fid, casts=casts, replies=replies)


def build_interactions(
    fid: int,
    casts: Iterable[CastRecord],
    replies: Iterable[ReplyRecord],
) -> List[InteractionEdge]:
    """
    Turn collected activity into directed reply edges.

    Replies to the user become replier -> fid edges; the user's own reply
    casts become fid -> parent author edges. Self-replies are not edges.
    """
    edges = [
        InteractionEdge(author_id=reply.author_fid, replied_to_id=fid)
        for reply in replies
        if reply.author_fid != fid
    ]
    edges.extend(
        InteractionEdge(author_id=fid, replied_to_id=cast.parent_fid)
        for cast in casts
        if not cast.is_root and cast.parent_fid is not None and cast.parent_fid != fid
    )
    return edges
