"""
Dashboard assembly: collect a user's activity, score it, and summarise one range.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Set

from pydantic import TypeAdapter, ValidationError

from community_pulse.config import DASHBOARD_RANGES, TOP_EXAMPLES_LIMIT
from community_pulse.core.emotion import compose
from community_pulse.core.metrics import (
    compute_daily_metrics,
    compute_metrics_for_window,
    compute_reciprocity,
    in_window,
)
from community_pulse.models import (
    CastRecord,
    Classification,
    CommunityMetrics,
    DailyMetrics,
    Post,
    ReplyRecord,
    TimestampedEmotion,
    UserProfile,
)
from community_pulse.services.cache import RedisCache
from community_pulse.services.classifier import LLMClassifier, classify_posts
from community_pulse.sources.collector import build_interactions, collect_activity
from community_pulse.sources.neynar import NeynarFetcher
from community_pulse.utils import ensure_utc, excerpt, normalize_text, now_utc, round3, round_half_up

logger = logging.getLogger(__name__)

# Classified anger below this is too uncertain to surface as an example
EXAMPLE_ANGER_CONFIDENCE = 0.5

# Metrics reported as current-minus-previous in `change`
CHANGE_FIELDS = (
    "rage_density",
    "hope_index",
    "reciprocity",
    "agency_rate",
    "avg_sentiment",
    "total_messages",
)


@dataclass
class ExamplePost:
    hash: str
    excerpt: str
    timestamp: datetime
    score: float


@dataclass
class DataContext:
    """Counts that help a reader judge how much data backs the metrics."""

    total_posts: int = 0
    root_posts: int = 0
    replies_received: int = 0
    unique_engagers: int = 0
    mutual_dyads: int = 0
    positive_posts: int = 0
    negative_posts: int = 0
    agency_posts: int = 0
    agency_posts_with_action_replies: int = 0


@dataclass
class Engagement:
    """How the people around the user respond. Percentages are whole numbers."""

    activation: int = 0  # repliers whose first reply falls in the window
    activation_change: int = 0  # percent change against the previous window
    retention: int = 0  # % of previous-window repliers who replied again
    retention_change: int = 0  # percentage points against the previous window
    avg_replies: float = 0.0  # per root cast
    pct_with_replies: int = 0
    reply_back_rate: int = 0  # % of repliers the user replied to
    positive_rate: int = 0


@dataclass
class Dashboard:
    fid: int
    range: str
    window_days: int
    as_of: datetime
    metrics: CommunityMetrics
    previous_metrics: CommunityMetrics
    change: Dict[str, float]
    daily: List[DailyMetrics]
    top_rage: List[ExamplePost] = field(default_factory=list)
    top_agency: List[ExamplePost] = field(default_factory=list)
    data_context: DataContext = field(default_factory=DataContext)
    engagement: Engagement = field(default_factory=Engagement)
    profile: Optional[UserProfile] = None
    cached: bool = False


# Snapshots travel through the cache as JSON
DASHBOARD_ADAPTER = TypeAdapter(Dashboard)


class UnknownRangeError(ValueError):
    """Raised for a range label outside DASHBOARD_RANGES."""


def metric_change(current: CommunityMetrics, previous: CommunityMetrics) -> Dict[str, float]:
    return {name: round3(getattr(current, name) - getattr(previous, name)) for name in CHANGE_FIELDS}


def top_rage_examples(
    casts: Sequence[CastRecord],
    classifications: Dict[str, Classification],
    limit: int = TOP_EXAMPLES_LIMIT,
) -> List[ExamplePost]:
    """Angriest posts first, by classified anger confidence."""
    angry = [
        (cast, classifications[cast.hash].anger_confidence)
        for cast in casts
        if cast.hash in classifications
        and classifications[cast.hash].has_anger
        and classifications[cast.hash].anger_confidence >= EXAMPLE_ANGER_CONFIDENCE
    ]
    angry.sort(key=lambda pair: (-pair[1], pair[0].hash))
    return [
        ExamplePost(hash=cast.hash, excerpt=excerpt(normalize_text(cast.text)), timestamp=cast.timestamp, score=score)
        for cast, score in angry[:limit]
    ]


def top_agency_examples(
    casts: Sequence[CastRecord],
    classifications: Dict[str, Classification],
    limit: int = TOP_EXAMPLES_LIMIT,
) -> List[ExamplePost]:
    """Agency posts ranked by the replies they drew."""
    agency = [
        cast for cast in casts
        if cast.hash in classifications and classifications[cast.hash].has_agency
    ]
    agency.sort(key=lambda cast: (-cast.reply_count, cast.hash))
    return [
        ExamplePost(
            hash=cast.hash,
            excerpt=excerpt(normalize_text(cast.text)),
            timestamp=cast.timestamp,
            score=float(cast.reply_count),
        )
        for cast in agency[:limit]
    ]


def build_data_context(
    fid: int,
    casts: Sequence[CastRecord],
    replies: Sequence[ReplyRecord],
    classifications: Dict[str, Classification],
    mutual_dyads: int,
) -> DataContext:
    labels = [classifications[cast.hash] for cast in casts if cast.hash in classifications]
    agency_hashes = {cast.hash for cast in casts if cast.hash in classifications and classifications[cast.hash].has_agency}
    answered_with_action = {reply.parent_hash for reply in replies if reply.has_action_signal}

    return DataContext(
        total_posts=len(casts),
        root_posts=sum(1 for cast in casts if cast.is_root),
        replies_received=len(replies),
        unique_engagers=len({reply.author_fid for reply in replies} - {fid}),
        mutual_dyads=mutual_dyads,
        positive_posts=sum(1 for c in labels if c.sentiment == "positive"),
        negative_posts=sum(1 for c in labels if c.sentiment == "negative"),
        agency_posts=len(agency_hashes),
        agency_posts_with_action_replies=len(agency_hashes & answered_with_action),
    )


def _percent(part: float, whole: float) -> int:
    return int(round_half_up(100 * part / whole, 0)) if whole else 0


def window_repliers(replies: Sequence[ReplyRecord], fid: int, days: int, end: datetime) -> Set[int]:
    """Distinct other users who replied inside the window ending at `end`."""
    return {
        reply.author_fid
        for reply in replies
        if reply.author_fid != fid and in_window(reply.timestamp, days, end)
    }


def first_reply_times(replies: Sequence[ReplyRecord], fid: int) -> Dict[int, datetime]:
    first: Dict[int, datetime] = {}
    for reply in replies:
        if reply.author_fid == fid:
            continue
        timestamp = ensure_utc(reply.timestamp)
        if reply.author_fid not in first or timestamp < first[reply.author_fid]:
            first[reply.author_fid] = timestamp
    return first


def retention_rate(replies: Sequence[ReplyRecord], fid: int, days: int, end: datetime) -> int:
    """Percent of the previous window's repliers who replied again in this one."""
    previous = window_repliers(replies, fid, days, end - timedelta(days=days))
    if not previous:
        return 0
    returned = previous & window_repliers(replies, fid, days, end)
    return _percent(len(returned), len(previous))


def compute_engagement(
    fid: int,
    casts: Sequence[CastRecord],
    replies: Sequence[ReplyRecord],
    classifications: Dict[str, Classification],
    days: int,
    end: datetime,
) -> Engagement:
    """
    Engagement figures for the window ending at `end`.

    Args:
        fid: The user the dashboard is for
        casts: All of the user's collected casts
        replies: All collected replies to the user's root casts
        classifications: Classifications of the in-window casts
        days: Window length in days
        end: End of the window

    Returns:
        Engagement for the window
    """
    previous_end = end - timedelta(days=days)
    window_casts = [cast for cast in casts if in_window(cast.timestamp, days, end)]

    first_replies = first_reply_times(replies, fid)
    activation = sum(1 for ts in first_replies.values() if in_window(ts, days, end))
    previous_activation = sum(1 for ts in first_replies.values() if in_window(ts, days, previous_end))

    retention = retention_rate(replies, fid, days, end)
    previous_retention = retention_rate(replies, fid, days, previous_end)

    roots = [cast for cast in window_casts if cast.is_root]
    avg_replies = math.fsum(cast.reply_count for cast in roots) / len(roots) if roots else 0.0

    repliers = window_repliers(replies, fid, days, end)
    replied_to = {cast.parent_fid for cast in window_casts if not cast.is_root and cast.parent_fid is not None}

    labels = [classifications[cast.hash] for cast in window_casts if cast.hash in classifications]

    return Engagement(
        activation=activation,
        activation_change=_percent(activation - previous_activation, previous_activation),
        retention=retention,
        retention_change=retention - previous_retention,
        avg_replies=round_half_up(avg_replies, 1),
        pct_with_replies=_percent(sum(1 for cast in roots if cast.reply_count > 0), len(roots)),
        reply_back_rate=_percent(len(repliers & replied_to), len(repliers)),
        positive_rate=_percent(sum(1 for c in labels if c.sentiment == "positive"), len(labels)),
    )


async def build_dashboard(
    fid: int,
    range_key: str,
    fetcher: NeynarFetcher,
    cache: RedisCache,
    now: Optional[datetime] = None,
    refresh: bool = False,
    llm: Optional[LLMClassifier] = None,
) -> Dashboard:
    """
    Build (or serve from cache) the dashboard for one user and range.

    Args:
        fid: User id
        range_key: One of DASHBOARD_RANGES ("7d", "30d")
        fetcher: Social graph fetcher
        cache: Classification and snapshot cache
        now: End of the current window (defaults to now, UTC)
        refresh: Ignore a cached snapshot and rebuild
        llm: Optional LLM fallback for low-confidence classifications

    Returns:
        Dashboard for the range

    Raises:
        UnknownRangeError: If range_key is not a known range
        NeynarError: If the user's casts cannot be fetched
    """
    if range_key not in DASHBOARD_RANGES:
        raise UnknownRangeError(f"Invalid range {range_key!r}. Use one of: {', '.join(DASHBOARD_RANGES)}")

    if not refresh:
        cached = cache.get_dashboard(fid, range_key)
        if cached is not None:
            try:
                snapshot = DASHBOARD_ADAPTER.validate_python(cached)
            except ValidationError as e:
                logger.warning("Discarding unreadable dashboard snapshot for fid %s (%s): %s", fid, range_key, e)
            else:
                logger.info("Dashboard cache hit for fid %s (%s)", fid, range_key)
                return replace(snapshot, cached=True)

    days = DASHBOARD_RANGES[range_key]
    end = ensure_utc(now) if now else now_utc()
    previous_end = end - timedelta(days=days)

    activity = await collect_activity(fetcher, fid)

    for cast in activity.casts:
        cast.emotion = compose(cast.text)
    entries = [TimestampedEmotion(timestamp=cast.timestamp, emotion=cast.emotion) for cast in activity.casts]

    def window_activity(window_end: datetime):
        casts = [c for c in activity.casts if in_window(c.timestamp, days, window_end)]
        replies = [r for r in activity.replies if in_window(r.timestamp, days, window_end)]
        return casts, replies, build_interactions(fid, casts, replies)

    window_casts, window_replies, edges = window_activity(end)
    _, _, previous_edges = window_activity(previous_end)

    metrics = compute_metrics_for_window(entries, days, end, edges)
    previous_metrics = compute_metrics_for_window(entries, days, previous_end, previous_edges)
    daily = compute_daily_metrics(e for e in entries if in_window(e.timestamp, days, end))

    classifications = await classify_posts(
        [Post(id=cast.hash, text=cast.text) for cast in window_casts],
        cache=cache,
        llm=llm,
        emotions={cast.hash: cast.emotion for cast in window_casts},
    )
    _, mutual_dyads, _ = compute_reciprocity(edges)

    dashboard = Dashboard(
        fid=fid,
        range=range_key,
        window_days=days,
        as_of=end,
        metrics=metrics,
        previous_metrics=previous_metrics,
        change=metric_change(metrics, previous_metrics),
        daily=daily,
        top_rage=top_rage_examples(window_casts, classifications),
        top_agency=top_agency_examples(window_casts, classifications),
        data_context=build_data_context(fid, window_casts, window_replies, classifications, mutual_dyads),
        engagement=compute_engagement(fid, activity.casts, activity.replies, classifications, days, end),
        profile=await fetcher.fetch_user_profile(fid),
    )

    cache.set_dashboard(fid, range_key, DASHBOARD_ADAPTER.dump_python(dashboard, mode="json"))
    logger.info(
        "Built %s dashboard for fid %s: %d posts in window",
        range_key, fid, metrics.total_messages,
    )
    return dashboard
