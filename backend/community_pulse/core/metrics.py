"""
Community-level metrics computed from message emotions.

Supports rolling windows (e.g. 7d, 30d) and per-day aggregation. Every
function is a pure reduction: results are recomputed from the inputs on each
call and do not depend on input order.
"""
from __future__ import annotations

import math
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Set, Tuple

from community_pulse.models import (
    CommunityMetrics,
    DailyMetrics,
    InteractionEdge,
    MessageEmotion,
    TimestampedEmotion,
)
from community_pulse.utils import ensure_utc, now_utc, round2, round3

HIGH_ANGER_THRESHOLD = 0.6  # strictly greater
HIGH_HOPE_THRESHOLD = 0.7
EMOTIONAL_THRESHOLD = 0.4  # positivity or anger
HIGH_AGENCY_THRESHOLD = 0.6
RAGE_DENSITY_SCALE = 1000


def compute_reciprocity(interactions: Iterable[InteractionEdge]) -> Tuple[float, int, int]:
    """
    Share of reply edges that belong to a mutual (two-way) relationship.

    Args:
        interactions: Directed reply edges

    Returns:
        Tuple of (reciprocity in [0, 1], mutual pair count, total edge count)
    """
    replied_to: Dict[Hashable, Set[Hashable]] = defaultdict(set)
    total = 0
    for edge in interactions:
        replied_to[edge.author_id].add(edge.replied_to_id)
        total += 1

    if total == 0:
        return 0.0, 0, 0

    mutual_pairs: Set[frozenset] = set()
    for author, recipients in replied_to.items():
        for recipient in recipients:
            if author in replied_to.get(recipient, ()):
                mutual_pairs.add(frozenset((author, recipient)))

    mutual = len(mutual_pairs)
    return min(1.0, (2 * mutual) / total), mutual, total


def aggregate(
    emotions: Sequence[MessageEmotion],
    interactions: Optional[Sequence[InteractionEdge]] = None,
) -> CommunityMetrics:
    """
    Aggregate per-message emotions into community metrics.

    Args:
        emotions: Message emotions (any objects exposing the score attributes)
        interactions: Optional reply edges; needed for reciprocity and trust

    Returns:
        CommunityMetrics, all zero for an empty input
    """
    total = len(emotions)
    if total == 0:
        return CommunityMetrics()

    high_anger = sum(1 for e in emotions if e.anger > HIGH_ANGER_THRESHOLD)
    high_hope = sum(1 for e in emotions if e.hope >= HIGH_HOPE_THRESHOLD)
    emotional = [
        e for e in emotions
        if e.positivity >= EMOTIONAL_THRESHOLD or e.anger >= EMOTIONAL_THRESHOLD
    ]
    emotional_with_agency = sum(1 for e in emotional if e.agency >= HIGH_AGENCY_THRESHOLD)

    # fsum is exactly rounded, so means do not depend on input order
    def mean(attr: str) -> float:
        return math.fsum(getattr(e, attr) for e in emotions) / total

    avg_positivity = mean("positivity")
    agency_rate = (emotional_with_agency / len(emotional)) * 100 if emotional else 0.0

    reciprocity = 0.0
    trust_gradient = 0.0
    if interactions:
        reciprocity, _, _ = compute_reciprocity(interactions)
        trust_gradient = avg_positivity * reciprocity

    return CommunityMetrics(
        rage_density=round2((high_anger / total) * RAGE_DENSITY_SCALE),
        hope_index=round3(mean("hope")),
        hope_high_pct=round2((high_hope / total) * 100),
        reciprocity=round3(reciprocity),
        trust_gradient=round3(trust_gradient),
        agency_rate=round2(agency_rate),
        avg_sentiment=round3(mean("sentiment")),
        avg_positivity=round3(avg_positivity),
        avg_negativity=round3(mean("negativity")),
        avg_anger=round3(mean("anger")),
        avg_agency=round3(mean("agency")),
        avg_confidence=round3(mean("confidence")),
        total_messages=total,
    )


def in_window(timestamp: datetime, window_days: float, end_date: datetime) -> bool:
    """Inclusive on both bounds: [end - window_days, end]."""
    end = ensure_utc(end_date)
    start = end - timedelta(days=window_days)
    return start <= ensure_utc(timestamp) <= end


def compute_metrics_for_window(
    entries: Iterable[TimestampedEmotion],
    window_days: float,
    end_date: Optional[datetime] = None,
    interactions: Optional[Sequence[InteractionEdge]] = None,
) -> CommunityMetrics:
    """
    Aggregate only the entries whose timestamp falls inside the window.

    Both bounds are inclusive, so an entry exactly on a boundary belongs to
    both adjacent windows.

    Args:
        entries: Timestamped emotions
        window_days: Window length in days
        end_date: End of the window (defaults to now, UTC)
        interactions: Optional reply edges, passed through unchanged

    Returns:
        CommunityMetrics for the window
    """
    end = end_date or now_utc()
    selected = [entry.emotion for entry in entries if in_window(entry.timestamp, window_days, end)]
    return aggregate(selected, interactions)


def utc_date_key(timestamp: datetime) -> str:
    return ensure_utc(timestamp).date().isoformat()


def compute_daily_metrics(entries: Iterable[TimestampedEmotion]) -> List[DailyMetrics]:
    """
    Aggregate entries per UTC calendar day.

    Args:
        entries: Timestamped emotions

    Returns:
        One DailyMetrics per day that has entries, sorted by date ascending
    """
    by_date: Dict[str, List[MessageEmotion]] = defaultdict(list)
    for entry in entries:
        by_date[utc_date_key(entry.timestamp)].append(entry.emotion)

    return [
        DailyMetrics(date=date, metrics=aggregate(day_emotions))
        for date, day_emotions in sorted(by_date.items())
    ]
