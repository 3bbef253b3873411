"""
File: community_pulse/models.py
Internal data structures used during scoring, aggregation and ingestion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Hashable, Literal, Optional, Tuple


JsonDict = Dict[str, Any]
SentimentLabel = Literal["positive", "neutral", "negative"]


class RuleTrigger(str, Enum):
    """Named rules the emotion composer records when they fire.

    Values are the stable string tokens consumed by tooltips and tests.
    """

    SARCASM_DETECTED = "sarcasm_detected"
    SARCASM_DAMPENED_POSITIVE = "sarcasm_dampened_positive"
    SARCASM_DAMPENED_POSITIVITY = "sarcasm_dampened_positivity"
    ANGER_DETECTED = "anger_detected"
    FUTURE_MARKERS_FOUND = "future_markers_found"
    DESPAIR_MARKERS_FOUND = "despair_markers_found"
    ACTION_EMOTION_BOOST = "action_emotion_boost"
    COMMITMENT_DETECTED = "commitment_detected"
    LONGER_TEXT_BOOST = "longer_text_boost"
    SHORT_TEXT_PENALTY = "short_text_penalty"
    SIGNALS_AGREE = "signals_agree"
    SLANG_ONLY_PENALTY = "slang_only_penalty"


# ---------- Per-message signals ----------


@dataclass(frozen=True)
class Post:
    """A message to classify. `id` is the caller-owned stable identifier."""

    id: str
    text: str


@dataclass(frozen=True)
class BaselineValence:
    """General-purpose valence of a text. pos + neg + neu is 1 up to rounding."""

    compound: float  # [-1, 1]
    pos: float
    neg: float
    neu: float


NEUTRAL_VALENCE = BaselineValence(compound=0.0, pos=0.0, neg=0.0, neu=1.0)


@dataclass(frozen=True)
class LexiconHits:
    """Every term or phrase the domain lexicon matched, per category."""

    positive_strong: Tuple[str, ...] = ()
    positive_moderate: Tuple[str, ...] = ()
    positive_phrases: Tuple[str, ...] = ()
    anger_strong: Tuple[str, ...] = ()
    anger_moderate: Tuple[str, ...] = ()
    anger_phrases: Tuple[str, ...] = ()
    crypto_negative: Tuple[str, ...] = ()
    negations: Tuple[str, ...] = ()
    intensifiers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LexiconSignal:
    positive_delta: float  # [0, 0.4]
    anger_delta: float  # [0, 0.6]
    negative_delta: float  # [0, 0.5]
    hits: LexiconHits = field(default_factory=LexiconHits)


@dataclass(frozen=True)
class HopeMarkers:
    future: Tuple[str, ...] = ()
    hope: Tuple[str, ...] = ()
    despair: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HopeSignal:
    future_score: float
    hope_score: float
    despair_score: float
    markers: HopeMarkers = field(default_factory=HopeMarkers)


@dataclass(frozen=True)
class AgencyMarkers:
    actions: Tuple[str, ...] = ()
    commitments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AgencySignal:
    action_score: float
    commitment_score: float
    markers: AgencyMarkers = field(default_factory=AgencyMarkers)


@dataclass(frozen=True)
class EmotionExplain:
    """Everything upstream of the final scores, kept for explainability."""

    valence: BaselineValence
    lexicon_hits: LexiconHits
    hope_markers: HopeMarkers
    agency_markers: AgencyMarkers
    rules_triggered: Tuple[RuleTrigger, ...] = ()


@dataclass(frozen=True)
class MessageEmotion:
    sentiment: float  # [-1, 1]
    positivity: float
    negativity: float
    anger: float
    hope: float
    agency: float
    confidence: float
    explain: Optional[EmotionExplain] = None


@dataclass(frozen=True)
class Classification:
    """Compact, persistable view of a MessageEmotion."""

    sentiment: SentimentLabel
    has_anger: bool
    anger_confidence: float
    has_agency: bool


@dataclass(frozen=True)
class LLMClassification:
    sentiment: SentimentLabel
    has_anger: bool
    anger_confidence: float


# ---------- Aggregation ----------


@dataclass(frozen=True)
class TimestampedEmotion:
    timestamp: datetime
    emotion: MessageEmotion


@dataclass(frozen=True)
class InteractionEdge:
    """A directed reply: author_id replied to replied_to_id."""

    author_id: Hashable
    replied_to_id: Hashable


@dataclass(frozen=True)
class CommunityMetrics:
    rage_density: float = 0.0  # high-anger messages per 1000
    hope_index: float = 0.0
    hope_high_pct: float = 0.0
    reciprocity: float = 0.0
    trust_gradient: float = 0.0
    agency_rate: float = 0.0
    avg_sentiment: float = 0.0
    avg_positivity: float = 0.0
    avg_negativity: float = 0.0
    avg_anger: float = 0.0
    avg_agency: float = 0.0
    avg_confidence: float = 0.0
    total_messages: int = 0


@dataclass(frozen=True)
class DailyMetrics:
    date: str  # YYYY-MM-DD (UTC)
    metrics: CommunityMetrics


# ---------- Social graph records (filled during ingestion) ----------


@dataclass
class CastRecord:
    """A post by the tracked user, normalized from the social graph source."""

    hash: str
    fid: int
    timestamp: datetime
    text: str
    parent_hash: Optional[str] = None
    parent_fid: Optional[int] = None
    reply_count: int = 0

    # Set by the dashboard service
    emotion: Optional[MessageEmotion] = None

    @property
    def is_root(self) -> bool:
        return self.parent_hash is None


@dataclass
class ReplyRecord:
    """A direct reply to one of the tracked user's root posts."""

    hash: str
    parent_hash: str
    author_fid: int
    timestamp: datetime
    text: str
    has_action_signal: bool = False


@dataclass
class UserProfile:
    fid: int
    username: str
    display_name: str = ""
    pfp_url: str = ""


__all__ = [
    "AgencyMarkers",
    "AgencySignal",
    "BaselineValence",
    "CastRecord",
    "Classification",
    "CommunityMetrics",
    "DailyMetrics",
    "EmotionExplain",
    "HopeMarkers",
    "HopeSignal",
    "InteractionEdge",
    "JsonDict",
    "LLMClassification",
    "LexiconHits",
    "LexiconSignal",
    "MessageEmotion",
    "NEUTRAL_VALENCE",
    "Post",
    "ReplyRecord",
    "RuleTrigger",
    "SentimentLabel",
    "TimestampedEmotion",
    "UserProfile",
]
