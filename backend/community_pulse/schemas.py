# community_pulse/schemas.py
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from community_pulse.models import RuleTrigger


# ---------- Requests ----------

class PostIn(BaseModel):
    id: str = Field(..., min_length=1)
    text: str = ""


class AnalyzeRequest(BaseModel):
    text: str = ""


class AnalyzeBatchRequest(BaseModel):
    posts: List[PostIn] = Field(..., max_length=500)


class ClassifyRequest(BaseModel):
    posts: List[PostIn] = Field(..., max_length=500)
    use_llm: bool = False                     # only takes effect when OPENAI_API_KEY is set


class EmotionScoresIn(BaseModel):
    sentiment: float = Field(0.0, ge=-1.0, le=1.0)
    positivity: float = Field(0.0, ge=0.0, le=1.0)
    negativity: float = Field(0.0, ge=0.0, le=1.0)
    anger: float = Field(0.0, ge=0.0, le=1.0)
    hope: float = Field(0.0, ge=0.0, le=1.0)
    agency: float = Field(0.0, ge=0.0, le=1.0)
    confidence: float = Field(0.5, ge=0.0, le=1.0)


class TimestampedEmotionIn(BaseModel):
    timestamp: datetime                       # naive values are read as UTC
    emotion: EmotionScoresIn


class InteractionIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)  # 5 and "5" are the same user

    author_id: str = Field(..., min_length=1)
    replied_to_id: str = Field(..., min_length=1)


class MetricsRequest(BaseModel):
    entries: List[TimestampedEmotionIn] = Field(default_factory=list)
    interactions: List[InteractionIn] = Field(default_factory=list)
    window_days: Optional[float] = Field(None, gt=0)
    end_date: Optional[datetime] = None


class DailyMetricsRequest(BaseModel):
    entries: List[TimestampedEmotionIn] = Field(default_factory=list)


# ---------- Responses ----------

class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ValenceOut(_FromAttributes):
    compound: float
    pos: float
    neg: float
    neu: float


class LexiconHitsOut(_FromAttributes):
    positive_strong: List[str] = []
    positive_moderate: List[str] = []
    positive_phrases: List[str] = []
    anger_strong: List[str] = []
    anger_moderate: List[str] = []
    anger_phrases: List[str] = []
    crypto_negative: List[str] = []
    negations: List[str] = []
    intensifiers: List[str] = []


class HopeMarkersOut(_FromAttributes):
    future: List[str] = []
    hope: List[str] = []
    despair: List[str] = []


class AgencyMarkersOut(_FromAttributes):
    actions: List[str] = []
    commitments: List[str] = []


class ExplainOut(_FromAttributes):
    valence: ValenceOut
    lexicon_hits: LexiconHitsOut
    hope_markers: HopeMarkersOut
    agency_markers: AgencyMarkersOut
    rules_triggered: List[RuleTrigger] = []


class EmotionOut(_FromAttributes):
    sentiment: float
    positivity: float
    negativity: float
    anger: float
    hope: float
    agency: float
    confidence: float
    explain: Optional[ExplainOut] = None


class AnalyzeBatchResponse(BaseModel):
    n_items: int
    emotions: Dict[str, EmotionOut]


class ClassificationOut(_FromAttributes):
    sentiment: Literal["positive", "neutral", "negative"]
    has_anger: bool
    anger_confidence: float
    has_agency: bool


class ClassifyResponse(BaseModel):
    n_items: int
    llm_used: bool
    classifications: Dict[str, ClassificationOut]


class CommunityMetricsOut(_FromAttributes):
    rage_density: float
    hope_index: float
    hope_high_pct: float
    reciprocity: float
    trust_gradient: float
    agency_rate: float
    avg_sentiment: float
    avg_positivity: float
    avg_negativity: float
    avg_anger: float
    avg_agency: float
    avg_confidence: float
    total_messages: int


class DailyMetricsOut(_FromAttributes):
    date: str
    metrics: CommunityMetricsOut


class ExamplePostOut(_FromAttributes):
    hash: str
    excerpt: str
    timestamp: datetime
    score: float


class DataContextOut(_FromAttributes):
    total_posts: int
    root_posts: int
    replies_received: int
    unique_engagers: int
    mutual_dyads: int
    positive_posts: int
    negative_posts: int
    agency_posts: int
    agency_posts_with_action_replies: int


class EngagementOut(_FromAttributes):
    activation: int
    activation_change: int
    retention: int
    retention_change: int
    avg_replies: float
    pct_with_replies: int
    reply_back_rate: int
    positive_rate: int


class ProfileOut(_FromAttributes):
    fid: int
    username: str
    display_name: str = ""
    pfp_url: str = ""


class DashboardResponse(_FromAttributes):
    fid: int
    range: Literal["7d", "30d"]
    window_days: int
    as_of: datetime
    cached: bool = False
    metrics: CommunityMetricsOut
    previous_metrics: CommunityMetricsOut
    change: Dict[str, float]
    daily: List[DailyMetricsOut]
    top_rage: List[ExamplePostOut]
    top_agency: List[ExamplePostOut]
    data_context: DataContextOut
    engagement: EngagementOut
    profile: Optional[ProfileOut] = None


class CacheClearResponse(BaseModel):
    fid: int
    removed: int
