"""
Main FastAPI application and routing layer.
"""
from __future__ import annotations

import logging
from typing import List, Optional

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from community_pulse.config import CORS_ALLOW_ORIGINS, LOG_FORMAT, LOG_LEVEL, settings
from community_pulse.core.emotion import compose
from community_pulse.core.metrics import aggregate, compute_daily_metrics, compute_metrics_for_window
from community_pulse.models import InteractionEdge, MessageEmotion, Post, TimestampedEmotion
from community_pulse.schemas import (
    AnalyzeBatchRequest,
    AnalyzeBatchResponse,
    AnalyzeRequest,
    CacheClearResponse,
    ClassificationOut,
    ClassifyRequest,
    ClassifyResponse,
    CommunityMetricsOut,
    DailyMetricsOut,
    DailyMetricsRequest,
    DashboardResponse,
    EmotionOut,
    InteractionIn,
    MetricsRequest,
    TimestampedEmotionIn,
)
from community_pulse.services.cache import RedisCache, get_cache
from community_pulse.services.classifier import LLMClassifier, analyze_posts, classify_posts
from community_pulse.services.dashboard import build_dashboard
from community_pulse.services.llm import classify_batch_with_llm
from community_pulse.sources.neynar import NeynarError, NeynarFetcher
from community_pulse.utils import now_utc

# Configure logging
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def get_llm() -> Optional[LLMClassifier]:
    """LLM fallback, only when an OpenAI key is configured."""
    if not settings.OPENAI_API_KEY:
        return None
    return classify_batch_with_llm


def get_fetcher() -> NeynarFetcher:
    """Social graph fetcher; 503 when no Neynar key is configured."""
    if not settings.NEYNAR_API_KEY:
        raise HTTPException(status_code=503, detail="Social graph source is not configured (NEYNAR_API_KEY)")
    return NeynarFetcher(settings.NEYNAR_API_KEY)


def to_entries(entries: List[TimestampedEmotionIn]) -> List[TimestampedEmotion]:
    return [
        TimestampedEmotion(timestamp=entry.timestamp, emotion=MessageEmotion(**entry.emotion.model_dump()))
        for entry in entries
    ]


def to_edges(interactions: List[InteractionIn]) -> List[InteractionEdge]:
    return [InteractionEdge(author_id=i.author_id, replied_to_id=i.replied_to_id) for i in interactions]


# Initialize FastAPI app
app = FastAPI(
    title="Community Pulse API",
    version="0.1.0",
    description="Emotion scoring for short social posts and community health metrics",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "as_of": now_utc().isoformat(),
        "service": "community-pulse-api",
        "llm_enabled": bool(settings.OPENAI_API_KEY),
        "social_graph_enabled": bool(settings.NEYNAR_API_KEY),
    }


@app.post("/analyze", response_model=EmotionOut)
async def analyze_text(body: AnalyzeRequest):
    """Full emotion vector, with explain trace, for one message."""
    return EmotionOut.model_validate(compose(body.text))


@app.post("/analyze/batch", response_model=AnalyzeBatchResponse)
async def analyze_batch(body: AnalyzeBatchRequest):
    posts = [Post(id=p.id, text=p.text) for p in body.posts]
    emotions = analyze_posts(posts)
    return AnalyzeBatchResponse(
        n_items=len(emotions),
        emotions={post_id: EmotionOut.model_validate(e) for post_id, e in emotions.items()},
    )


@app.post("/classify", response_model=ClassifyResponse)
async def classify(
    body: ClassifyRequest,
    cache: RedisCache = Depends(get_cache),
    llm: Optional[LLMClassifier] = Depends(get_llm),
):
    """
    Classify a batch of posts.

    Cached classifications are reused; low-confidence posts go to the LLM
    fallback when `use_llm` is set and a key is configured.
    """
    posts = [Post(id=p.id, text=p.text) for p in body.posts]
    use_llm = body.use_llm and llm is not None

    try:
        results = await classify_posts(posts, cache=cache, llm=llm if use_llm else None)
    except Exception as e:
        logger.error("Error classifying %d posts: %s", len(posts), e)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    return ClassifyResponse(
        n_items=len(results),
        llm_used=use_llm,
        classifications={post_id: ClassificationOut.model_validate(c) for post_id, c in results.items()},
    )


@app.post("/metrics", response_model=CommunityMetricsOut)
async def community_metrics(body: MetricsRequest):
    """Aggregate metrics, filtered to a window when `window_days` is given."""
    entries = to_entries(body.entries)
    edges = to_edges(body.interactions)

    if body.window_days is not None:
        metrics = compute_metrics_for_window(entries, body.window_days, body.end_date, edges)
    else:
        metrics = aggregate([entry.emotion for entry in entries], edges)
    return CommunityMetricsOut.model_validate(metrics)


@app.post("/metrics/daily", response_model=List[DailyMetricsOut])
async def daily_metrics(body: DailyMetricsRequest):
    return [DailyMetricsOut.model_validate(day) for day in compute_daily_metrics(to_entries(body.entries))]


@app.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    fid: int = Query(..., ge=1, description="Farcaster user id"),
    range_key: str = Query("30d", alias="range", pattern="^(7d|30d)$", description="Dashboard range: 7d or 30d"),
    refresh: bool = Query(False, description="Ignore the cached snapshot"),
    fetcher: NeynarFetcher = Depends(get_fetcher),
    cache: RedisCache = Depends(get_cache),
    llm: Optional[LLMClassifier] = Depends(get_llm),
):
    """
    Community dashboard for one user.

    Args:
        fid: Farcaster user id
        range_key: Dashboard range ("7d" or "30d")
        refresh: Rebuild even when a cached snapshot exists

    Returns:
        DashboardResponse with window, previous-window and daily metrics
    """
    try:
        logger.info("Building %s dashboard for fid %s", range_key, fid)
        result = await build_dashboard(fid, range_key, fetcher, cache, refresh=refresh, llm=llm)
        return DashboardResponse.model_validate(result)

    except HTTPException:
        raise
    except NeynarError as e:
        logger.error("Social graph error for fid %s: %s", fid, e)
        raise HTTPException(status_code=502, detail=f"Upstream error: {e.message}")
    except httpx.HTTPError as e:
        logger.error("Social graph request failed for fid %s: %s", fid, e)
        raise HTTPException(status_code=502, detail=f"Upstream request failed: {str(e)}")
    except Exception as e:
        logger.error("Error building dashboard for fid %s: %s", fid, e)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@app.post("/cache/clear", response_model=CacheClearResponse)
async def clear_cache(
    fid: int = Query(..., ge=1),
    cache: RedisCache = Depends(get_cache),
):
    """Drop cached dashboard snapshots for a user."""
    return CacheClearResponse(fid=fid, removed=cache.invalidate_dashboard(fid))


if __name__ == "__main__":
    # For development
    import uvicorn
    uvicorn.run("community_pulse.main:app", host="0.0.0.0", port=8000, reload=True)
