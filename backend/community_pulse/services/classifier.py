"""
Batch classification pipeline: cache lookup, heuristic scoring, optional LLM
fallback for low-confidence posts, cache write-back.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from community_pulse.config import LLM_CONFIDENCE_THRESHOLD
from community_pulse.core.emotion import compose, to_classification
from community_pulse.models import Classification, LLMClassification, MessageEmotion, Post
from community_pulse.services.cache import RedisCache

logger = logging.getLogger(__name__)

LLMClassifier = Callable[[Sequence[Post]], Awaitable[Dict[str, LLMClassification]]]


def blend_with_llm(classification: Classification, llm_result: LLMClassification) -> Classification:
    """
    Let the LLM override sentiment and anger; agency stays with the lexicon.

    Args:
        classification: Heuristic classification
        llm_result: LLM verdict for the same post

    Returns:
        Blended Classification
    """
    return Classification(
        sentiment=llm_result.sentiment,
        has_anger=llm_result.has_anger,
        anger_confidence=llm_result.anger_confidence,
        has_agency=classification.has_agency,
    )


async def classify_posts(
    posts: Sequence[Post],
    cache: Optional[RedisCache] = None,
    llm: Optional[LLMClassifier] = None,
    threshold: float = LLM_CONFIDENCE_THRESHOLD,
    emotions: Optional[Mapping[str, MessageEmotion]] = None,
) -> Dict[str, Classification]:
    """
    Classify a batch of posts.

    Args:
        posts: Posts with stable ids
        cache: Classification cache consulted first and written after
        llm: Optional async LLM classifier for low-confidence posts
        threshold: Confidence below which a post goes to the LLM
        emotions: Already composed emotions by post id, reused instead of rescoring

    Returns:
        Mapping of post id to Classification
    """
    results: Dict[str, Classification] = {}
    if not posts:
        return results

    cached = cache.get_classifications(post.id for post in posts) if cache is not None else {}
    results.update(cached)

    uncached = [post for post in posts if post.id not in cached]
    logger.info("Classifying %d posts (%d cached)", len(posts), len(cached))
    if not uncached:
        return results

    fresh: Dict[str, Classification] = {}
    low_confidence: List[Post] = []
    for post in uncached:
        emotion = emotions.get(post.id) if emotions else None
        if emotion is None:
            emotion = compose(post.text)
        fresh[post.id] = to_classification(emotion)
        if emotion.confidence < threshold:
            low_confidence.append(post)

    if llm is not None and low_confidence:
        llm_results = await llm(low_confidence)
        for post_id, llm_result in llm_results.items():
            if post_id in fresh:
                fresh[post_id] = blend_with_llm(fresh[post_id], llm_result)
        logger.info("LLM fallback refined %d of %d low-confidence posts", len(llm_results), len(low_confidence))

    for post_id, classification in fresh.items():
        if cache is not None:
            cache.set_classification(post_id, classification)
        results[post_id] = classification

    return results


def analyze_posts(posts: Sequence[Post]) -> Dict[str, MessageEmotion]:
    """Full emotion (with explain trace) for each post, keyed by post id."""
    return {post.id: compose(post.text) for post in posts}
