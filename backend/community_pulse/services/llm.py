"""
LLM fallback classifier for posts the heuristic scores with low confidence.

The gateway is optional: without an API key it returns no results and the
caller keeps the lexicon-based classification.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI

from community_pulse.config import LLM_BATCH_SIZE, LLM_MAX_TEXT_CHARS, LLM_MODEL, settings
from community_pulse.models import LLMClassification, Post
from community_pulse.utils import chunk, clamp_to_unit_range

logger = logging.getLogger(__name__)

_LABELS = ("positive", "negative", "neutral")


def get_openai_client() -> Optional[AsyncOpenAI]:
    """Get OpenAI client only when an API key is configured."""
    if not settings.OPENAI_API_KEY:
        return None
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


SYSTEM_PROMPT = (
    "You classify short social media posts for sentiment and anger. "
    "Be literal about tone, account for crypto and internet slang, and "
    "return only valid JSON with no explanation."
)

BATCH_PROMPT = """Classify each social media post for sentiment and anger.

For each post, determine:
1. sentiment: "positive" (optimistic, happy, grateful), "negative" (angry, sad, frustrated), or "neutral"
2. has_anger: true if the post expresses frustration, outrage, or anger
3. anger_confidence: 0.0-1.0 indicating how confident you are about anger detection

Return a JSON array with one object per post in the same order.
Format: [{{"sentiment": "...", "has_anger": bool, "anger_confidence": 0.0-1.0}}, ...]

Posts to classify:
{posts}"""

SINGLE_PROMPT = """Classify this social media post:
"{text}"

Return JSON: {{"sentiment": "positive"|"negative"|"neutral", "has_anger": bool, "anger_confidence": 0.0-1.0}}"""


def strip_code_fences(content: str) -> str:
    """Remove a markdown code fence wrapped around a JSON payload."""
    content = content.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else ""
        if content.rstrip().endswith("```"):
            content = content.rstrip()[:-3]
    return content.strip()


def parse_llm_classification(data: Any) -> LLMClassification:
    """
    Coerce one parsed JSON object into an LLMClassification.

    Unknown labels become "neutral" and confidences are clamped to [0, 1].

    Args:
        data: Parsed JSON value for one post

    Returns:
        LLMClassification
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

    label = str(data.get("sentiment") or "neutral").lower()
    if label not in _LABELS:
        label = "neutral"

    try:
        confidence = float(data.get("anger_confidence") or 0.0)
    except (TypeError, ValueError):
        confidence = 0.0

    return LLMClassification(
        sentiment=label,
        has_anger=bool(data.get("has_anger", False)),
        anger_confidence=clamp_to_unit_range(confidence),
    )


def format_posts(posts: Sequence[Post]) -> str:
    return "\n".join(
        f'[{i}] "{post.text[:LLM_MAX_TEXT_CHARS].replace(chr(34), chr(39))}"'
        for i, post in enumerate(posts)
    )


async def _complete(client: AsyncOpenAI, prompt: str, model: str, max_tokens: int) -> str:
    response = await client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        temperature=0.0,
        max_tokens=max_tokens,
    )
    return strip_code_fences(response.choices[0].message.content or "")


async def classify_with_llm(
    post: Post,
    client: AsyncOpenAI,
    model: str = LLM_MODEL,
) -> Optional[LLMClassification]:
    """
    Classify a single post.

    Returns:
        LLMClassification, or None when the request or its parsing fails
    """
    prompt = SINGLE_PROMPT.format(text=post.text[:500])
    try:
        content = await _complete(client, prompt, model, max_tokens=100)
        return parse_llm_classification(json.loads(content))
    except Exception as e:
        logger.warning("LLM classification failed for post %s: %s", post.id, e)
        return None


async def _classify_chunk(
    posts: Sequence[Post],
    client: AsyncOpenAI,
    model: str,
) -> Dict[str, LLMClassification]:
    results: Dict[str, LLMClassification] = {}
    try:
        content = await _complete(client, BATCH_PROMPT.format(posts=format_posts(posts)), model, max_tokens=2000)
        data = json.loads(content)
        if not isinstance(data, list):
            raise ValueError("LLM did not return a JSON array")

        # Extra entries are ignored; missing ones leave their posts unclassified
        for post, item in zip(posts, data):
            results[post.id] = parse_llm_classification(item)
        return results

    except Exception as e:
        logger.warning("Batch LLM classification failed (%s); classifying %d posts individually", e, len(posts))

    for post in posts:
        result = await classify_with_llm(post, client, model)
        if result is not None:
            results[post.id] = result
    return results


async def classify_batch_with_llm(
    posts: Sequence[Post],
    client: Optional[AsyncOpenAI] = None,
    model: str = LLM_MODEL,
    batch_size: int = LLM_BATCH_SIZE,
) -> Dict[str, LLMClassification]:
    """
    Classify posts with the LLM in batches.

    Args:
        posts: Posts to classify
        client: OpenAI client (defaults to one built from OPENAI_API_KEY)
        model: Chat model name
        batch_size: Posts per request

    Returns:
        Mapping of post id to LLMClassification; posts that could not be
        classified are absent, and the mapping is empty when no client exists
    """
    if not posts:
        return {}

    client = client or get_openai_client()
    if client is None:
        logger.debug("No OpenAI key configured; skipping LLM fallback for %d posts", len(posts))
        return {}

    results: Dict[str, LLMClassification] = {}
    batches: List[List[Post]] = chunk(posts, max(1, batch_size))
    for batch in batches:
        results.update(await _classify_chunk(batch, client, model))
    return results
