"""Tests for batch classification with cache and LLM fallback."""

import pytest

from community_pulse.core.emotion import compose, to_classification
from community_pulse.models import Classification, LLMClassification, Post
from community_pulse.services.classifier import analyze_posts, blend_with_llm, classify_posts

POSTS = [
    Post(id="0x1", text="This is absolutely amazing, I love it so much!"),
    Post(id="0x2", text="ok"),
    Post(id="0x3", text="let's build something amazing"),
]


class RecordingLLM:
    def __init__(self, results=None):
        self.results = results or {}
        self.calls = []

    async def __call__(self, posts):
        self.calls.append([p.id for p in posts])
        return {p.id: self.results[p.id] for p in posts if p.id in self.results}


class TestBlend:
    def test_llm_overrides_sentiment_and_anger_but_not_agency(self):
        heuristic = Classification(sentiment="neutral", has_anger=False, anger_confidence=0.0, has_agency=True)
        llm = LLMClassification(sentiment="negative", has_anger=True, anger_confidence=0.9)
        assert blend_with_llm(heuristic, llm) == Classification(
            sentiment="negative", has_anger=True, anger_confidence=0.9, has_agency=True
        )


class TestClassifyPosts:
    @pytest.mark.asyncio
    async def test_empty(self):
        assert await classify_posts([]) == {}

    @pytest.mark.asyncio
    async def test_heuristic_only(self):
        results = await classify_posts(POSTS)
        assert set(results) == {"0x1", "0x2", "0x3"}
        for post in POSTS:
            assert results[post.id] == to_classification(compose(post.text))
        assert results["0x1"].sentiment == "positive"

    @pytest.mark.asyncio
    async def test_only_low_confidence_posts_reach_llm(self):
        llm = RecordingLLM({"0x2": LLMClassification(sentiment="negative", has_anger=True, anger_confidence=0.8)})
        results = await classify_posts(POSTS, llm=llm)

        assert llm.calls == [["0x2"]]
        assert results["0x2"].sentiment == "negative"
        assert results["0x2"].has_anger is True
        assert results["0x1"] == to_classification(compose(POSTS[0].text))

    @pytest.mark.asyncio
    async def test_missing_llm_result_keeps_heuristic(self):
        llm = RecordingLLM()
        results = await classify_posts(POSTS, llm=llm)
        assert results["0x2"] == to_classification(compose("ok"))

    @pytest.mark.asyncio
    async def test_cache_hits_skip_scoring(self, cache):
        cached = Classification(sentiment="negative", has_anger=True, anger_confidence=1.0, has_agency=False)
        cache.set_classification("0x1", cached)

        llm = RecordingLLM()
        results = await classify_posts(POSTS, cache=cache, llm=llm)

        assert results["0x1"] == cached
        assert cache.get_classification("0x3") == results["0x3"]
        assert all("0x1" not in call for call in llm.calls)

    @pytest.mark.asyncio
    async def test_fully_cached_batch(self, cache):
        for post in POSTS:
            cache.set_classification(post.id, to_classification(compose(post.text)))
        llm = RecordingLLM()
        results = await classify_posts(POSTS, cache=cache, llm=llm)
        assert len(results) == 3
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_threshold(self):
        llm = RecordingLLM()
        await classify_posts(POSTS, llm=llm, threshold=0.0)
        assert llm.calls == []
        await classify_posts(POSTS, llm=llm, threshold=1.01)
        assert llm.calls == [["0x1", "0x2", "0x3"]]


def test_analyze_posts_keys_by_id():
    results = analyze_posts(POSTS)
    assert list(results) == ["0x1", "0x2", "0x3"]
    assert results["0x3"] == compose(POSTS[2].text)
    assert results["0x3"].explain is not None
