"""Shared fixtures for the community pulse test suite."""

from __future__ import annotations

import fnmatch
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import pytest

from community_pulse.models import CastRecord, MessageEmotion, ReplyRecord, UserProfile
from community_pulse.services.cache import RedisCache


def make_emotion(**overrides) -> MessageEmotion:
    """A mid-range emotion; override only the scores a test cares about."""
    values = dict(
        sentiment=0.0,
        positivity=0.3,
        negativity=0.1,
        anger=0.1,
        hope=0.3,
        agency=0.2,
        confidence=0.5,
    )
    values.update(overrides)
    return MessageEmotion(**values)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """Dict-backed stand-in for the subset of redis.Redis the cache uses."""

    def __init__(self, clock: FakeClock):
        self._clock = clock
        self._data: Dict[str, str] = {}
        self._expires: Dict[str, float] = {}

    def _purge(self, key: str) -> None:
        expires_at = self._expires.get(key)
        if expires_at is not None and self._clock() >= expires_at:
            self._data.pop(key, None)
            self._expires.pop(key, None)

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        pass

    def get(self, key: str) -> Optional[str]:
        self._purge(key)
        return self._data.get(key)

    def mget(self, keys: List[str]) -> List[Optional[str]]:
        return [self.get(key) for key in keys]

    def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._data[key] = value
        self._expires.pop(key, None)
        if ex is not None:
            self._expires[key] = self._clock() + ex
        return True

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            self._purge(key)
            if self._data.pop(key, None) is not None:
                removed += 1
            self._expires.pop(key, None)
        return removed

    def ttl(self, key: str) -> int:
        self._purge(key)
        if key not in self._data:
            return -2
        if key not in self._expires:
            return -1
        return int(self._expires[key] - self._clock())

    def scan_iter(self, match: str = "*", count: int = 10):
        for key in list(self._data):
            self._purge(key)
            if key in self._data and fnmatch.fnmatchcase(key, match):
                yield key

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        # A real redis.Redis client is always truthy; defining __len__ must not change that.
        return True


class FakeFetcher:
    """In-memory stand-in for NeynarFetcher with the same async surface."""

    def __init__(
        self,
        casts: List[CastRecord],
        replies: Optional[Dict[str, List[ReplyRecord]]] = None,
        page_size: int = 2,
    ):
        self.casts = casts
        self.replies = replies or {}
        self.page_size = page_size
        self.cast_calls = 0
        self.reply_calls: List[str] = []

    async def fetch_user_casts(
        self, fid, limit=50, cursor=None, include_replies=True
    ) -> Tuple[List[CastRecord], Optional[str]]:
        self.cast_calls += 1
        start = int(cursor or 0)
        end = start + min(limit, self.page_size)
        page = self.casts[start:end]
        next_cursor = str(end) if end < len(self.casts) else None
        return page, next_cursor

    async def fetch_cast_replies(self, cast_hash, limit=50) -> List[ReplyRecord]:
        self.reply_calls.append(cast_hash)
        return list(self.replies.get(cast_hash, []))[:limit]

    async def fetch_user_profile(self, fid) -> Optional[UserProfile]:
        return UserProfile(fid=fid, username=f"user{fid}")


@pytest.fixture(autouse=True)
def reset_cache_singleton():
    RedisCache.reset()
    yield
    RedisCache.reset()


@pytest.fixture(autouse=True)
def no_rate_limit(monkeypatch):
    monkeypatch.setattr("community_pulse.sources.collector.RATE_LIMIT_DELAY_SECONDS", 0)


@pytest.fixture
def emotion():
    """Factory for MessageEmotion values with sensible defaults."""
    return make_emotion


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def redis_client(clock):
    return FakeRedis(clock)


@pytest.fixture
def cache(redis_client):
    return RedisCache(client=redis_client, dashboard_ttl=900)


@pytest.fixture
def now():
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def activity(now):
    """A small two-week history for user 1 with replies from users 2, 3 and 4."""
    casts = [
        CastRecord(
            hash="0xa1",
            fid=1,
            timestamp=now - timedelta(hours=2),
            text="This is bullshit, I am furious and sick of these scammers. Fix it!",
        ),
        CastRecord(
            hash="0xa2",
            fid=1,
            timestamp=now - timedelta(days=1),
            text="Let's build something amazing together, I will help organize the launch",
        ),
        CastRecord(
            hash="0xa3",
            fid=1,
            timestamp=now - timedelta(days=2),
            text="thanks fren, love this",
            parent_hash="0xother",
            parent_fid=2,
        ),
        CastRecord(
            hash="0xa4",
            fid=1,
            timestamp=now - timedelta(days=10),
            text="gm wagmi lfg",
        ),
    ]
    replies = {
        "0xa1": [
            ReplyRecord(hash="0xr1", parent_hash="0xa1", author_fid=2, timestamp=now - timedelta(hours=1), text="agreed, this is awful"),
        ],
        "0xa2": [
            ReplyRecord(hash="0xr2", parent_hash="0xa2", author_fid=3, timestamp=now - timedelta(hours=20), text="count me in"),
            ReplyRecord(hash="0xr3", parent_hash="0xa2", author_fid=4, timestamp=now - timedelta(hours=19), text="i'll join"),
            ReplyRecord(hash="0xr3", parent_hash="0xa2", author_fid=4, timestamp=now - timedelta(hours=19), text="i'll join"),
        ],
        "0xa4": [
            ReplyRecord(hash="0xr4", parent_hash="0xa4", author_fid=2, timestamp=now - timedelta(days=9), text="gm"),
        ],
    }
    return casts, replies


@pytest.fixture
def fetcher(activity):
    casts, replies = activity
    return FakeFetcher(casts, replies)
