"""Tests for the HTTP API."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from community_pulse import main
from community_pulse.main import app, get_cache, get_fetcher, get_llm
from community_pulse.models import Classification
from community_pulse.sources.neynar import NeynarError


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def client(cache, fetcher):
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_fetcher] = lambda: fetcher
    app.dependency_overrides[get_llm] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


class FailingFetcher:
    async def fetch_user_casts(self, fid, limit=50, cursor=None, include_replies=True):
        raise NeynarError("Neynar API error: 429 slow down", status_code=429)


def entry(timestamp, **scores):
    return {"timestamp": timestamp, "emotion": scores}


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestAnalyze:
    def test_analyze(self, client):
        resp = client.post("/analyze", json={"text": "let's build something amazing"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["agency"] > 0.4
        assert "let's" in data["explain"]["agency_markers"]["commitments"]
        assert "action_emotion_boost" in data["explain"]["rules_triggered"]
        assert set(data["explain"]["valence"]) == {"compound", "pos", "neg", "neu"}

    def test_analyze_empty(self, client):
        data = client.post("/analyze", json={}).json()
        assert data["sentiment"] == 0
        assert data["confidence"] == 0.3

    def test_analyze_batch(self, client):
        resp = client.post("/analyze/batch", json={"posts": [{"id": "a", "text": "gm"}, {"id": "b", "text": "ngmi"}]})
        assert resp.status_code == 200
        data = resp.json()
        assert data["n_items"] == 2
        assert data["emotions"]["a"]["sentiment"] > 0
        assert data["emotions"]["b"]["sentiment"] < 0


class TestClassify:
    def test_classify(self, client, cache):
        resp = client.post(
            "/classify",
            json={"posts": [{"id": "0x1", "text": "This is bullshit, I am furious"}, {"id": "0x2", "text": "gm wagmi lfg"}]},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["n_items"] == 2
        assert data["llm_used"] is False
        assert data["classifications"]["0x1"]["has_anger"] is True
        assert data["classifications"]["0x2"]["sentiment"] == "positive"
        assert cache.get_classification("0x1") is not None

    def test_uses_cache(self, client, cache):
        cache.set_classification("0x1", Classification("neutral", False, 0.0, True))
        data = client.post("/classify", json={"posts": [{"id": "0x1", "text": "I am furious"}]}).json()
        assert data["classifications"]["0x1"]["has_agency"] is True

    def test_rejects_missing_id(self, client):
        assert client.post("/classify", json={"posts": [{"text": "gm"}]}).status_code == 422


class TestMetrics:
    def test_aggregate(self, client):
        body = {
            "entries": [
                entry("2024-01-01T10:00:00Z", anger=0.7, hope=0.8),
                entry("2024-01-01T11:00:00Z", anger=0.8, hope=0.9),
                entry("2024-01-02T10:00:00Z", anger=0.3, hope=0.3),
                entry("2024-01-03T10:00:00Z", anger=0.2, hope=0.4),
            ],
            "interactions": [{"author_id": 1, "replied_to_id": 2}, {"author_id": 2, "replied_to_id": 1}],
        }
        data = client.post("/metrics", json=body).json()
        assert data["rage_density"] == 500
        assert data["hope_index"] == 0.6
        assert data["hope_high_pct"] == 50
        assert data["reciprocity"] == 1.0
        assert data["total_messages"] == 4

    def test_numeric_and_string_ids_are_the_same_user(self, client):
        body = {
            "entries": [entry("2024-01-01T10:00:00Z", positivity=0.5)],
            "interactions": [{"author_id": 5, "replied_to_id": "7"}, {"author_id": "7", "replied_to_id": "5"}],
        }
        data = client.post("/metrics", json=body).json()
        assert data["reciprocity"] == 1.0
        assert data["trust_gradient"] == 0.5

    def test_window(self, client):
        body = {
            "entries": [
                entry("2024-05-20T12:00:00Z", sentiment=0.5),
                entry("2024-05-13T12:00:00Z", sentiment=0.3),
                entry("2024-05-10T12:00:00Z", sentiment=-0.5),
            ],
            "window_days": 7,
            "end_date": "2024-05-20T12:00:00Z",
        }
        data = client.post("/metrics", json=body).json()
        assert data["total_messages"] == 2
        assert data["avg_sentiment"] == 0.4

    def test_rejects_out_of_range_scores(self, client):
        body = {"entries": [entry("2024-01-01T00:00:00Z", anger=1.5)]}
        assert client.post("/metrics", json=body).status_code == 422

    def test_daily(self, client):
        body = {
            "entries": [
                entry("2024-01-02T10:00:00Z", sentiment=-0.2),
                entry("2024-01-01T10:00:00Z", sentiment=0.5),
                entry("2024-01-01T15:00:00Z", sentiment=0.3),
            ]
        }
        data = client.post("/metrics/daily", json=body).json()
        assert [d["date"] for d in data] == ["2024-01-01", "2024-01-02"]
        assert data[0]["metrics"]["total_messages"] == 2
        assert data[0]["metrics"]["avg_sentiment"] == 0.4


class TestDashboard:
    def test_dashboard(self, client):
        resp = client.get("/dashboard", params={"fid": 1, "range": "7d"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["range"] == "7d"
        assert data["cached"] is False
        assert data["metrics"]["total_messages"] == 3
        assert data["top_rage"][0]["hash"] == "0xa1"
        assert data["data_context"]["unique_engagers"] == 3
        assert data["profile"]["username"] == "user1"
        assert data["engagement"]["reply_back_rate"] == 33

        again = client.get("/dashboard", params={"fid": 1, "range": "7d"}).json()
        assert again["cached"] is True
        assert again["engagement"] == data["engagement"]
        assert again["top_rage"] == data["top_rage"]

    def test_invalid_range(self, client):
        assert client.get("/dashboard", params={"fid": 1, "range": "90d"}).status_code == 422

    def test_upstream_error(self, client):
        app.dependency_overrides[get_fetcher] = lambda: FailingFetcher()
        resp = client.get("/dashboard", params={"fid": 1})
        assert resp.status_code == 502
        assert "429" in resp.json()["detail"]

    def test_missing_key(self, client, monkeypatch):
        del app.dependency_overrides[get_fetcher]
        monkeypatch.setattr(main.settings, "NEYNAR_API_KEY", "")
        assert client.get("/dashboard", params={"fid": 1}).status_code == 503

    def test_clear_cache(self, client):
        client.get("/dashboard", params={"fid": 1, "range": "7d"})
        resp = client.post("/cache/clear", params={"fid": 1})
        assert resp.json() == {"fid": 1, "removed": 1}
        assert client.get("/dashboard", params={"fid": 1, "range": "7d"}).json()["cached"] is False
