"""
HTTP surface: collection triggers, cron guard and review endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from papertriage.api import main as api_main
from papertriage.api import runtime
from papertriage.config import Settings
from papertriage.domain.harvest import HarvestSource
from papertriage.domain.interest import InterestType
from papertriage.domain.paper import PaperSource
from papertriage.domain.review import ReviewStatus


@pytest.fixture
def install_runner(monkeypatch, make_runner):
    def _install(**kwargs):
        runner = make_runner(**kwargs)
        monkeypatch.setattr(runtime, "_runner", runner)
        return runner

    return _install


@pytest.fixture
def client():
    return TestClient(api_main.app)


def _pending(stores, title, score):
    return stores.papers.insert_paper(
        paper={"title": title}, source=PaperSource.KEYWORD_SEARCH, relevance_score=score
    )["id"]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy", "version": "0.1.0"}


class TestCollectRoutes:
    def test_collect_keywords(self, stores, install_runner, client, harvester_cls, make_paper):
        stores.configs.add_keyword("robots", sources=["arXiv"])
        install_runner(harvesters={HarvestSource.ARXIV: harvester_cls(HarvestSource.ARXIV, [make_paper("Robot")])})

        response = client.post("/api/collect")

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"trace_id", "results", "summary"}
        assert body["results"][0]["keyword"] == "robots"
        assert body["summary"]["total_papers_found"] == 1

    def test_collect_rss_without_feeds(self, install_runner, client):
        install_runner()
        body = client.post("/api/collect/rss").json()
        assert body["results"] == []
        assert body["summary"]["processed"] == 0

    def test_collect_citations_with_seed_cap(self, add_seed, install_runner, client):
        add_seed("First seed")
        add_seed("Second seed")
        install_runner()

        body = client.post("/api/collect/citations", json={"max_seeds": 1}).json()

        assert body["summary"]["processed"] == 1
        assert body["results"][0]["status"] == "error"

    def test_collect_citations_rejects_zero_cap(self, install_runner, client):
        install_runner()
        assert client.post("/api/collect/citations", json={"max_seeds": 0}).status_code == 422

    def test_cron_requires_bearer_secret(self, install_runner, client):
        install_runner(config=Settings(cron_secret="s3cret"))

        assert client.post("/api/cron/collect").status_code == 401
        assert client.post("/api/cron/collect", headers={"Authorization": "Bearer nope"}).status_code == 401

        response = client.post("/api/cron/collect", headers={"Authorization": "Bearer s3cret"})
        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["skipped"] is False
        assert "citations" in body

    def test_cron_open_without_secret(self, install_runner, client):
        install_runner()
        assert client.post("/api/cron/collect").json()["ok"] is True

    def test_cron_skips_when_auto_collect_disabled(self, stores, install_runner, client):
        stores.settings.update_review_settings({"auto_collect_enabled": False})
        install_runner()

        body = client.post("/api/cron/collect").json()

        assert body == {"ok": True, "skipped": True, "message": "automatic collection is disabled"}


class TestReviewRoutes:
    def test_queue_and_single_review(self, stores, install_runner, client, fake_llm_cls):
        low = _pending(stores, "Low", 40)
        high = _pending(stores, "High", 75)
        install_runner(llm=fake_llm_cls({"keywords": '["robot learning"]'}))

        queue = client.get("/api/papers/review", params={"limit": 5}).json()
        assert [p["id"] for p in queue["papers"]] == [high, low]
        assert queue["total_pending"] == 2

        response = client.post("/api/papers/review", json={"paper_id": high, "action": "approve"})
        assert response.status_code == 200
        assert response.json()["review_status"] == "approved"
        assert stores.papers.get_paper(high)["review_status"] == "approved"

        learned = stores.interests.list_interests(type=InterestType.LEARNED)
        assert [e.label for e in learned] == ["robot learning"]

    def test_review_unknown_paper(self, install_runner, client):
        install_runner()
        response = client.post("/api/papers/review", json={"paper_id": 42, "action": "skip"})
        assert response.status_code == 404

    def test_review_rejects_unknown_action(self, install_runner, client):
        install_runner()
        response = client.post("/api/papers/review", json={"paper_id": 1, "action": "maybe"})
        assert response.status_code == 422

    def test_bulk_review(self, stores, install_runner, client):
        high = _pending(stores, "High", 90)
        _pending(stores, "Middle", 50)
        install_runner()

        body = client.post("/api/papers/review/bulk", json={"action": "approve_all_auto", "min_score": 80}).json()

        assert body["affected_count"] == 1
        assert stores.papers.get_paper(high)["review_status"] == ReviewStatus.APPROVED.value
        bad = client.post("/api/papers/review/bulk", json={"action": "archive"})
        assert bad.status_code == 400

    def test_rescore_requires_profile(self, install_runner, client):
        install_runner()
        response = client.post("/api/scoring/rescore")
        assert response.status_code == 400
        assert "empty" in response.json()["detail"]

    def test_rescore(self, stores, install_runner, client, fake_llm_cls):
        stores.interests.add_interest("robots")
        paper_id = _pending(stores, "Robot", 50)
        install_runner(llm=fake_llm_cls({"score": '{"score": 20}'}))

        body = client.post("/api/scoring/rescore").json()

        assert body["success"] is True
        assert body["rescored"] == 1
        assert stores.papers.get_paper(paper_id)["review_status"] == "auto_skipped"

    def test_scoring_test_endpoint(self, stores, install_runner, client, fake_llm_cls):
        stores.interests.add_interest("robots")
        install_runner(llm=fake_llm_cls({"score": "not json at all"}))

        body = client.post("/api/scoring/test", json={"title": "Robot hands"}).json()

        assert body["score"] == 50
        assert body["fallback"] is True
        assert body["review_status"] == "pending"

    def test_review_settings_roundtrip(self, install_runner, client):
        install_runner()

        assert client.get("/api/settings/review").json()["auto_approve_threshold"] == 70

        updated = client.put("/api/settings/review", json={"auto_approve_threshold": 80, "scoring_enabled": False})
        assert updated.status_code == 200
        assert updated.json() == {
            "auto_approve_threshold": 80,
            "auto_skip_threshold": 30,
            "scoring_enabled": False,
            "auto_collect_enabled": True,
        }
        assert client.put("/api/settings/review", json={"auto_skip_threshold": 150}).status_code == 400

    def test_metrics(self, stores, install_runner, client):
        paper_id = _pending(stores, "Scored", 80)
        install_runner()
        client.post("/api/papers/review", json={"paper_id": paper_id, "action": "approve"})

        metrics = client.get("/api/settings/review/metrics").json()

        assert metrics["total_reviews"] == 1
        assert metrics["accuracy"] == 100

    def test_interest_crud(self, install_runner, client):
        install_runner()

        created = client.post("/api/interests", json={"label": "robotics", "weight": 1.5}).json()["interest"]
        assert created["type"] == "manual"
        assert created["weight"] == 1.5

        listed = client.get("/api/interests").json()["interests"]
        assert [i["label"] for i in listed] == ["robotics"]

        assert client.delete(f"/api/interests/{created['id']}").json() == {"success": True}
        assert client.delete(f"/api/interests/{created['id']}").status_code == 404
        assert client.post("/api/interests", json={"label": "   ", "weight": 1.0}).status_code == 400


class TestPaperRoutes:
    def test_patch_favorite_and_memo(self, stores, install_runner, client):
        paper_id = _pending(stores, "Liked", 40)
        install_runner()

        response = client.patch(f"/api/papers/{paper_id}", json={"is_favorite": True, "memo": "cite in intro"})

        assert response.status_code == 200
        assert (response.json()["is_favorite"], response.json()["memo"]) == (True, "cite in intro")
        assert client.get(f"/api/papers/{paper_id}").json()["is_favorite"] is True
        assert [s.id for s in stores.papers.select_seeds(limit=5)] == [paper_id]

    def test_patch_errors(self, stores, install_runner, client):
        paper_id = _pending(stores, "Any", 40)
        install_runner()

        assert client.patch(f"/api/papers/{paper_id}", json={}).status_code == 400
        assert client.patch("/api/papers/999", json={"is_favorite": True}).status_code == 404
        assert client.get("/api/papers/999").status_code == 404

    def test_review_queue_path_is_not_a_paper_id(self, install_runner, client):
        install_runner()
        assert client.get("/api/papers/review").status_code == 200
