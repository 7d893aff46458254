"""
Route tests for /api/generation, /api/vlm and /api/analysis.

The session manager is swapped for one backed by a fake generator; service
calls that would reach OpenRouter are patched.
"""
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from vocab_trainer.main import app
from vocab_trainer.services.generation_session import GenerationSessionManager, get_session_manager
from vocab_trainer.services.openrouter import LLMError

WORDS = ["apple", "banana", "cherry", "date"]


def _fake_generate(question_type, words, difficulty):
    return [
        {"id": f"{question_type}-{w}", "word": w, "prompt": w,
         "choices": [{"id": "a", "text": w}, {"id": "b", "text": "x"}],
         "correctChoiceId": "a", "explanation": "", "type": question_type}
        for w in words
    ]


@pytest.fixture
def synced():
    return []


@pytest.fixture
def client(synced):
    manager = GenerationSessionManager(
        generate=_fake_generate, ttl_seconds=60, on_bundle_ready=lambda *args: synced.append(args),
    )
    app.dependency_overrides[get_session_manager] = lambda: manager
    with TestClient(app) as test_client:
        test_client.manager = manager
        yield test_client
    manager.clear()
    app.dependency_overrides.clear()


def _wait_idle(client):
    client.portal.call(client.manager.wait_idle)


class TestSessionRoutes:
    def test_start_and_poll(self, client):
        res = client.post("/api/generation/session", json={"words": WORDS, "difficulty": "beginner"})
        assert res.status_code == 200
        body = res.json()
        assert body["sections"]["questions_type_1"]["status"] == "ready"

        _wait_idle(client)
        snap = client.get(f"/api/generation/session/{body['sessionId']}").json()
        assert all(s["status"] == "ready" for s in snap["sections"].values())

        bundle = client.get(f"/api/generation/session/{body['sessionId']}/super-json")
        assert bundle.status_code == 200
        assert bundle.json()["superJson"]["metadata"]["totalQuestions"] == 8

    def test_too_few_words(self, client):
        res = client.post("/api/generation/session", json={"words": ["a", "b"], "difficulty": "beginner"})
        assert res.status_code == 400

    def test_invalid_body(self, client):
        res = client.post("/api/generation/session", json={"words": [], "difficulty": "beginner"})
        assert res.status_code == 422
        res = client.post("/api/generation/session",
                          json={"words": WORDS, "difficulty": "beginner", "questionCountPerType": 50})
        assert res.status_code == 422

    def test_unknown_session(self, client):
        assert client.get("/api/generation/session/missing").status_code == 404
        res = client.post("/api/generation/session/missing/retry", json={"type": "questions_type_1"})
        assert res.status_code == 404

    def test_retry(self, client):
        sid = client.post("/api/generation/session", json={"words": WORDS, "difficulty": "beginner"}).json()["sessionId"]
        _wait_idle(client)
        res = client.post(f"/api/generation/session/{sid}/retry", json={"type": "questions_type_2"})
        assert res.status_code == 200
        assert res.json()["sections"]["questions_type_2"]["status"] == "generating"
        _wait_idle(client)

    def test_bind_requires_user(self, client):
        sid = client.post("/api/generation/session", json={"words": WORDS, "difficulty": "beginner"}).json()["sessionId"]
        res = client.post(f"/api/generation/session/{sid}/bind", json={"historySessionId": "h1"})
        assert res.status_code == 401

    def test_bind_syncs_bundle(self, client, synced):
        sid = client.post("/api/generation/session", json={"words": WORDS, "difficulty": "beginner"}).json()["sessionId"]
        _wait_idle(client)
        res = client.post(
            f"/api/generation/session/{sid}/bind",
            json={"historySessionId": "h1"},
            headers={"X-User-Id": "user-1"},
        )
        assert res.json() == {"success": True}
        assert synced[0][:2] == ("user-1", "h1")


class TestOneShotRoutes:
    def test_super_json(self, client):
        bundle = {"metadata": {"totalQuestions": 0}, "questions_type_1": [],
                  "questions_type_2": [], "questions_type_3": []}
        with patch("vocab_trainer.api.generation.generate_super_json", return_value=bundle):
            res = client.post("/api/generation/super-json", json={"words": WORDS, "difficulty": "beginner"})
        assert res.status_code == 200
        assert res.json() == {"superJson": bundle}

    def test_super_json_upstream_error(self, client):
        with patch("vocab_trainer.api.generation.generate_super_json",
                   side_effect=LLMError("rate limited", status_code=429)):
            res = client.post("/api/generation/super-json", json={"words": WORDS, "difficulty": "beginner"})
        assert res.status_code == 429

    def test_details(self, client):
        async def fake_details(words, difficulty):
            return [{"word": w} for w in words]

        with patch("vocab_trainer.api.generation.generate_vocabulary_details", side_effect=fake_details):
            res = client.post("/api/generation/details", json={"words": ["apple"], "difficulty": "advanced"})
        assert res.json() == {"details": [{"word": "apple"}]}

    def test_vlm_extract(self, client):
        with patch("vocab_trainer.api.vlm.extract_words_from_images", return_value=["apple"]):
            res = client.post("/api/vlm/extract", json={"images": ["data:image/png;base64,AAA"]})
        assert res.json() == {"words": ["apple"]}

    def test_vlm_too_many_images(self, client):
        res = client.post("/api/vlm/extract", json={"images": ["x"] * 6})
        assert res.status_code == 400

    def test_analysis_report(self, client):
        reply = {"report": "ok", "recommendations": ["a", "b"]}
        with patch("vocab_trainer.api.analysis.build_analysis", return_value=reply) as build:
            res = client.post("/api/analysis/report", json={
                "difficulty": "beginner",
                "words": ["apple"],
                "answers": [{"questionId": "q1", "choiceId": "a", "correct": True, "elapsedMs": 900}],
                "superJson": {},
                "score": 100,
            })
        assert res.json() == reply
        assert build.call_args.args[2][0]["questionId"] == "q1"

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"
        assert client.get("/").json()["health"] == "/health"
