import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from trivia_quiz.main import app, get_answer_log, get_question_source
from trivia_quiz.services.answer_log import AnswerLog


@pytest.fixture
def api(tmp_path, make_pool, stub_source):
    holder = {"source": stub_source(make_pool(["medium"] * 10))}
    app.dependency_overrides[get_question_source] = lambda: holder["source"]
    app.dependency_overrides[get_answer_log] = lambda: AnswerLog(str(tmp_path))
    with TestClient(app) as client:
        client.holder = holder
        yield client
    app.dependency_overrides.clear()


def start(api, username="ada"):
    return api.post("/api/session/start", json={"username": username})


def test_start_session_returns_first_question_without_answer(api):
    res = start(api)

    assert res.status_code == 200
    body = res.json()
    assert body["username"] == "ada"
    assert body["question_number"] == 1
    assert body["total_questions"] == 10
    assert body["score"] == 0
    assert body["question"]["text"] == "medium question 0"
    assert "correct_option_index" not in body["question"]


def test_blank_username_is_rejected(api):
    assert start(api, username="   ").status_code == 422


def test_empty_source_is_service_unavailable(api, stub_source):
    api.holder["source"] = stub_source([])

    res = start(api)

    assert res.status_code == 503
    assert res.json()["detail"] == "no_questions_available"


def test_failing_source_is_service_unavailable(api, stub_source):
    api.holder["source"] = stub_source(error=httpx.ReadTimeout("slow"))

    assert start(api).status_code == 503


def test_short_pool_is_server_error(api, stub_source, make_pool):
    api.holder["source"] = stub_source(make_pool(["medium"] * 3))

    res = start(api)

    assert res.status_code == 500
    assert res.json()["detail"] == "invalid_question_pool"


def test_full_session_flow(api, tmp_path):
    session_id = start(api).json()["session_id"]

    bodies = []
    for _ in range(10):
        res = api.post("/api/quiz/submit", json={"session_id": session_id, "selected_index": 0})
        assert res.status_code == 200
        bodies.append(res.json())

    assert [b["multiplier"] for b in bodies[:3]] == [1, 1, 2]
    assert bodies[0]["question_number"] == 2
    assert bodies[0]["question"]["text"] == "medium question 1"
    assert all(b["completed"] is False for b in bodies[:-1])
    last = bodies[-1]
    assert last["completed"] is True
    assert last["final_score"] == 3600
    assert last["question"] is None
    assert last["correct_answer_text"] == "A"

    again = api.post("/api/quiz/submit", json={"session_id": session_id, "selected_index": 0})
    assert again.status_code == 409

    score = api.get("/api/session/score", params={"session_id": session_id}).json()
    assert score == {"username": "ada", "score": 3600, "questions_answered": 10, "completed": True}

    with open(tmp_path / f"session_{session_id}.jsonl", encoding="utf-8") as f:
        assert len(f.readlines()) == 11


def test_wrong_answer_reports_correct_text(api):
    session_id = start(api).json()["session_id"]

    body = api.post("/api/quiz/submit", json={"session_id": session_id, "selected_index": 3}).json()

    assert body["correct"] is False
    assert body["points_awarded"] == 0
    assert body["correct_answer_text"] == "A"
    assert body["score"] == 0


def test_current_question(api):
    session_id = start(api).json()["session_id"]
    api.post("/api/quiz/submit", json={"session_id": session_id, "selected_index": 0})

    body = api.get("/api/quiz/current", params={"session_id": session_id}).json()

    assert body["question_number"] == 2
    assert body["score"] == 200
    assert body["difficulty"] == "medium"
    assert "correct_option_index" not in body["question"]


def test_current_question_after_completion_conflicts(api):
    session_id = start(api).json()["session_id"]
    for _ in range(10):
        api.post("/api/quiz/submit", json={"session_id": session_id, "selected_index": 0})

    assert api.get("/api/quiz/current", params={"session_id": session_id}).status_code == 409


@pytest.mark.parametrize("method, path, kwargs", [
    ("get", "/api/quiz/current", {"params": {"session_id": "missing"}}),
    ("get", "/api/session/score", {"params": {"session_id": "missing"}}),
    ("post", "/api/quiz/submit", {"json": {"session_id": "missing", "selected_index": 0}}),
    ("delete", "/api/session/missing", {}),
])
def test_unknown_session_is_not_found(api, method, path, kwargs):
    res = getattr(api, method)(path, **kwargs)

    assert res.status_code == 404
    assert res.json()["detail"] == "session_not_found"


def test_end_session(api):
    session_id = start(api).json()["session_id"]

    assert api.delete(f"/api/session/{session_id}").status_code == 204
    assert api.get("/api/session/score", params={"session_id": session_id}).status_code == 404


def test_concurrent_submits_each_report_their_own_answer(api):
    session_ids = [start(api, username=f"user{i}").json()["session_id"] for i in range(5)]

    async def submit_round():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://quiz.test") as client:
            requests = [
                client.post("/api/quiz/submit", json={"session_id": sid, "selected_index": idx})
                for sid in session_ids
                for idx in (0, 1)
            ]
            return await asyncio.gather(*requests)

    sent = [idx for _ in session_ids for idx in (0, 1)]
    for _ in range(5):
        responses = asyncio.run(submit_round())
        for idx, res in zip(sent, responses):
            assert res.status_code == 200
            body = res.json()
            assert body["correct"] is (idx == 0)
            if idx:
                assert body["points_awarded"] == 0
                assert body["multiplier"] == 0
            else:
                assert body["points_awarded"] >= 200

    for sid in session_ids:
        score = api.get("/api/session/score", params={"session_id": sid}).json()
        assert score["completed"] is True
        assert score["questions_answered"] == 10
