"""HTTP tests for the FastAPI service."""
import pytest
from fastapi.testclient import TestClient

from main import app


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_request_id_is_echoed(client) -> None:
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = client.get("/health")
    assert generated.headers["X-Request-ID"]


def test_onboarding_classification(client) -> None:
    response = client.post(
        "/onboarding/classify",
        json={
            "user_id": "user-1",
            "answers": {
                "business_description": "Agency with a tight sales process",
                "monthly_revenue": 20_000,
            },
            "explicit_constraint": "delivery",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["sophistication"]["total"] == 30
    assert body["business_level"] == "growth"
    assert body["constraint"]["value"] == "delivery"
    assert body["route"] == "/chat"


def test_assessment_classification_runs_the_graph(client) -> None:
    response = client.post(
        "/assessment/classify",
        json={
            "answers": {
                "business_stage": "experienced_operator",
                "monthly_revenue": "250k+",
                "primary_challenge": "conversion",
                "desired_outcome": "Systematic KPI reviews",
            }
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["sophistication"]["breakdown"]["revenue"] == 30
    assert body["business_stage"] == "experienced_operator"
    assert body["constraint"]["value"] == "sales"
    assert body["route"] == "/agents/offer-analyzer"


@pytest.mark.parametrize("path", ["/onboarding/classify", "/assessment/classify"])
def test_request_constraint_wins_over_the_answer(client, path) -> None:
    response = client.post(
        path,
        json={
            "answers": {"monthly_revenue": 20_000, "primary_challenge": "leads"},
            "explicit_constraint": "profit",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["constraint"] == {"value": "profit", "confidence": 85, "source": "explicit"}


@pytest.mark.parametrize("zone", ["America", "Europe", "Not/AZone"])
def test_zone_database_folders_do_not_break_challenge_endpoints(client, zone) -> None:
    daily = client.post("/challenges/daily", json={"user_id": "user-tz", "timezone": zone})
    assert daily.status_code == 200
    assert "T23:59:59.999" in daily.json()["deadline"]

    beat = client.post(
        "/challenges/beat-yesterday",
        json={"user_id": "user-tz", "yesterday_revenue": 100, "timezone": zone},
    )
    assert beat.status_code == 200


def test_daily_challenge_complete_and_progress(client) -> None:
    issued = client.post(
        "/challenges/daily",
        json={
            "user_id": "user-42",
            "business_tier": "level2",
            "preferred_types": ["habit"],
            "timezone": "UTC",
        },
    )
    assert issued.status_code == 200
    challenge = issued.json()
    assert challenge["type"] == "habit"
    assert challenge["difficulty"] == "easy"
    assert "T23:59:59.999" in challenge["deadline"]

    completed = client.post(
        f"/challenges/{challenge['id']}/complete",
        json={"user_id": "user-42", "proof": {"type": "boolean", "value": True}},
    )
    assert completed.status_code == 200
    assert completed.json()["completed"] is True

    progress = client.get("/users/user-42/progress").json()
    assert progress["total_xp"] == challenge["xp_reward"]
    assert progress["current_streak"] == 1
    assert progress["completed_count"] == 1
    assert progress["level"] == 1


def test_beat_yesterday_endpoint(client) -> None:
    response = client.post(
        "/challenges/beat-yesterday",
        json={"user_id": "user-7", "yesterday_revenue": 400, "preferred_difficulty": "medium"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["id"].startswith("revenue-beat-yesterday-")
    assert body["success_criteria"] == "Revenue today > $460"
    assert body["xp_reward"] == 50


def test_unknown_challenge_returns_structured_404(client) -> None:
    response = client.post("/challenges/does-not-exist/complete", json={})

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "challenge_not_found"


def test_bad_proof_type_returns_400(client) -> None:
    issued = client.post("/challenges/daily", json={"user_id": "user-9"}).json()

    response = client.post(
        f"/challenges/{issued['id']}/complete",
        json={"proof": {"type": "video", "value": "https://example.com/clip"}},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"
