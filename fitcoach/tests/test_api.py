"""HTTP tests for the progress and achievement endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from fitcoach.achievements.checker import HealthAchievementChecker
from fitcoach.achievements.config_loader import load_achievements_config
from fitcoach.achievements.tests.conftest import FakeAchievementStore, badge, streak_days
from fitcoach.challenges.reconciler import ProgressReconciler
from fitcoach.challenges.tests.conftest import (
    CLIENT_ID,
    FIXED_NOW,
    FakeProgressStore,
    daily,
    make_participant,
)
from fitcoach.dependencies import get_achievement_checker, get_reconciler


def _override_reconciler(client: TestClient, store: FakeProgressStore) -> None:
    client.app.dependency_overrides[get_reconciler] = lambda: ProgressReconciler(
        store, clock=lambda: FIXED_NOW
    )


class TestVerifyProgress:
    def test_success_payload_shape(self, client: TestClient) -> None:
        store = FakeProgressStore(
            participants=[
                make_participant("p-1", "c-steps"),
                make_participant("p-2", "c-minutes", data_type="active_minutes", target=300),
            ],
            samples=daily(10000, "apple_health") + daily(20, "garmin", data_type="active_minutes"),
        )
        store.fail_fetch_types = {"steps"}
        _override_reconciler(client, store)

        resp = client.post("/api/v1/challenges/verify-progress", json={"clientId": CLIENT_ID})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["updated"] == 1
        assert body["failed"] == 1
        assert body["results"] == [
            {
                "challengeId": "c-minutes",
                "previousProgress": 0.0,
                "newProgress": 140.0,
                "completed": False,
            }
        ]

    def test_missing_client_id(self, client: TestClient) -> None:
        _override_reconciler(client, FakeProgressStore())
        resp = client.post("/api/v1/challenges/verify-progress", json={})
        assert resp.status_code == 400
        assert resp.json() == {"error": "clientId is required"}

    def test_no_body(self, client: TestClient) -> None:
        _override_reconciler(client, FakeProgressStore())
        resp = client.post("/api/v1/challenges/verify-progress")
        assert resp.status_code == 400

    def test_top_level_failure(self, client: TestClient) -> None:
        store = FakeProgressStore()
        store.fail_list = True
        _override_reconciler(client, store)

        resp = client.post("/api/v1/challenges/verify-progress", json={"clientId": CLIENT_ID})

        assert resp.status_code == 500
        assert resp.json() == {"error": "connection refused"}

    def test_no_participations(self, client: TestClient) -> None:
        _override_reconciler(client, FakeProgressStore())
        resp = client.post("/api/v1/challenges/verify-progress", json={"clientId": CLIENT_ID})
        assert resp.status_code == 200
        assert resp.json()["updated"] == 0


class TestCheckHealth:
    def test_awards_badge(self, client: TestClient) -> None:
        store = FakeAchievementStore()
        store.badges = [badge("steps-1k", "steps_total", 1000)]
        store.samples = streak_days(8000, 1)
        client.app.dependency_overrides[get_achievement_checker] = lambda: HealthAchievementChecker(
            store, load_achievements_config()
        )

        resp = client.post("/api/v1/achievements/check-health", json={"clientId": "c-9"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["awarded"] == 1
        assert body["results"][0]["badgeId"] == "steps-1k"
        assert body["results"][0]["wasAwarded"] is True
        assert "steps_5k" in body["streaks"]

    def test_missing_client_id(self, client: TestClient) -> None:
        resp = client.post("/api/v1/achievements/check-health", json={"clientId": ""})
        assert resp.status_code == 400


class TestHealthEndpoint:
    def test_degraded_without_pool(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["database"] == "unreachable"
