"""Tests for the HTTP API."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from training_engine.api import deps
from training_engine.api.deps import get_repository
from training_engine.main import app
from training_engine.services.load_monitor import utc_today


@pytest.fixture
def client(repository):
    """Client whose persistence is the in-memory repository."""
    app.dependency_overrides[get_repository] = lambda: repository
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def cron_secret(monkeypatch):
    secret = "nightly-cron-secret-value"
    monkeypatch.setattr(deps, "get_settings", lambda: SimpleNamespace(cron_secret=secret))
    return secret


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestCronTrigger:
    """Tests for POST /api/cron/training-load."""

    def test_runs_update(self, client, repository, cron_secret):
        repository.add_session("a1", utc_today() - timedelta(days=1), 60, "THRESHOLD")

        response = client.post(
            "/api/cron/training-load",
            headers={"Authorization": f"Bearer {cron_secret}"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["processed"] == 1
        assert data["updated"] == 1
        assert data["errors"] == 0
        assert "timestamp" in data

    def test_explicit_date(self, client, repository, cron_secret, today):
        repository.add_session("a1", today - timedelta(days=1), 60, "THRESHOLD")

        response = client.post(
            "/api/cron/training-load",
            params={"date": today.isoformat()},
            headers={"Authorization": f"Bearer {cron_secret}"},
        )

        assert response.status_code == 200
        assert repository.samples[("a1", today)].daily_load == 60.0

    def test_missing_token(self, client, cron_secret):
        response = client.post("/api/cron/training-load")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_wrong_token(self, client, cron_secret):
        response = client.post(
            "/api/cron/training-load",
            headers={"Authorization": "Bearer not-the-secret"},
        )
        assert response.status_code == 401

    def test_no_secret_configured(self, client, monkeypatch):
        monkeypatch.setattr(deps, "get_settings", lambda: SimpleNamespace(cron_secret=""))

        response = client.post("/api/cron/training-load")

        assert response.status_code == 200
        assert response.json()["processed"] == 0


class TestTrainingLoadReads:
    """Tests for history and digest endpoints."""

    def test_history(self, client, repository, sample_factory):
        day = utc_today()
        repository.save_sample(sample_factory("a1", day - timedelta(days=1), 40.0, 40.0))
        repository.save_sample(sample_factory("a1", day, 70.0, 40.0))

        response = client.get("/api/athletes/a1/training-load", params={"days": 7})

        assert response.status_code == 200
        data = response.json()
        assert data["athleteId"] == "a1"
        assert data["currentZone"] == "CAUTION"
        assert [s["date"] for s in data["samples"]] == [
            day.isoformat(),
            (day - timedelta(days=1)).isoformat(),
        ]
        assert data["samples"][0]["acuteLoad"] == 70.0
        assert data["samples"][0]["injuryRisk"] == "MODERATE"
        assert data["guidance"]["label"] == "Caution"

    def test_history_not_found(self, client):
        response = client.get("/api/athletes/nobody/training-load")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "NOT_FOUND"
        assert "nobody" in error["message"]

    def test_history_days_validated(self, client):
        response = client.get("/api/athletes/a1/training-load", params={"days": 0})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_risk_digest(self, client, repository, sample_factory):
        day = utc_today()
        repository.save_sample(sample_factory("a1", day, 40.0, 40.0))
        repository.save_sample(sample_factory("a2", day, 90.0, 40.0))

        response = client.get("/api/training-load/risk-digest")

        assert response.status_code == 200
        data = response.json()
        assert data["date"] == day.isoformat()
        assert data["zoneCounts"]["OPTIMAL"] == 1
        assert data["zoneCounts"]["CRITICAL"] == 1
        assert [a["athleteId"] for a in data["highRisk"]] == ["a2"]
        assert data["highRisk"][0]["ratio"] == 2.25


class TestThresholdEstimate:
    """Tests for POST /api/thresholds/estimate."""

    def test_estimate(self, client):
        response = client.post(
            "/api/thresholds/estimate",
            json={
                "trials": [
                    {"distanceM": 1200, "timeSec": 240},
                    {"distanceM": 3000, "timeSec": 660},
                ],
                "recoveryHoursBetweenTrials": 72,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["thresholdVelocity"] == pytest.approx(4.286, abs=1e-3)
        assert data["thresholdPace"] == "3:53"
        assert data["rSquared"] == 1.0
        assert data["fitQuality"] == "EXCELLENT"
        assert data["trialCount"] == 2
        assert len(data["warnings"]) == 1

    def test_single_trial(self, client):
        response = client.post(
            "/api/thresholds/estimate",
            json={"trials": [{"distanceM": 1200, "timeSec": 240}]},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INSUFFICIENT_DATA"

    def test_same_distance(self, client):
        response = client.post(
            "/api/thresholds/estimate",
            json={
                "trials": [
                    {"distanceM": 1600, "timeSec": 300},
                    {"distanceM": 1600, "timeSec": 320},
                ]
            },
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_negative_distance_rejected(self, client):
        response = client.post(
            "/api/thresholds/estimate",
            json={
                "trials": [
                    {"distanceM": -1200, "timeSec": 240},
                    {"distanceM": 3000, "timeSec": 660},
                ]
            },
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestDecisionRoutes:
    """Tests for the decision endpoints."""

    def test_confidence(self, client):
        captured = datetime.now(timezone.utc) - timedelta(minutes=5)
        response = client.post(
            "/api/decisions/confidence",
            json={
                "action": {"actionType": "REDUCE_LOAD"},
                "snapshot": {
                    "capturedAt": captured.isoformat(),
                    "readiness": {
                        "readinessScore": 65,
                        "sleepQuality": 70,
                        "hrvStatus": "LOW",
                        "fatigueLevel": 6,
                    },
                    "load": {"acuteLoad": 60, "chronicLoad": 40, "zone": "DANGER"},
                    "behavior": {
                        "patterns": [
                            {"name": "missed_sessions", "confidence": 0.9},
                            {"name": "declining_sleep", "confidence": 0.7},
                        ],
                        "overallSeverity": "HIGH",
                    },
                },
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 0.91
        assert data["level"] == "HIGH"
        assert data["recommendation"] == "AUTO_APPLY"
        assert data["canAutoApply"] is True
        assert data["blocked"] is False
        assert len(data["factors"]) == 5
        assert data["breakdown"]["safety_alignment"] == 0.95
        assert data["explanations"]

    def test_confidence_rejects_unknown_action(self, client):
        response = client.post(
            "/api/decisions/confidence",
            json={
                "action": {"actionType": "TELEPORT"},
                "snapshot": {"capturedAt": datetime.now(timezone.utc).isoformat()},
            },
        )
        assert response.status_code == 422

    def test_race_acceptance(self, client):
        response = client.post(
            "/api/decisions/race-acceptance",
            json={
                "race": {"raceDate": "2026-05-02", "importance": "C"},
                "status": {"daysSinceLastRace": 5, "motivation": "HIGH"},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["recommendation"] == "DECLINE"
        assert data["factors"][0]["weight"] == "HIGH"
        assert data["factors"][0]["vote"] == "SKIP"

    def test_race_acceptance_with_goal(self, client):
        response = client.post(
            "/api/decisions/race-acceptance",
            json={
                "race": {"raceDate": "2026-05-02", "importance": "C", "name": "Tune-up 5K"},
                "status": {"daysSinceLastRace": 30, "phaseGoals": ["COMPETITION"]},
                "goalRace": {"raceDate": "2026-06-01"},
            },
        )

        assert response.status_code == 200
        assert response.json()["recommendation"] == "ACCEPT_AS_TRAINING"
