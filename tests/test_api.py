import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
from fastapi.testclient import TestClient

from napmap.errors import ConfigurationError, RouteOracleError
from napmap.main import app
from napmap.schemas import (
    Handoff,
    NoRouteResponse,
    PlanResponse,
    RouteMetricsOut,
    ScoreOut,
    Winner,
)


def _sample_payload() -> dict:
    return {
        "origin": "Manchester",
        "destination": "Leeds",
        "arriveAt": "2026-10-18T10:00:00Z",
    }


def _sample_response() -> PlanResponse:
    return PlanResponse(
        depart_iso="2026-10-18T09:00:00+00:00",
        arrive_at_iso="2026-10-18T09:55:00+00:00",
        winner=Winner(
            duration_sec=3300,
            summary="M62",
            score=ScoreOut(
                score=41.5,
                effective_score=41.2,
                metrics=RouteMetricsOut(
                    total_duration_seconds=3300,
                    longest_continuous_stretch_seconds=2400,
                    left_turn_count=1,
                    right_turn_count=2,
                    u_turn_count=0,
                    stop_count=3,
                    highway_hint_count=2,
                ),
            ),
        ),
        handoff=Handoff(google="https://www.google.com/maps/dir/?api=1", apple="maps://?saddr=x"),
    )


def test_healthz():
    client = TestClient(app)

    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_api_plan_endpoint(monkeypatch):
    client = TestClient(app)
    orchestrator = AsyncMock(return_value=_sample_response())
    monkeypatch.setattr("napmap.main.orchestrate_plan", orchestrator)

    response = client.post("/api/plan", json=_sample_payload())

    assert response.status_code == 200
    orchestrator.assert_awaited_once()
    called_request = orchestrator.await_args.args[0]
    assert called_request.origin == "Manchester"
    body = response.json()
    assert body["ok"] is True
    assert body["departIso"] == "2026-10-18T09:00:00+00:00"
    assert body["winner"]["durationSec"] == 3300
    assert body["winner"]["score"]["effectiveScore"] == 41.2
    assert body["winner"]["score"]["metrics"]["longestContinuousStretchSeconds"] == 2400


def test_api_plan_rejects_missing_fields_without_searching(monkeypatch):
    client = TestClient(app)
    orchestrator = AsyncMock()
    monkeypatch.setattr("napmap.main.orchestrate_plan", orchestrator)

    response = client.post("/api/plan", json={"origin": "Manchester"})

    assert response.status_code == 422
    orchestrator.assert_not_awaited()


def test_api_plan_rejects_bad_timestamp(monkeypatch):
    client = TestClient(app)
    orchestrator = AsyncMock()
    monkeypatch.setattr("napmap.main.orchestrate_plan", orchestrator)

    response = client.post("/api/plan", json={**_sample_payload(), "arriveAt": "not a date"})

    assert response.status_code == 422
    orchestrator.assert_not_awaited()


def test_api_plan_reports_infeasible_distinctly(monkeypatch):
    client = TestClient(app)
    orchestrator = AsyncMock(return_value=NoRouteResponse(detail="nothing arrives in time"))
    monkeypatch.setattr("napmap.main.orchestrate_plan", orchestrator)

    response = client.post("/api/plan", json=_sample_payload())

    assert response.status_code == 404
    assert response.json() == {
        "ok": False,
        "error": "no_feasible_route",
        "detail": "nothing arrives in time",
    }


def test_api_plan_surfaces_oracle_status(monkeypatch):
    client = TestClient(app)
    orchestrator = AsyncMock(side_effect=RouteOracleError("OVER_QUERY_LIMIT", "slow down"))
    monkeypatch.setattr("napmap.main.orchestrate_plan", orchestrator)

    response = client.post("/api/plan", json=_sample_payload())

    assert response.status_code == 502
    assert response.json()["detail"] == {"status": "OVER_QUERY_LIMIT", "message": "slow down"}


def test_api_plan_missing_api_key(monkeypatch):
    client = TestClient(app)
    orchestrator = AsyncMock(side_effect=ConfigurationError("Missing GOOGLE_MAPS_API_KEY"))
    monkeypatch.setattr("napmap.main.orchestrate_plan", orchestrator)

    response = client.post("/api/plan", json=_sample_payload())

    assert response.status_code == 500
    assert response.json()["detail"] == "Missing GOOGLE_MAPS_API_KEY"


class _GatewayPageResponse:
    text = "<html>bad gateway</html>"

    def raise_for_status(self):
        return None

    def json(self):
        return json.loads(self.text)


class _GatewayPageClient:
    def __init__(self, *args, **kwargs):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def get(self, url, params):
        return _GatewayPageResponse()


def _future_payload() -> dict:
    arrive_at = datetime.now(timezone.utc) + timedelta(hours=3)
    return {**_sample_payload(), "arriveAt": arrive_at.isoformat()}


def test_api_plan_maps_non_json_directions_body_to_502(monkeypatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "test-key")
    monkeypatch.setattr(httpx, "AsyncClient", _GatewayPageClient)
    client = TestClient(app)

    response = client.post("/api/plan", json=_future_payload())

    assert response.status_code == 502
    assert response.json()["detail"]["status"] == "INVALID_RESPONSE"


def test_api_plan_reports_malformed_weights_with_detail(monkeypatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "test-key")
    monkeypatch.setenv("NAPMAP_SCORE_WEIGHTS", "not json")
    client = TestClient(app)

    response = client.post("/api/plan", json=_future_payload())

    assert response.status_code == 500
    assert "NAPMAP_SCORE_WEIGHTS" in response.json()["detail"]


def test_responses_carry_security_headers():
    client = TestClient(app)

    response = client.get("/healthz")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert response.headers["Referrer-Policy"] == "no-referrer"
