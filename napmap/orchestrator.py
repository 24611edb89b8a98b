# napmap/orchestrator.py
from __future__ import annotations

from typing import Any, Dict, Optional

from napmap import config
from napmap.config import ScoringWeights, SearchSettings
from napmap.errors import ConfigurationError
from napmap.logging_setup import get_logger
from napmap.planning.models import ScoredCandidate, TripRequest
from napmap.planning.window_search import Clock, RouteQuery, search_departure, utc_now
from napmap.schemas import (
    Handoff,
    NoRouteResponse,
    PlanRequest,
    PlanResponse,
    RouteMetricsOut,
    ScoreOut,
    Winner,
)
from napmap.tools.directions import DirectionsClient
from napmap.tools.handoff import build_handoff

logger = get_logger(__name__)


def build_trip(payload: Dict[str, Any] | PlanRequest) -> TripRequest:
    """Validate a raw payload and turn it into the search's trip value."""
    req = payload if isinstance(payload, PlanRequest) else PlanRequest.model_validate(payload)
    return TripRequest(origin=req.origin, destination=req.destination, deadline=req.arrive_at)


def default_query(trip: TripRequest) -> RouteQuery:
    api_key = config.google_api_key()
    if not api_key:
        raise ConfigurationError("Missing GOOGLE_MAPS_API_KEY")
    client = DirectionsClient(
        api_key,
        base_url=config.directions_url(),
        timeout=config.http_timeout(),
    )
    return client.as_query(trip.origin, trip.destination)


async def orchestrate_plan(
    payload: Dict[str, Any] | PlanRequest,
    *,
    query: Optional[RouteQuery] = None,
    settings: Optional[SearchSettings] = None,
    weights: Optional[ScoringWeights] = None,
    clock: Clock = utc_now,
) -> PlanResponse | NoRouteResponse:
    """Run one planning request end to end.

    ``query`` defaults to the Google Directions client configured from the
    environment. Validation and provider errors propagate to the caller;
    infeasibility comes back as a :class:`NoRouteResponse`.
    """
    trip = build_trip(payload)
    logger.info(
        "Planning start: origin=%s, destination=%s, arrive_at=%s",
        trip.origin,
        trip.destination,
        trip.deadline.isoformat(),
    )
    try:
        if query is None:
            query = default_query(trip)
        settings = settings or SearchSettings.from_env()
        weights = weights or ScoringWeights.from_env()
    except ValueError as exc:
        raise ConfigurationError(f"Invalid planner configuration: {exc}") from exc

    best = await search_departure(trip, query, settings=settings, weights=weights, clock=clock)
    if best is None:
        return NoRouteResponse(
            detail=f"No route from {trip.origin} to {trip.destination} arrives by {trip.deadline.isoformat()}",
        )
    return _to_response(trip, best)


def _to_response(trip: TripRequest, best: ScoredCandidate) -> PlanResponse:
    metrics = best.score.metrics
    return PlanResponse(
        depart_iso=best.departure.isoformat(),
        arrive_at_iso=best.arrival.isoformat(),
        winner=Winner(
            duration_sec=best.duration_seconds,
            summary=best.alternative.summary,
            score=ScoreOut(
                score=best.score.score,
                effective_score=best.effective_score,
                metrics=RouteMetricsOut(
                    total_duration_seconds=metrics.total_duration_seconds,
                    longest_continuous_stretch_seconds=metrics.longest_continuous_stretch_seconds,
                    left_turn_count=metrics.left_turn_count,
                    right_turn_count=metrics.right_turn_count,
                    u_turn_count=metrics.u_turn_count,
                    stop_count=metrics.stop_count,
                    highway_hint_count=metrics.highway_hint_count,
                ),
            ),
        ),
        handoff=Handoff(**build_handoff(trip.origin, trip.destination, best.arrival)),
    )
