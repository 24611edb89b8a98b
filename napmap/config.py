"""Runtime configuration for the planner.

Everything here is read from the process environment (optionally populated
from a ``.env`` file). Search tuning and scoring weights are plain dataclasses
so callers and tests can inject their own values without touching the
environment at all.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

DEFAULT_DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"


@dataclass(frozen=True)
class ScoringWeights:
    """Weight per route feature. Bonuses are added, penalties subtracted.

    ``right_turn`` defaults above ``left_turn`` because on left-hand traffic
    roads the right turn crosses the oncoming lane. Swap the two values for
    right-hand traffic.
    """

    stretch: float = 1.0
    duration: float = 0.1
    highway: float = 0.5
    left_turn: float = 1.0
    right_turn: float = 1.5
    u_turn: float = 3.0
    stop: float = 0.5

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ScoringWeights":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown scoring weight(s): {', '.join(unknown)}")
        return cls(**{key: float(value) for key, value in values.items()})

    @classmethod
    def from_env(cls) -> "ScoringWeights":
        raw = os.getenv("NAPMAP_SCORE_WEIGHTS")
        if not raw:
            return cls()
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError("NAPMAP_SCORE_WEIGHTS must be a JSON object") from exc
        if not isinstance(parsed, dict):
            raise ValueError("NAPMAP_SCORE_WEIGHTS must be a JSON object")
        return cls.from_mapping(parsed)

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class SearchSettings:
    min_lead_time: timedelta = timedelta(minutes=2)
    lookback_horizon: timedelta = timedelta(hours=6)
    safety_margin: timedelta = timedelta(minutes=5)
    min_window_span: timedelta = timedelta(minutes=30)
    max_probes: int = 12
    convergence_span: timedelta = timedelta(minutes=2)
    bisection_nudge: timedelta = timedelta(minutes=2)
    arrival_tolerance: timedelta = timedelta(minutes=1)
    earliness_penalty_per_second: float = 0.001

    def __post_init__(self) -> None:
        if self.max_probes < 1:
            raise ValueError("max_probes must be at least 1")
        if self.min_window_span <= timedelta(0):
            raise ValueError("min_window_span must be positive")
        if self.earliness_penalty_per_second < 0:
            raise ValueError("earliness_penalty_per_second must not be negative")

    @classmethod
    def from_env(cls) -> "SearchSettings":
        overrides: Dict[str, Any] = {}
        seconds_fields = {
            "min_lead_time": "NAPMAP_MIN_LEAD_SECONDS",
            "lookback_horizon": "NAPMAP_LOOKBACK_SECONDS",
            "safety_margin": "NAPMAP_SAFETY_MARGIN_SECONDS",
            "min_window_span": "NAPMAP_MIN_WINDOW_SECONDS",
            "convergence_span": "NAPMAP_CONVERGENCE_SECONDS",
            "bisection_nudge": "NAPMAP_BISECTION_NUDGE_SECONDS",
            "arrival_tolerance": "NAPMAP_ARRIVAL_TOLERANCE_SECONDS",
        }
        for name, env_key in seconds_fields.items():
            value = _env_float(env_key)
            if value is not None:
                overrides[name] = timedelta(seconds=value)
        probes = _env_float("NAPMAP_MAX_PROBES")
        if probes is not None:
            overrides["max_probes"] = int(probes)
        penalty = _env_float("NAPMAP_EARLINESS_PENALTY")
        if penalty is not None:
            overrides["earliness_penalty_per_second"] = penalty
        return replace(cls(), **overrides)


def _env_float(key: str) -> Optional[float]:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be numeric, got {raw!r}") from exc


def google_api_key() -> Optional[str]:
    return os.getenv("GOOGLE_MAPS_API_KEY") or None


def directions_url() -> str:
    return os.getenv("NAPMAP_DIRECTIONS_URL") or DEFAULT_DIRECTIONS_URL


def http_timeout() -> float:
    return _env_float("NAPMAP_HTTP_TIMEOUT") or 10.0


def allowed_origins() -> List[str]:
    raw_origins = os.getenv("NAPMAP_ALLOWED_ORIGINS") or "*"
    origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
    return origins or ["*"]


def server_port() -> int:
    return int(os.getenv("PORT") or 10000)
