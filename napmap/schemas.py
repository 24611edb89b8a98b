from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# ------- Request models -------
class PlanRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    arrive_at: datetime = Field(..., alias="arriveAt")

    @field_validator("origin", "destination", mode="before")
    @classmethod
    def strip_location(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("arrive_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo is not None else v.replace(tzinfo=timezone.utc)

# ------- Response models -------
class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class RouteMetricsOut(_CamelModel):
    total_duration_seconds: int
    longest_continuous_stretch_seconds: int
    left_turn_count: int
    right_turn_count: int
    u_turn_count: int
    stop_count: int
    highway_hint_count: int

class ScoreOut(_CamelModel):
    score: float
    effective_score: float
    metrics: RouteMetricsOut

class Winner(_CamelModel):
    duration_sec: int
    summary: str = ""
    score: ScoreOut

class Handoff(_CamelModel):
    google: str
    apple: str

class PlanResponse(_CamelModel):
    ok: Literal[True] = True
    provider: str = "google"
    depart_iso: str
    arrive_at_iso: str
    winner: Winner
    handoff: Optional[Handoff] = None

class NoRouteResponse(_CamelModel):
    ok: Literal[False] = False
    error: Literal["no_feasible_route"] = "no_feasible_route"
    detail: str
