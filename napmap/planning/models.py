"""Request-scoped value types shared by the scorer and the window search."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Tuple


class ManeuverKind(str, Enum):
    """Coarse category of a single route step."""

    TURN_LEFT = "turn-left"
    TURN_RIGHT = "turn-right"
    U_TURN = "u-turn"
    HIGHWAY = "highway"
    NONE = "none"


_HIGHWAY_PREFIXES = ("ramp", "merge", "keep")


def classify_maneuver(raw: str | None) -> ManeuverKind:
    """Map a provider maneuver tag (``turn-slight-left``, ``uturn-right``,
    ``ramp-left``...) onto a :class:`ManeuverKind`."""
    tag = (raw or "").strip().lower()
    if not tag:
        return ManeuverKind.NONE
    if tag.startswith("uturn") or tag.startswith("u-turn"):
        return ManeuverKind.U_TURN
    if tag.startswith("turn-"):
        if tag.endswith("left"):
            return ManeuverKind.TURN_LEFT
        if tag.endswith("right"):
            return ManeuverKind.TURN_RIGHT
    if tag.startswith(_HIGHWAY_PREFIXES):
        return ManeuverKind.HIGHWAY
    return ManeuverKind.NONE


@dataclass(frozen=True)
class Step:
    maneuver_kind: ManeuverKind
    duration_seconds: int

    def __post_init__(self) -> None:
        if self.duration_seconds < 0:
            raise ValueError("duration_seconds must not be negative")


@dataclass(frozen=True)
class RouteAlternative:
    steps: Tuple[Step, ...]
    total_duration_seconds: int
    summary: str = ""

    def __post_init__(self) -> None:
        if self.total_duration_seconds < 0:
            raise ValueError("total_duration_seconds must not be negative")
        # Accept lists from callers but keep the stored sequence immutable.
        object.__setattr__(self, "steps", tuple(self.steps))


@dataclass(frozen=True)
class TripRequest:
    origin: str
    destination: str
    deadline: datetime

    def __post_init__(self) -> None:
        if self.deadline.tzinfo is None:
            object.__setattr__(self, "deadline", self.deadline.replace(tzinfo=timezone.utc))


@dataclass(frozen=True)
class SearchWindow:
    earliest: datetime
    latest: datetime

    @property
    def span(self) -> timedelta:
        return self.latest - self.earliest

    @property
    def is_open(self) -> bool:
        return self.earliest < self.latest

    def midpoint(self) -> datetime:
        return self.earliest + (self.latest - self.earliest) / 2


@dataclass(frozen=True)
class RouteMetrics:
    total_duration_seconds: int = 0
    longest_continuous_stretch_seconds: int = 0
    left_turn_count: int = 0
    right_turn_count: int = 0
    u_turn_count: int = 0
    stop_count: int = 0
    highway_hint_count: int = 0


@dataclass(frozen=True)
class RouteScore:
    score: float
    metrics: RouteMetrics = field(default_factory=RouteMetrics)


@dataclass(frozen=True)
class ScoredCandidate:
    departure: datetime
    arrival: datetime
    alternative: RouteAlternative
    score: RouteScore
    effective_score: float

    @property
    def duration_seconds(self) -> int:
        return self.alternative.total_duration_seconds
