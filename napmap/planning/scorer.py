"""Relaxation score for a single route alternative."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from napmap.config import ScoringWeights
from napmap.planning.models import (
    ManeuverKind,
    RouteAlternative,
    RouteMetrics,
    RouteScore,
    Step,
)

# Steps shorter than this are treated as a stop or signal interruption.
STOP_THRESHOLD_SECONDS = 25
# Only steps at least this long extend an uninterrupted stretch.
STRETCH_THRESHOLD_SECONDS = 120


@dataclass
class _Tally:
    current_stretch: int = 0
    longest_stretch: int = 0
    left: int = 0
    right: int = 0
    u_turns: int = 0
    stops: int = 0
    highway: int = 0
    step_total: int = 0

    def add(self, step: Step) -> None:
        kind = step.maneuver_kind
        if kind is ManeuverKind.TURN_LEFT:
            self.left += 1
        elif kind is ManeuverKind.TURN_RIGHT:
            self.right += 1
        elif kind is ManeuverKind.U_TURN:
            self.u_turns += 1
        elif kind is ManeuverKind.HIGHWAY:
            self.highway += 1

        duration = step.duration_seconds
        self.step_total += duration
        if duration < STOP_THRESHOLD_SECONDS:
            self.stops += 1
        if duration >= STRETCH_THRESHOLD_SECONDS:
            self.current_stretch += duration
            self.longest_stretch = max(self.longest_stretch, self.current_stretch)
        else:
            self.current_stretch = 0


def extract_metrics(steps: Iterable[Step], total_duration_seconds: int) -> RouteMetrics:
    """Single ordered pass over ``steps`` collecting the scoring features.

    The reported total is never below the summed step durations, so the
    longest stretch always fits inside it.
    """
    tally = _Tally()
    for step in steps:
        tally.add(step)
    return RouteMetrics(
        total_duration_seconds=max(total_duration_seconds, tally.step_total),
        longest_continuous_stretch_seconds=tally.longest_stretch,
        left_turn_count=tally.left,
        right_turn_count=tally.right,
        u_turn_count=tally.u_turns,
        stop_count=tally.stops,
        highway_hint_count=tally.highway,
    )


def weighted_score(metrics: RouteMetrics, weights: ScoringWeights) -> float:
    return (
        weights.stretch * (metrics.longest_continuous_stretch_seconds / 60)
        + weights.duration * (metrics.total_duration_seconds / 60)
        + weights.highway * metrics.highway_hint_count
        - weights.left_turn * metrics.left_turn_count
        - weights.right_turn * metrics.right_turn_count
        - weights.u_turn * metrics.u_turn_count
        - weights.stop * metrics.stop_count
    )


def score_route(
    alternative: RouteAlternative,
    weights: Optional[ScoringWeights] = None,
) -> RouteScore:
    """Score one alternative. Pure: identical input always yields identical output."""
    weights = weights or ScoringWeights()
    metrics = extract_metrics(alternative.steps, alternative.total_duration_seconds)
    return RouteScore(score=weighted_score(metrics, weights), metrics=metrics)
