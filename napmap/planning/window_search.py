"""Bounded bisection over departure times.

The search keeps two things per iteration: the current departure window and
the best feasible candidate seen so far. Each probe asks the route oracle for
every alternative at the window midpoint, scores all of those that make the
deadline, and then halves the window based on whether the *fastest*
alternative made it. The retained best is returned even when it came from an
early probe rather than the last one.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, Sequence

from napmap.config import ScoringWeights, SearchSettings
from napmap.errors import EmptyRouteSetError
from napmap.logging_setup import get_logger
from napmap.planning.models import (
    RouteAlternative,
    ScoredCandidate,
    SearchWindow,
    TripRequest,
)
from napmap.planning.scorer import score_route

logger = get_logger(__name__)

RouteQuery = Callable[[datetime], Awaitable[Sequence[RouteAlternative]]]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SearchState:
    window: SearchWindow
    best: Optional[ScoredCandidate] = None
    probes: int = 0
    done: bool = False


def initial_window(deadline: datetime, now: datetime, settings: SearchSettings) -> SearchWindow:
    earliest = max(now + settings.min_lead_time, deadline - settings.lookback_horizon)
    latest = max(earliest + settings.min_window_span, deadline - settings.safety_margin)
    return SearchWindow(earliest=earliest, latest=latest)


def probe_time(window: SearchWindow, now: datetime, settings: SearchSettings) -> datetime:
    return max(window.midpoint(), now + settings.min_lead_time)


def evaluate_alternative(
    probe: datetime,
    alternative: RouteAlternative,
    deadline: datetime,
    settings: SearchSettings,
    weights: ScoringWeights,
) -> Optional[ScoredCandidate]:
    """Score ``alternative`` departing at ``probe``; ``None`` when it arrives late."""
    arrival = probe + timedelta(seconds=alternative.total_duration_seconds)
    if arrival > deadline:
        return None
    scored = score_route(alternative, weights)
    seconds_early = (deadline - arrival).total_seconds()
    effective = scored.score - settings.earliness_penalty_per_second * seconds_early
    return ScoredCandidate(
        departure=probe,
        arrival=arrival,
        alternative=alternative,
        score=scored,
        effective_score=effective,
    )


def fold_probe(
    state: SearchState,
    probe: datetime,
    alternatives: Sequence[RouteAlternative],
    deadline: datetime,
    settings: SearchSettings,
    weights: ScoringWeights,
) -> SearchState:
    """Fold one probe's alternatives into the search state.

    Raises :class:`EmptyRouteSetError` when ``alternatives`` is empty, since
    the window cannot be narrowed without a fastest alternative.
    """
    if not alternatives:
        raise EmptyRouteSetError(f"no alternatives for departure {probe.isoformat()}")

    best = state.best
    for alternative in alternatives:
        candidate = evaluate_alternative(probe, alternative, deadline, settings, weights)
        if candidate is None:
            continue
        if best is None or candidate.effective_score > best.effective_score:
            best = candidate

    fastest = min(alternatives, key=lambda alt: alt.total_duration_seconds)
    fastest_arrival = probe + timedelta(seconds=fastest.total_duration_seconds)
    window = state.window
    if fastest_arrival > deadline:
        window = replace(window, latest=probe - settings.bisection_nudge)
    else:
        window = replace(window, earliest=probe + settings.bisection_nudge)

    done = (
        not window.is_open
        or window.span < settings.convergence_span
        or timedelta(0) <= deadline - fastest_arrival <= settings.arrival_tolerance
    )
    return SearchState(window=window, best=best, probes=state.probes + 1, done=done)


async def search_departure(
    trip: TripRequest,
    query: RouteQuery,
    settings: Optional[SearchSettings] = None,
    weights: Optional[ScoringWeights] = None,
    clock: Clock = utc_now,
) -> Optional[ScoredCandidate]:
    """Return the best feasible candidate across all probes, or ``None``.

    Oracle errors propagate unchanged; nothing is retried here.
    """
    settings = settings or SearchSettings()
    weights = weights or ScoringWeights()
    deadline = trip.deadline

    state = SearchState(window=initial_window(deadline, clock(), settings))
    logger.debug(
        "Search window %s -> %s for %s -> %s",
        state.window.earliest.isoformat(),
        state.window.latest.isoformat(),
        trip.origin,
        trip.destination,
    )

    while state.probes < settings.max_probes and not state.done:
        probe = probe_time(state.window, clock(), settings)
        alternatives = await query(probe)
        state = fold_probe(state, probe, alternatives, deadline, settings, weights)
        logger.debug(
            "Probe %d at %s: %d alternative(s), window now %s -> %s",
            state.probes,
            probe.isoformat(),
            len(alternatives),
            state.window.earliest.isoformat(),
            state.window.latest.isoformat(),
        )

    if state.best is None:
        logger.info("No feasible departure after %d probe(s)", state.probes)
    else:
        logger.info(
            "Chose departure %s arriving %s (score %.2f, effective %.2f) after %d probe(s)",
            state.best.departure.isoformat(),
            state.best.arrival.isoformat(),
            state.best.score.score,
            state.best.effective_score,
            state.probes,
        )
    return state.best
