from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import httpx

from napmap.config import DEFAULT_DIRECTIONS_URL
from napmap.errors import EmptyRouteSetError, RouteOracleError
from napmap.logging_setup import get_logger
from napmap.planning.models import RouteAlternative, Step, classify_maneuver

logger = get_logger(__name__)


class DirectionsClient:
    """
    Google Directions adapter. Turns a departure timestamp into the list of
    driving alternatives the window search scores.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_DIRECTIONS_URL,
        timeout: float = 10.0,
        traffic_model: str = "best_guess",
    ):
        if not api_key:
            raise ValueError("A Google Maps API key is required")
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.traffic_model = traffic_model

    async def routes(self, origin: str, destination: str, departure: datetime) -> List[RouteAlternative]:
        """Fetch every driving alternative for ``departure``.

        Raises :class:`RouteOracleError` for transport failures or a non-OK
        provider status and :class:`EmptyRouteSetError` when the provider says
        OK but returns no usable route.
        """
        params = {
            "origin": origin,
            "destination": destination,
            "mode": "driving",
            "alternatives": "true",
            "departure_time": int(departure.timestamp()),
            "traffic_model": self.traffic_model,
            "key": self.api_key,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.base_url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            logger.warning("Directions request failed for departure %s", departure.isoformat(), exc_info=True)
            raise RouteOracleError("TRANSPORT_ERROR", str(exc)) from exc
        except ValueError as exc:
            logger.warning("Directions returned a non-JSON body for departure %s", departure.isoformat())
            raise RouteOracleError("INVALID_RESPONSE", str(exc)) from exc

        if not isinstance(data, dict):
            logger.warning("Directions returned a %s instead of an object", type(data).__name__)
            raise RouteOracleError("INVALID_RESPONSE", f"expected a JSON object, got {type(data).__name__}")

        status = data.get("status")
        if status != "OK":
            logger.warning("Directions returned status %s", status)
            raise RouteOracleError(str(status), data.get("error_message"))

        alternatives = self._parse_routes(data.get("routes") or [])
        if not alternatives:
            raise EmptyRouteSetError(f"no routes for departure {departure.isoformat()}")
        return alternatives

    def as_query(self, origin: str, destination: str):
        """Bind origin and destination, leaving the departure as the only argument."""

        async def query(departure: datetime) -> List[RouteAlternative]:
            return await self.routes(origin, destination, departure)

        return query

    @classmethod
    def _parse_routes(cls, routes: Sequence[Dict[str, Any]]) -> List[RouteAlternative]:
        parsed: List[RouteAlternative] = []
        for route in routes:
            legs = route.get("legs") or []
            if not legs:
                continue
            leg = legs[0]
            duration = cls._seconds(leg.get("duration_in_traffic") or leg.get("duration"))
            steps = [
                Step(
                    maneuver_kind=classify_maneuver(step.get("maneuver")),
                    duration_seconds=cls._seconds(step.get("duration")),
                )
                for step in leg.get("steps") or []
            ]
            parsed.append(
                RouteAlternative(
                    steps=tuple(steps),
                    total_duration_seconds=duration,
                    summary=route.get("summary") or "",
                )
            )
        return parsed

    @staticmethod
    def _seconds(value: Optional[Dict[str, Any]]) -> int:
        if not isinstance(value, dict):
            return 0
        try:
            return max(0, int(value.get("value") or 0))
        except (TypeError, ValueError):
            return 0
