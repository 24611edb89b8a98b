"""Deep links that hand the chosen trip over to a map application."""
from __future__ import annotations

from datetime import datetime
from typing import Dict
from urllib.parse import quote, urlencode


def build_handoff(origin: str, destination: str, arrival: datetime) -> Dict[str, str]:
    return {
        "google": _google_maps_url(origin, destination, arrival),
        "apple": _apple_maps_url(origin, destination),
    }


def _google_maps_url(origin: str, destination: str, arrival: datetime) -> str:
    params = {
        "api": 1,
        "origin": origin,
        "destination": destination,
        "travelmode": "driving",
        "arrival_time": int(arrival.timestamp()),
    }
    return f"https://www.google.com/maps/dir/?{urlencode(params, quote_via=quote)}"


def _apple_maps_url(origin: str, destination: str) -> str:
    params = {"saddr": origin, "daddr": destination, "dirflg": "d"}
    return f"maps://?{urlencode(params, quote_via=quote)}"
