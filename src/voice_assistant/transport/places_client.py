"""Google Places text search around the user's coordinates."""

from __future__ import annotations

import logging
import math
from typing import Any

import httpx

from voice_assistant.core.config import PlacesSettings
from voice_assistant.core.errors import ProviderError
from voice_assistant.core.models import Place

LOGGER = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6_371_000


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance between two points in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class GooglePlacesClient:
    """Proximity search backed by the Places ``textsearch`` endpoint."""

    def __init__(
        self,
        settings: PlacesSettings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Create the client; ``client`` lets tests inject a mock transport."""
        self._settings = settings
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url.rstrip("/") + "/",
            timeout=settings.timeout_seconds,
        )

    async def search(
        self,
        latitude: float,
        longitude: float,
        query: str,
        radius: int,
        max_results: int,
    ) -> list[Place]:
        """Return up to ``max_results`` places sorted by distance."""
        if not self._settings.api_key:
            raise ProviderError("Places API key is not configured")
        params = {
            "key": self._settings.api_key,
            "location": f"{latitude},{longitude}",
            "radius": str(radius),
            "query": query,
            "language": "pl",
        }
        LOGGER.debug("Searching places near (%s, %s)", latitude, longitude)
        try:
            response = await self._client.get("textsearch/json", params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise ProviderError(f"Places request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError("Places API returned invalid JSON") from exc

        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise ProviderError(f"Places API status: {status}")

        places = [
            _parse_place(item, latitude, longitude)
            for item in data.get("results", [])[:max_results]
        ]
        places.sort(key=lambda place: place.distance_meters or 0.0)
        return places

    async def aclose(self) -> None:
        """Release the underlying HTTP connections."""
        await self._client.aclose()


def _parse_place(item: dict[str, Any], latitude: float, longitude: float) -> Place:
    location = (item.get("geometry") or {}).get("location") or {}
    distance = None
    if "lat" in location and "lng" in location:
        distance = haversine_meters(
            latitude, longitude, float(location["lat"]), float(location["lng"])
        )
    return Place(
        place_id=str(item.get("place_id", "")),
        name=str(item.get("name", "")),
        address=item.get("formatted_address") or item.get("vicinity") or "Brak adresu",
        rating=item.get("rating"),
        user_ratings_total=item.get("user_ratings_total"),
        price_level=item.get("price_level"),
        open_now=(item.get("opening_hours") or {}).get("open_now"),
        distance_meters=distance,
        types=tuple(item.get("types") or ()),
    )


__all__ = ["GooglePlacesClient", "haversine_meters"]
