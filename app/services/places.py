"""
Place lookup client backed by the Google Places web service.

Autocomplete is biased to the campus area; a move is only posted with a
place resolved through `details`, which yields coordinates.
"""

from typing import Any, Dict, List, Optional
import logging
import uuid

import httpx

from app.config import settings
from app.core.exceptions import RemoteFailureError
from app.models.move import ResolvedPlace
from app.schemas.place import PlacePrediction

logger = logging.getLogger(__name__)

DETAILS_FIELDS = "geometry/location,formatted_address,place_id,name,url"


class PlaceLookupClient:

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = settings.GOOGLE_MAPS_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.PLACES_API_URL).rstrip("/")
        self._client = client

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise RemoteFailureError("place lookup", "Place lookup is not configured")

        url = f"{self.base_url}{path}"
        params = {**params, "key": self.api_key}
        try:
            if self._client is not None:
                resp = await self._client.get(url, params=params)
            else:
                async with httpx.AsyncClient(timeout=settings.PLACES_TIMEOUT_SECONDS) as client:
                    resp = await client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            logger.error(f"Place lookup request to {path} failed: {e}")
            raise RemoteFailureError("place lookup") from e

    async def autocomplete(self, query: str, session_token: Optional[str] = None) -> List[PlacePrediction]:
        query = (query or "").strip()
        if not query:
            return []

        data = await self._get(
            "/autocomplete/json",
            {
                "input": query,
                "location": f"{settings.PLACES_CENTER_LAT},{settings.PLACES_CENTER_LNG}",
                "radius": settings.PLACES_RADIUS_METERS,
                "components": f"country:{settings.PLACES_COUNTRY}",
                "sessiontoken": session_token or str(uuid.uuid4()),
            },
        )
        status = data.get("status")
        if status != "OK":
            if status != "ZERO_RESULTS":
                logger.warning(f"Autocomplete returned status {status}")
            return []

        return [
            PlacePrediction(description=p["description"], place_id=p["place_id"])
            for p in data.get("predictions", [])
            if p.get("description") and p.get("place_id")
        ]

    async def details(self, place_id: str, session_token: Optional[str] = None) -> Optional[ResolvedPlace]:
        """Resolve a prediction; None when the place has no usable location"""
        params = {"place_id": place_id, "fields": DETAILS_FIELDS}
        if session_token:
            params["sessiontoken"] = session_token
        data = await self._get("/details/json", params)

        if data.get("status") != "OK":
            logger.warning(f"Place details for {place_id} returned status {data.get('status')}")
            return None

        result = data.get("result") or {}
        location = (result.get("geometry") or {}).get("location") or {}
        lat, lng = location.get("lat"), location.get("lng")
        if lat is None or lng is None:
            return None

        return ResolvedPlace(
            name=result.get("name") or result.get("formatted_address") or "",
            address=result.get("formatted_address") or "",
            latitude=float(lat),
            longitude=float(lng),
            place_id=result.get("place_id") or place_id,
            url=result.get("url"),
        )
