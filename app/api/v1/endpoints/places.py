"""
Place lookup endpoints, used by the create form to resolve a location
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query

from app.core.exceptions import NotFoundError
from app.core.security import get_current_viewer
from app.core.store import get_place_client
from app.models.move import ResolvedPlace
from app.models.user import Viewer
from app.schemas.place import PlacePrediction
from app.services.places import PlaceLookupClient

router = APIRouter()


@router.get("/autocomplete", response_model=List[PlacePrediction])
async def autocomplete(
    q: str = Query("", max_length=200),
    session_token: Optional[str] = None,
    viewer: Viewer = Depends(get_current_viewer),
    client: PlaceLookupClient = Depends(get_place_client),
) -> Any:
    return await client.autocomplete(q, session_token)


@router.get("/{place_id}", response_model=ResolvedPlace)
async def place_details(
    place_id: str,
    session_token: Optional[str] = None,
    viewer: Viewer = Depends(get_current_viewer),
    client: PlaceLookupClient = Depends(get_place_client),
) -> Any:
    place = await client.details(place_id, session_token)
    if place is None:
        raise NotFoundError("Place", place_id)
    return place
