"""
Place lookup schemas
"""

from app.schemas.base import BaseSchema


class PlacePrediction(BaseSchema):
    """One autocomplete suggestion; resolve it through place details"""
    description: str
    place_id: str
