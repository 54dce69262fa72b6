"""
Campus locations and distance helpers
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import math

from app.models.move import CampusArea, Move

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class CampusLocation:
    name: str
    display_name: str
    latitude: float
    longitude: float
    area: CampusArea


CAMPUS_LOCATIONS: Tuple[CampusLocation, ...] = (
    CampusLocation("North Campus - Henry Crown Sports Pavilion", "Henry Crown Sports Pavilion", 42.0534, -87.6756, CampusArea.NORTH),
    CampusLocation("North Campus - Kellogg School of Management", "Kellogg School", 42.0535, -87.6768, CampusArea.NORTH),
    CampusLocation("North Campus - Norris Center", "Norris Center", 42.0547, -87.6752, CampusArea.NORTH),
    CampusLocation("North Campus - Rebecca Crown Center", "Rebecca Crown Center", 42.0542, -87.6780, CampusArea.NORTH),
    CampusLocation("North Campus - Technological Institute", "Tech Institute", 42.0527, -87.6785, CampusArea.NORTH),
    CampusLocation("North Campus - Lake Michigan", "Lake Michigan", 42.0580, -87.6730, CampusArea.NORTH),
    CampusLocation("South Campus - Seeley G. Mudd Library", "Mudd Library", 42.0468, -87.6775, CampusArea.SOUTH),
    CampusLocation("South Campus - University Library", "University Library", 42.0455, -87.6790, CampusArea.SOUTH),
    CampusLocation("South Campus - Parkes Hall", "Parkes Hall", 42.0462, -87.6805, CampusArea.SOUTH),
    CampusLocation("South Campus - Deering Library", "Deering Library", 42.0475, -87.6765, CampusArea.SOUTH),
    CampusLocation("South Campus - Lakeside Field", "Lakeside Field", 42.0425, -87.6720, CampusArea.SOUTH),
    CampusLocation("Downtown Evanston - Fountain Square", "Fountain Square", 42.0458, -87.6858, CampusArea.DOWNTOWN),
    CampusLocation("Downtown Evanston - Whole Foods", "Whole Foods", 42.0475, -87.6880, CampusArea.DOWNTOWN),
    CampusLocation("Downtown Evanston - Arts Park", "Arts Park", 42.0440, -87.6870, CampusArea.DOWNTOWN),
    CampusLocation("Downtown Evanston - Civic Center", "Civic Center", 42.0430, -87.6900, CampusArea.DOWNTOWN),
    CampusLocation("Downtown Evanston - Lighthouse Beach", "Lighthouse Beach", 42.0495, -87.6850, CampusArea.DOWNTOWN),
)

OTHER_LOCATION = CampusLocation("Other", "Northwestern Area", 42.0500, -87.6750, CampusArea.OTHER)


def find_campus_location(display_name: str) -> Optional[CampusLocation]:
    """Case-insensitive lookup by display name"""
    wanted = display_name.strip().lower()
    for location in CAMPUS_LOCATIONS + (OTHER_LOCATION,):
        if location.display_name.lower() == wanted:
            return location
    return None


def default_location_for_area(area: CampusArea) -> CampusLocation:
    for location in CAMPUS_LOCATIONS:
        if location.area == area:
            return location
    return OTHER_LOCATION


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def move_coordinates(move: Move) -> Tuple[float, float]:
    """The move's own coordinates, or its area's default point"""
    if move.latitude is not None and move.longitude is not None:
        return move.latitude, move.longitude
    fallback = default_location_for_area(move.area)
    return fallback.latitude, fallback.longitude


def distance_to_move(move: Move, latitude: float, longitude: float) -> float:
    move_lat, move_lng = move_coordinates(move)
    return haversine_km(latitude, longitude, move_lat, move_lng)


def format_distance(distance_km: float) -> str:
    if distance_km < 1:
        return f"{round(distance_km * 1000)} m"
    return f"{distance_km:.1f} km"
