"""Distance helpers. Every distance check in the package goes through haversine_miles."""
import math
from datetime import date
from typing import Optional, Tuple

from soulmate.config.constants import EARTH_RADIUS_MILES, MILES_PER_DEGREE_LATITUDE


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in miles."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def bounding_box(lat: float, lng: float, radius_miles: float) -> Tuple[float, float, float, float]:
    """
    Coarse (min_lat, max_lat, min_lng, max_lng) box containing the radius.

    Only a pre-filter for the database query; callers still apply haversine_miles.
    When the box crosses the antimeridian, min_lng > max_lng.
    """
    d_lat = radius_miles / MILES_PER_DEGREE_LATITUDE
    min_lat = max(-90.0, lat - d_lat)
    max_lat = min(90.0, lat + d_lat)

    # Widest longitude span is at the box edge closest to a pole
    cos_lat = math.cos(math.radians(max(abs(min_lat), abs(max_lat))))
    if cos_lat < 1e-6 or min_lat == -90.0 or max_lat == 90.0:
        return min_lat, max_lat, -180.0, 180.0
    d_lng = radius_miles / (MILES_PER_DEGREE_LATITUDE * cos_lat)
    if d_lng >= 180.0:
        return min_lat, max_lat, -180.0, 180.0

    min_lng = lng - d_lng
    max_lng = lng + d_lng
    if min_lng < -180.0:
        min_lng += 360.0
    if max_lng > 180.0:
        max_lng -= 360.0
    return min_lat, max_lat, min_lng, max_lng


def calculate_age(birth_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    if birth_date is None:
        return None
    today = today or date.today()
    return today.year - birth_date.year - ((today.month, today.day) < (birth_date.month, birth_date.day))
