import math
from dataclasses import dataclass

from presence.errors import OutOfRangeError

EARTH_RADIUS_M = 6371e3
GEOFENCE_RADIUS_M = 50.0


@dataclass
class GeofenceResult:
    valid: bool
    distance: float


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres between two points given in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (math.sin(d_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    # Rounding can push a just past 1 for near-antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def is_within_radius(distance: float, radius: float = GEOFENCE_RADIUS_M) -> bool:
    return distance <= radius


def check_geofence(reference, current, radius: float = GEOFENCE_RADIUS_M) -> GeofenceResult:
    """Compare a reading against the reference point; both expose .lat and .lng."""
    distance = haversine_distance(current.lat, current.lng, reference.lat, reference.lng)
    return GeofenceResult(valid=is_within_radius(distance, radius), distance=distance)


def require_within_geofence(reference, current, radius: float = GEOFENCE_RADIUS_M) -> GeofenceResult:
    result = check_geofence(reference, current, radius)
    if not result.valid:
        raise OutOfRangeError(result.distance, radius)
    return result
