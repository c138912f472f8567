from math import asin, cos, radians, sin, sqrt

EARTH_RADIUS_M = 6371000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two GPS points, in metres."""
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    la1, lo1, la2, lo2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = la2 - la1
    dlon = lo2 - lo1
    a = sin(dlat / 2) ** 2 + cos(la1) * cos(la2) * sin(dlon / 2) ** 2
    # rounding can push a slightly outside [0, 1]
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_M * asin(sqrt(a))
