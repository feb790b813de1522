"""Great-circle distance between coordinates."""
from __future__ import annotations

import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Any

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometres between two decimal-degree points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a slightly above 1 for antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def parse_coordinate(value: Any, *, limit: float = 180.0) -> float | None:
    """Parse a decimal-degree value, returning None if unusable.

    Accepts the exact decimal strings stored on events as well as plain
    numbers. Non-numeric, non-finite and out-of-range values give None.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        dec = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not dec.is_finite() or abs(dec) > Decimal(str(limit)):
        return None
    return float(dec)


def parse_lat_lng(lat: Any, lng: Any) -> tuple[float, float] | None:
    parsed_lat = parse_coordinate(lat, limit=90.0)
    parsed_lng = parse_coordinate(lng, limit=180.0)
    if parsed_lat is None or parsed_lng is None:
        return None
    return parsed_lat, parsed_lng


def event_distance_km(
    event_lat: Any,
    event_lng: Any,
    user_lat: float | None,
    user_lng: float | None,
) -> float | None:
    """Distance from the requester to an event, or None when unknown.

    None is returned when the requester has no location or the event's
    coordinates are missing or malformed.
    """
    if user_lat is None or user_lng is None:
        return None
    point = parse_lat_lng(event_lat, event_lng)
    if point is None:
        if event_lat is not None or event_lng is not None:
            logger.debug("Unusable event coordinates (%r, %r)", event_lat, event_lng)
        return None
    return distance_km(user_lat, user_lng, point[0], point[1])
