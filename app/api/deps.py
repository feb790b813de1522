from datetime import date

from fastapi import Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.config import settings
from app.schemas.discovery import DiscoveryRequest
from app.schemas.enums import CategoryFilter, SortKey
from app.services.local_time import local_today, window_from_offsets


def get_discovery_request(
    category: CategoryFilter = Query(CategoryFilter.ALL, description="Category, or 'all'"),
    user_id: str | None = Query(None, alias="userId", description="Requesting user ID"),
    hide_past: bool = Query(True, alias="hidePast", description="Hide events that already started"),
    user_lat: float | None = Query(None, alias="userLat", ge=-90, le=90),
    user_lng: float | None = Query(None, alias="userLng", ge=-180, le=180),
    user_radius: float | None = Query(
        None,
        alias="userRadius",
        ge=0,
        le=settings.MAX_SEARCH_RADIUS_KM,
        description="Search radius in km",
    ),
    search: str = Query("", description="Case-insensitive text in title or description"),
    date_from: date | None = Query(None, alias="dateFrom", description="Inclusive start date (YYYY-MM-DD)"),
    date_to: date | None = Query(None, alias="dateTo", description="Inclusive end date (YYYY-MM-DD)"),
    from_days: int | None = Query(None, alias="fromDays", ge=0, description="Start offset in days from today"),
    to_days: int | None = Query(None, alias="toDays", ge=0, description="End offset in days from today"),
    sort_by: str = Query(SortKey.DATE.value, alias="sortBy", description="date / distance / popularity"),
) -> DiscoveryRequest:
    # Explicit dates win over day offsets
    if (date_from is None or date_to is None) and (from_days is not None or to_days is not None):
        offset_from, offset_to = window_from_offsets(local_today(), from_days, to_days)
        date_from = date_from or offset_from
        date_to = date_to or offset_to

    try:
        return DiscoveryRequest(
            user_id=user_id or None,
            user_lat=user_lat,
            user_lng=user_lng,
            radius_km=user_radius,
            category=category,
            search=search,
            date_from=date_from,
            date_to=date_to,
            hide_past=hide_past,
            sort_by=sort_by,
        )
    except ValidationError as e:
        # Reported like any other query validation failure (422)
        raise RequestValidationError(e.errors(include_url=False, include_context=False, include_input=False))
