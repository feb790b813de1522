from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.config import settings

from app.schemas.enums import CategoryFilter, SortKey
from app.schemas.event import EventView


class DiscoveryRequest(BaseModel):
    """Immutable description of one discovery query."""

    model_config = ConfigDict(frozen=True)

    user_id: str | None = Field(default=None, description="Requesting user; None for anonymous browsing")
    user_lat: float | None = Field(default=None, ge=-90, le=90)
    user_lng: float | None = Field(default=None, ge=-180, le=180)
    radius_km: float | None = Field(default=None, ge=0, description="Search radius (km), at most MAX_SEARCH_RADIUS_KM")
    category: CategoryFilter = CategoryFilter.ALL
    search: str = ""
    date_from: date | None = Field(default=None, description="Inclusive start date (local calendar)")
    date_to: date | None = Field(default=None, description="Inclusive end date (local calendar)")
    hide_past: bool = True
    # Kept raw so an unknown key can fall back to date ordering instead of failing
    sort_by: str = SortKey.DATE.value

    @field_validator("radius_km")
    @classmethod
    def _check_radius(cls, v: float | None) -> float | None:
        if v is not None and v > settings.MAX_SEARCH_RADIUS_KM:
            raise ValueError(f"radius_km must be at most {settings.MAX_SEARCH_RADIUS_KM} km")
        return v

    @model_validator(mode="after")
    def _check_window(self) -> "DiscoveryRequest":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self

    @property
    def has_location(self) -> bool:
        return self.user_lat is not None and self.user_lng is not None

    @property
    def search_text(self) -> str:
        return (self.search or "").strip()


class DiscoveryResponse(BaseModel):
    items: list[EventView]
    total: int = Field(description="Number of occurrences returned")
    sort_by: SortKey = Field(description="Ordering actually applied")
    degraded: bool = Field(
        default=False,
        description="True when the requested ordering could not be applied",
    )
    degraded_reason: str | None = None
