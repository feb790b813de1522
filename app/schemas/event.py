import datetime as _dt
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.schemas.enums import Category, EventStatus, InteractionType, RecurrencePattern
from app.services.geo import parse_coordinate
from app.services.local_time import ensure_aware
from app.services.recurrence import validate_recurrence


def _coordinate_to_str(value: Any) -> Any:
    # Keep coordinates as exact decimal strings; floats are stringified as-is
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return str(value)
    return value


class Price(BaseModel):
    amount: Decimal = Field(ge=0, description="Ticket price", examples=["25.00"])
    currency_code: str = Field(
        default="EUR",
        pattern=r"^[A-Z]{3}$",
        description="ISO 4217 currency code",
        examples=["PLN"],
    )


class Organizer(BaseModel):
    id: str = Field(description="Organizer user ID")
    name: str = Field(default="", description="Display name")


class OrganizerRating(BaseModel):
    """Organizer rating aggregate, computed outside discovery."""

    average: float = Field(ge=0, le=5, description="Average rating (0-5, one decimal)", examples=[4.6])
    count: int = Field(ge=0, description="Number of ratings", examples=[12])

    @field_validator("average")
    @classmethod
    def _one_decimal(cls, v: float) -> float:
        return round(v, 1)


class InteractionCounts(BaseModel):
    going: int = Field(default=0, ge=0)
    like: int = Field(default=0, ge=0)
    pass_: int = Field(default=0, ge=0, alias="pass")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def popularity(self) -> int:
        return self.going * 2 + self.like


class RecurrenceRule(BaseModel):
    pattern: RecurrencePattern = Field(description="weekly / biweekly / monthly")
    end_date: date = Field(description="Last day an occurrence may fall on (inclusive)")


class EventRecord(BaseModel):
    """An event as held in the snapshot, with per-request details attached."""

    id: str = Field(description="Event ID", examples=["4f1c2a9e"])
    title: str = Field(description="Title", examples=["Sunset yoga on the Vistula"])
    description: str = Field(default="", description="Free-text description")
    category: Category
    date: datetime = Field(description="Scheduled start (timezone-aware)")
    address: str = Field(default="", description="Free-text address")
    latitude: str | None = Field(default=None, description="Decimal degrees", examples=["50.0614000"])
    longitude: str | None = Field(default=None, description="Decimal degrees", examples=["19.9366000"])
    price: Price | None = None
    capacity: int | None = Field(default=None, ge=1)
    image_url: str | None = None
    status: EventStatus = EventStatus.ACTIVE
    organizer_id: str
    organizer: Organizer | None = None
    recurrence: RecurrenceRule | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    interaction_counts: InteractionCounts = Field(default_factory=InteractionCounts)
    organizer_rating: OrganizerRating | None = None
    user_interaction: InteractionType | None = Field(
        default=None, description="The requesting user's own interaction"
    )

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coordinate_as_str(cls, v: Any) -> Any:
        return _coordinate_to_str(v)

    @field_validator("date", "created_at", "updated_at")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else None


class EventView(EventRecord):
    """One discovered occurrence of an event, with computed fields."""

    parent_id: str = Field(description="ID of the stored event this occurrence belongs to")
    distance_km: float | None = Field(
        default=None, description="Distance from the requester; null when unknown"
    )


class EventCreate(BaseModel):
    """Request body for creating an event."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    category: Category
    date: datetime
    address: str = Field(min_length=1)
    latitude: str
    longitude: str
    price: Price | None = None
    capacity: int | None = Field(default=None, ge=1)
    image_url: str | None = None
    organizer_id: str = Field(min_length=1)
    is_recurring: bool = False
    recurrence_type: RecurrencePattern | None = None
    recurrence_end_date: _dt.date | None = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coordinate_as_str(cls, v: Any) -> Any:
        return _coordinate_to_str(v)

    @field_validator("latitude")
    @classmethod
    def _check_lat(cls, v: str) -> str:
        if parse_coordinate(v, limit=90.0) is None:
            raise ValueError("latitude must be a decimal number between -90 and 90")
        return v.strip()

    @field_validator("longitude")
    @classmethod
    def _check_lng(cls, v: str) -> str:
        if parse_coordinate(v, limit=180.0) is None:
            raise ValueError("longitude must be a decimal number between -180 and 180")
        return v.strip()

    @field_validator("date")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @model_validator(mode="after")
    def _check_recurrence(self) -> "EventCreate":
        if self.is_recurring:
            # RecurrenceValidationError is a ValueError, so pydantic reports it as 422
            validate_recurrence(self.date, self.recurrence_type, self.recurrence_end_date)
        return self

    def recurrence_rule(self) -> RecurrenceRule | None:
        if not self.is_recurring:
            return None
        return RecurrenceRule(pattern=self.recurrence_type, end_date=self.recurrence_end_date)


class EventUpdate(BaseModel):
    """Partial update; unset fields keep their stored values.

    The merged event is validated as a whole (see ``event_store.update_event``),
    so moving the start date re-checks the recurrence limit.
    """

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=5000)
    category: Category | None = None
    date: datetime | None = None
    address: str | None = Field(default=None, min_length=1)
    latitude: str | None = None
    longitude: str | None = None
    price: Price | None = None
    capacity: int | None = Field(default=None, ge=1)
    image_url: str | None = None
    is_recurring: bool | None = None
    recurrence_type: RecurrencePattern | None = None
    recurrence_end_date: _dt.date | None = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coordinate_as_str(cls, v: Any) -> Any:
        return _coordinate_to_str(v)


class InteractionCreate(BaseModel):
    user_id: str = Field(min_length=1)
    type: InteractionType


class InteractionResponse(BaseModel):
    event_id: str = Field(description="Parent event ID the interaction was stored against")
    user_id: str
    type: InteractionType | None = None
    updated_at: datetime | None = None


class OccurrenceListResponse(BaseModel):
    event_id: str
    pattern: RecurrencePattern | None = None
    end_date: date | None = None
    occurrences: list[datetime]
    total: int
