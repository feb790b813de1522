"""Closed vocabularies shared by schemas and services."""
from enum import Enum


class Category(str, Enum):
    ARTS = "arts"
    COMMUNITY = "community"
    CULTURE = "culture"
    SPORTS = "sports"
    WORKSHOPS = "workshops"


class CategoryFilter(str, Enum):
    """Category filter accepted by discovery; ``all`` is the wildcard."""

    ALL = "all"
    ARTS = "arts"
    COMMUNITY = "community"
    CULTURE = "culture"
    SPORTS = "sports"
    WORKSHOPS = "workshops"


class EventStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class InteractionType(str, Enum):
    GOING = "going"
    LIKE = "like"
    PASS = "pass"


class RecurrencePattern(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class SortKey(str, Enum):
    DATE = "date"
    DISTANCE = "distance"
    POPULARITY = "popularity"
