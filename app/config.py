from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=BASE_DIR / ".env", env_file_encoding="utf-8")

    # Storage snapshot (events.json + state/interactions.json)
    DATA_DIR: Path = BASE_DIR / "data"

    # Calendar-date windows and recurrence stepping use this zone, not UTC
    LOCAL_TIMEZONE: str = "Europe/Warsaw"

    # Search radius (km)
    DEFAULT_SEARCH_RADIUS_KM: int = 100
    MAX_SEARCH_RADIUS_KM: int = 100

    # Recurring events may not run longer than this many calendar months
    RECURRENCE_MAX_MONTHS: int = 2

    # Radius filter: keep events with unknown coordinates?
    RADIUS_INCLUDE_UNLOCATED: bool = False

    # Hide the requester's own events and events they already reacted to
    HIDE_OWN_AND_SEEN_EVENTS: bool = True


settings = Settings()
