"""Seed data/events.json with a handful of Kraków events.

Usage:
    python scripts/seed_events.py           # append sample events
    python scripts/seed_events.py --reset   # wipe the store first
"""
import argparse
import logging
import sys
from datetime import datetime, time, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.schemas.event import EventCreate, OrganizerRating, Price  # noqa: E402
from app.services import event_store  # noqa: E402
from app.services.local_time import local_today, local_tz  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger("seed_events")

DEMO_ORGANIZER = "demo-organizer"

SAMPLE_EVENTS = [
    {
        "title": "Polish Pierogi Cooking Workshop",
        "description": "Learn to make traditional pierogi in a 13th-century cellar. Ingredients included.",
        "category": "workshops",
        "days_ahead": 3,
        "at": time(18, 0),
        "latitude": "50.0614",
        "longitude": "19.9366",
        "address": "ul. Grodzka 35, 31-014 Kraków, Poland",
        "price": Price(amount="45", currency_code="PLN"),
        "capacity": 20,
    },
    {
        "title": "Contemporary Art Workshop in Kazimierz",
        "description": "Mixed-media art workshop with local artists in the Jewish Quarter.",
        "category": "arts",
        "days_ahead": 5,
        "at": time(15, 0),
        "latitude": "50.0520",
        "longitude": "19.9467",
        "address": "Plac Nowy 1, Kazimierz, Kraków, Poland",
        "price": Price(amount="60", currency_code="PLN"),
        "capacity": 15,
    },
    {
        "title": "Sunday Run along the Vistula",
        "description": "Easy 5 km social run, every week. All paces welcome.",
        "category": "sports",
        "days_ahead": 1,
        "at": time(9, 0),
        "latitude": "50.0540",
        "longitude": "19.9354",
        "address": "Bulwar Czerwieński, Kraków, Poland",
        "price": None,
        "capacity": None,
        "recurrence_type": "weekly",
        "recurrence_weeks": 6,
    },
]


def seed(reset: bool = False) -> int:
    if reset:
        event_store.clear_events()
        logger.info("Cleared event store")

    event_store.set_organizer(
        DEMO_ORGANIZER,
        name="OneMore Demo",
        rating=OrganizerRating(average=4.7, count=23),
    )

    today = local_today()
    created = 0
    for sample in SAMPLE_EVENTS:
        day = today + timedelta(days=sample["days_ahead"])
        start = datetime.combine(day, sample["at"], tzinfo=local_tz())
        payload = {
            "title": sample["title"],
            "description": sample["description"],
            "category": sample["category"],
            "date": start,
            "address": sample["address"],
            "latitude": sample["latitude"],
            "longitude": sample["longitude"],
            "price": sample["price"],
            "capacity": sample["capacity"],
            "organizer_id": DEMO_ORGANIZER,
        }
        if sample.get("recurrence_type"):
            payload.update(
                is_recurring=True,
                recurrence_type=sample["recurrence_type"],
                recurrence_end_date=day + timedelta(weeks=sample["recurrence_weeks"]),
            )
        record = event_store.create_event(EventCreate.model_validate(payload))
        logger.info("  Created: %s (%s)", record.title, record.id)
        created += 1

    logger.info("Seed complete: %d events", created)
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the local event store with sample events")
    parser.add_argument("--reset", action="store_true", help="Remove existing events first")
    args = parser.parse_args()
    seed(reset=args.reset)


if __name__ == "__main__":
    main()
