import logging
from contextlib import asynccontextmanager
from zoneinfo import ZoneInfoNotFoundError

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from scalar_fastapi import get_scalar_api_reference

from app.api.v1.router import v1_router
from app.config import settings
from app.services import event_store
from app.services.local_time import local_tz

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# OpenAPI tag metadata
# ---------------------------------------------------------------------------
TAG_METADATA = [
    {
        "name": "events",
        "description": "Event discovery: filter by category, text, date window and radius; "
        "sort by date, distance or popularity. Also event creation, editing and "
        "cancellation, recurrence occurrences and going / like / pass interactions.",
    },
    {
        "name": "users",
        "description": "Events a user marked as going, like or pass.",
    },
    {
        "name": "health",
        "description": "Liveness probe.",
    },
]


def _validate_startup() -> dict[str, str]:
    """Validate the data directory and timezone. Returns issues dict."""
    issues: dict[str, str] = {}

    try:
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
        (settings.DATA_DIR / "state").mkdir(parents=True, exist_ok=True)
        logger.info("Startup check: data directory %s OK", settings.DATA_DIR)
    except OSError as e:
        issues["data_dir"] = str(e)
        logger.error("Startup check: data directory FAILED: %s", e)

    try:
        local_tz()
        logger.info("Startup check: timezone %s OK", settings.LOCAL_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as e:
        issues["timezone"] = str(e)
        logger.error("Startup check: timezone %s FAILED: %s", settings.LOCAL_TIMEZONE, e)

    return issues


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 60)
    logger.info("  Event discovery API starting")
    logger.info("=" * 60)

    issues = _validate_startup()
    if issues:
        logger.warning("Startup issues: %s", issues)
    logger.info("Event store holds %d events", event_store.count_events())

    yield

    logger.info("Event discovery API stopped")


app = FastAPI(
    title="OneMore Event Discovery API",
    description=(
        "## Overview\n\n"
        "Location-based event discovery. Events are filtered by category, free text, "
        "date window and search radius, and ordered by date, distance or popularity. "
        "Recurring events (weekly, biweekly, monthly, up to two months) are expanded "
        "into individual occurrences.\n\n"
        "## Query parameters\n\n"
        "`category`, `userId`, `hidePast`, `userLat`, `userLng`, `userRadius`, `search`, "
        "`dateFrom`, `dateTo`, `fromDays`, `toDays`, `sortBy`"
    ),
    version="0.1.0",
    openapi_tags=TAG_METADATA,
    lifespan=lifespan,
    # Swagger UI at /swagger, Scalar at /docs
    docs_url="/swagger",
    redoc_url=None,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routes
app.include_router(v1_router)


@app.get("/", tags=["default"], include_in_schema=False)
async def root():
    return {
        "message": "OneMore Event Discovery API",
        "version": "0.1.0",
        "docs": "/docs",
        "swagger": "/swagger",
        "openapi": "/openapi.json",
    }


@app.get("/docs", include_in_schema=False)
async def scalar_html():
    return get_scalar_api_reference(
        openapi_url=app.openapi_url,
        title=app.title,
    )
