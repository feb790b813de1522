from fastapi import APIRouter

from app.config import settings
from app.services import event_store

router = APIRouter()


@router.get(
    "/",
    summary="Health check",
    description="Liveness probe; also reports how many events the store holds.",
)
async def health_check():
    return {
        "status": "ok",
        "events": event_store.count_events(),
        "timezone": settings.LOCAL_TIMEZONE,
    }
