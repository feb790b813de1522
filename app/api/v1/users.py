from fastapi import APIRouter

from app.schemas.enums import InteractionType
from app.schemas.event import EventRecord
from app.services import event_store

router = APIRouter()


@router.get(
    "/{user_id}/events/{interaction}",
    response_model=list[EventRecord],
    summary="User events by interaction",
    description="Events the user marked as going, like or pass, most recent first.",
)
async def list_user_events(user_id: str, interaction: InteractionType):
    return event_store.list_by_user_interaction(user_id, interaction)
