"""Per-user event interactions (going / like / pass) in a local JSON file.

Each (user, event) pair holds at most one interaction; a new write replaces
the previous one and no history is kept. Interactions on a recurring event
occurrence are stored against the parent event, so all occurrences share
the same counts.

State file: {DATA_DIR}/state/interactions.json
    {"<event_id>": {"<user_id>": {"type": "going", "updated_at": "..."}}}
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any

from app.config import settings
from app.schemas.enums import InteractionType
from app.schemas.event import InteractionCounts
from app.services.recurrence import parent_event_id

logger = logging.getLogger(__name__)

_lock = Lock()


def _state_file() -> Path:
    return settings.DATA_DIR / "state" / "interactions.json"


def _load_state() -> dict[str, dict[str, dict[str, Any]]]:
    state_file = _state_file()
    if not state_file.exists():
        return {}
    try:
        with open(state_file, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError):
        logger.warning("Corrupted interactions.json, starting fresh")
        return {}


def _save_state(state: dict[str, dict[str, dict[str, Any]]]) -> None:
    state_file = _state_file()
    state_file.parent.mkdir(parents=True, exist_ok=True)
    tmp = state_file.with_suffix(".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(state, f, ensure_ascii=False, indent=2)
    tmp.replace(state_file)


def _parse_type(value: Any) -> InteractionType | None:
    try:
        return InteractionType(value)
    except ValueError:
        return None


def record_interaction(
    user_id: str, event_id: str, interaction: InteractionType | str
) -> dict[str, Any]:
    """Store *interaction* for the pair, replacing any earlier one."""
    interaction = InteractionType(interaction)
    parent_id = parent_event_id(event_id)
    now = datetime.now(timezone.utc)
    with _lock:
        state = _load_state()
        state.setdefault(parent_id, {})[user_id] = {
            "type": interaction.value,
            "updated_at": now.isoformat(),
        }
        _save_state(state)
    logger.info("Interaction %s by %s on %s", interaction.value, user_id, parent_id)
    return {"event_id": parent_id, "user_id": user_id, "type": interaction, "updated_at": now}


def remove_interaction(user_id: str, event_id: str) -> bool:
    parent_id = parent_event_id(event_id)
    with _lock:
        state = _load_state()
        users = state.get(parent_id, {})
        if user_id not in users:
            return False
        del users[user_id]
        if not users:
            state.pop(parent_id, None)
        _save_state(state)
    return True


def get_user_interaction(user_id: str, event_id: str) -> InteractionType | None:
    entry = _load_state().get(parent_event_id(event_id), {}).get(user_id)
    return _parse_type(entry.get("type")) if entry else None


def get_user_interactions(user_id: str) -> dict[str, InteractionType]:
    """All interactions of one user, keyed by parent event id."""
    result: dict[str, InteractionType] = {}
    for event_id, users in _load_state().items():
        entry = users.get(user_id)
        if entry:
            parsed = _parse_type(entry.get("type"))
            if parsed:
                result[event_id] = parsed
    return result


def get_user_event_ids(user_id: str, interaction: InteractionType | str) -> list[str]:
    """Parent event ids *user_id* marked with *interaction*, newest first."""
    interaction = InteractionType(interaction)
    matches: list[tuple[str, str]] = []
    for event_id, users in _load_state().items():
        entry = users.get(user_id)
        if entry and _parse_type(entry.get("type")) == interaction:
            matches.append((entry.get("updated_at", ""), event_id))
    matches.sort(reverse=True)
    return [event_id for _, event_id in matches]


def _count(users: dict[str, dict[str, Any]]) -> InteractionCounts:
    counts = {t.value: 0 for t in InteractionType}
    for entry in users.values():
        parsed = _parse_type(entry.get("type"))
        if parsed:
            counts[parsed.value] += 1
    return InteractionCounts.model_validate(counts)


def get_counts(event_id: str) -> InteractionCounts:
    return _count(_load_state().get(parent_event_id(event_id), {}))


def get_all_counts() -> dict[str, InteractionCounts]:
    return {event_id: _count(users) for event_id, users in _load_state().items()}
