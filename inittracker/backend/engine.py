"""Reducer and engine helpers for encounter actions."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .entities import build_entity, coerce_imported_entity, merge_entity, validate_draft
from .errors import NotFoundError, ValidationFailedError
from .ordering import sort_entities
from .state import utc_now_iso


@dataclass(frozen=True)
class ActionResult:
    state: dict[str, Any]
    engine_events: list[dict[str, Any]]


def apply_action(state: dict[str, Any], action: dict[str, Any]) -> ActionResult:
    """Apply an encounter action and return the new state.

    ``state`` is never mutated. Failures raise before any new state exists.
    """
    action_type = str(action.get("type", "")).upper()
    if action_type == "ADD_ENTITY":
        return _apply_add_entity(state=state, action=action)
    if action_type == "UPDATE_ENTITY":
        return _apply_update_entity(state=state, action=action)
    if action_type == "DELETE_ENTITY":
        return _apply_delete_entity(state=state, action=action)
    if action_type == "NEXT_TURN":
        return _apply_next_turn(state=state, action=action)
    if action_type == "RESET":
        return _apply_reset(state=state, action=action)
    raise ValidationFailedError(f"Unknown action type: {action.get('type')!r}")


def with_sorted_entities(state: dict[str, Any]) -> dict[str, Any]:
    next_state = dict(state)
    next_state["entities"] = sort_entities(state.get("entities", []))
    return next_state


def _apply_add_entity(state: dict[str, Any], action: dict[str, Any]) -> ActionResult:
    entity_id = action.get("entityId")
    if not isinstance(entity_id, str) or entity_id == "":
        raise ValidationFailedError("entityId is required")
    draft = validate_draft(action.get("entity"))
    if draft["initiative"] is None:
        raise ValidationFailedError("initiative is required")

    entity = build_entity(draft, entity_id=entity_id)
    next_state = dict(state)
    next_state["entities"] = sort_entities([*state.get("entities", []), entity])
    return ActionResult(
        state=next_state,
        engine_events=[{"kind": "entity_added", "entityId": entity_id, "action": action}],
    )


def _apply_update_entity(state: dict[str, Any], action: dict[str, Any]) -> ActionResult:
    entity_id = action.get("entityId")
    updates = action.get("updates", {})
    entities = list(state.get("entities", []))

    position = _find_entity(entities, entity_id)
    previous = entities[position]
    updated = merge_entity(previous, updates)
    entities[position] = updated

    next_state = dict(state)
    next_state["entities"] = sort_entities(entities)

    events: list[dict[str, Any]] = [{"kind": "entity_updated", "entityId": entity_id, "action": action}]
    if updated["isDead"] and not previous["isDead"]:
        events.append({"kind": "entity_died", "entityId": entity_id, "action": action})
    elif previous["isDead"] and not updated["isDead"]:
        events.append({"kind": "entity_revived", "entityId": entity_id, "action": action})
    return ActionResult(state=next_state, engine_events=events)


def _apply_delete_entity(state: dict[str, Any], action: dict[str, Any]) -> ActionResult:
    entity_id = action.get("entityId")
    entities = list(state.get("entities", []))
    position = _find_entity(entities, entity_id)
    del entities[position]

    next_state = dict(state)
    next_state["entities"] = entities
    active_index = int(state.get("activeIndex", 0))
    next_state["activeIndex"] = min(active_index, len(entities) - 1) if entities else 0
    return ActionResult(
        state=next_state,
        engine_events=[{"kind": "entity_removed", "entityId": entity_id, "action": action}],
    )


def _apply_next_turn(state: dict[str, Any], action: dict[str, Any]) -> ActionResult:
    entities = list(state.get("entities", []))
    if not any(not entity["isDead"] for entity in entities):
        return ActionResult(state=dict(state), engine_events=[])

    next_state = dict(state)
    turn_index = int(state.get("activeIndex", 0))
    current_actor = entities[turn_index]["id"] if 0 <= turn_index < len(entities) else None
    events: list[dict[str, Any]] = [{"kind": "timing", "timing": "turn_end", "actorId": current_actor, "action": action}]

    new_turn_index = (turn_index + 1) % len(entities)
    attempts = 0
    while entities[new_turn_index]["isDead"] and attempts < len(entities):
        new_turn_index = (new_turn_index + 1) % len(entities)
        attempts += 1

    if new_turn_index <= turn_index:
        next_state["round"] = int(state.get("round", 1)) + 1
        events.append({"kind": "timing", "timing": "round_start", "round": next_state["round"], "action": action})

    next_state["activeIndex"] = new_turn_index
    events.append(
        {"kind": "timing", "timing": "turn_start", "actorId": entities[new_turn_index]["id"], "action": action}
    )
    return ActionResult(state=next_state, engine_events=events)


def _apply_reset(state: dict[str, Any], action: dict[str, Any]) -> ActionResult:
    entities = []
    for entity in state.get("entities", []):
        restored = dict(entity)
        restored["currentHP"] = entity["maxHP"]
        restored["isDead"] = False
        restored["statuses"] = []
        entities.append(restored)

    next_state = dict(state)
    next_state["entities"] = sort_entities(entities)
    next_state["activeIndex"] = 0
    next_state["round"] = 1
    return ActionResult(state=next_state, engine_events=[{"kind": "combat_reset", "action": action}])


def import_state(raw: str | Mapping[str, Any], encounter_id: str | None = None) -> dict[str, Any]:
    """Build a complete encounter from an exported JSON document.

    The encounter is stored under ``encounter_id`` when given, otherwise under
    the document's own ``id``.
    """
    if isinstance(raw, (str, bytes)):
        try:
            document = json.loads(raw)
        except ValueError as exc:
            raise ValidationFailedError(f"Invalid JSON document: {exc}") from exc
    else:
        document = raw

    if not isinstance(document, Mapping):
        raise ValidationFailedError("Encounter document must be a JSON object")

    document_id = document.get("id")
    name = document.get("name")
    raw_entities = document.get("entities")
    if not isinstance(document_id, str) or document_id == "":
        raise ValidationFailedError("Encounter document requires an id")
    if not isinstance(name, str) or name == "":
        raise ValidationFailedError("Encounter document requires a name")
    if not isinstance(raw_entities, list):
        raise ValidationFailedError("Encounter document requires an entities list")

    entities = [coerce_imported_entity(raw_entity, position) for position, raw_entity in enumerate(raw_entities)]
    entity_ids = [entity["id"] for entity in entities]
    if len(set(entity_ids)) != len(entity_ids):
        raise ValidationFailedError("Entity ids must be unique")

    active_index = _optional_int(document, "activeIndex", default=0)
    round_number = _optional_int(document, "round", default=1)
    if round_number < 1:
        raise ValidationFailedError("round must be at least 1")
    if active_index < 0:
        raise ValidationFailedError("activeIndex must not be negative")

    created_at = document.get("createdAt")
    if not isinstance(created_at, str) or created_at == "":
        created_at = utc_now_iso()

    return {
        "id": encounter_id if encounter_id is not None else document_id,
        "name": name,
        "entities": sort_entities(entities),
        "activeIndex": min(active_index, len(entities) - 1) if entities else 0,
        "round": round_number,
        "createdAt": created_at,
    }


def _find_entity(entities: list[dict[str, Any]], entity_id: Any) -> int:
    for position, entity in enumerate(entities):
        if entity["id"] == entity_id:
            return position
    raise NotFoundError(f"Entity not found: {entity_id}")


def _optional_int(document: Mapping[str, Any], field: str, default: int) -> int:
    value = document.get(field)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationFailedError(f"{field} must be an integer")
    return value
