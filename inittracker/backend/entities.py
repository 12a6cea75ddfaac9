"""Entity construction, validation and merge rules."""

from __future__ import annotations

import random
from collections.abc import Mapping
from typing import Any

from .errors import ValidationFailedError
from .models import ENTITY_TYPES, MAX_INITIATIVE, MIN_INITIATIVE, STATUSES


def roll_initiative(rng: random.Random | None = None) -> int:
    """Roll a d20 for a combatant that was added without an initiative score."""
    source = rng if rng is not None else random
    return source.randint(1, 20)


def clamp_hp(current_hp: int, max_hp: int) -> int:
    return max(0, min(max_hp, current_hp))


def with_derived_fields(entity: dict[str, Any]) -> dict[str, Any]:
    """Clamp HP into ``[0, maxHP]`` and recompute ``isDead`` from it."""
    next_entity = dict(entity)
    next_entity["currentHP"] = clamp_hp(int(entity["currentHP"]), int(entity["maxHP"]))
    next_entity["isDead"] = next_entity["currentHP"] <= 0
    return next_entity


def validate_draft(draft: Mapping[str, Any]) -> dict[str, Any]:
    """Check an add-entity payload and return its normalized fields.

    ``initiative`` and ``currentHP`` may be omitted and come back as ``None``.
    """
    if not isinstance(draft, Mapping):
        raise ValidationFailedError("Entity payload must be an object")

    name = _require_name(draft.get("name"))
    entity_type = _require_type(draft.get("type"))
    max_hp = _require_int(draft.get("maxHP"), "maxHP")
    if max_hp < 1:
        raise ValidationFailedError("maxHP must be at least 1")

    initiative = draft.get("initiative")
    if initiative is not None:
        initiative = _require_initiative(initiative, "initiative")

    current_hp = draft.get("currentHP")
    if current_hp is not None:
        current_hp = _require_int(current_hp, "currentHP")

    return {
        "name": name,
        "type": entity_type,
        "maxHP": max_hp,
        "initiative": initiative,
        "currentHP": current_hp,
    }


def build_entity(draft: Mapping[str, Any], entity_id: str) -> dict[str, Any]:
    """Create a fresh entity from a validated draft with a resolved initiative."""
    current_hp = draft.get("currentHP")
    return with_derived_fields(
        {
            "id": entity_id,
            "name": draft["name"],
            "type": draft["type"],
            "maxHP": draft["maxHP"],
            "currentHP": draft["maxHP"] if current_hp is None else current_hp,
            "initiative": draft["initiative"],
            "statuses": [],
            "isDead": False,
        }
    )


def merge_entity(entity: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    """Merge a partial update onto ``entity``.

    ``id`` and ``isDead`` are never taken from the update; HP is clamped
    against the post-merge ``maxHP``.
    """
    if not isinstance(updates, Mapping):
        raise ValidationFailedError("Entity update must be an object")

    merged = dict(entity)
    if "name" in updates:
        merged["name"] = _require_name(updates["name"])
    if "type" in updates:
        merged["type"] = _require_type(updates["type"])
    if "maxHP" in updates:
        max_hp = _require_int(updates["maxHP"], "maxHP")
        if max_hp < 1:
            raise ValidationFailedError("maxHP must be at least 1")
        merged["maxHP"] = max_hp
    if "initiative" in updates:
        merged["initiative"] = _require_initiative(updates["initiative"], "initiative")
    if "currentHP" in updates:
        merged["currentHP"] = _require_int(updates["currentHP"], "currentHP")
    if "statuses" in updates:
        merged["statuses"] = normalize_statuses(updates["statuses"])
    return with_derived_fields(merged)


def toggle_status(statuses: list[str], status: str) -> list[str]:
    if status not in STATUSES:
        raise ValidationFailedError(f"Unknown status: {status}")
    if status in statuses:
        return [item for item in statuses if item != status]
    return [*statuses, status]


def normalize_statuses(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ValidationFailedError("statuses must be a list")
    statuses: list[str] = []
    for status in value:
        if status not in STATUSES:
            raise ValidationFailedError(f"Unknown status: {status}")
        if status not in statuses:
            statuses.append(status)
    return statuses


def coerce_imported_entity(raw: Any, position: int) -> dict[str, Any]:
    """Validate one entity of an imported document.

    Any ``isDead`` flag in the input is discarded and recomputed.
    """
    if not isinstance(raw, Mapping):
        raise ValidationFailedError(f"entities[{position}] must be an object")

    entity_id = raw.get("id")
    if not isinstance(entity_id, str) or entity_id == "":
        raise ValidationFailedError(f"entities[{position}].id is required")

    max_hp = _require_int(raw.get("maxHP"), f"entities[{position}].maxHP")
    if max_hp < 1:
        raise ValidationFailedError(f"entities[{position}].maxHP must be at least 1")

    statuses = raw.get("statuses")
    return with_derived_fields(
        {
            "id": entity_id,
            "name": _require_name(raw.get("name")),
            "type": _require_type(raw.get("type")),
            "maxHP": max_hp,
            "currentHP": _require_int(raw.get("currentHP"), f"entities[{position}].currentHP"),
            "initiative": _require_initiative(raw.get("initiative"), f"entities[{position}].initiative"),
            "statuses": [] if statuses is None else normalize_statuses(statuses),
            "isDead": False,
        }
    )


def _require_name(value: Any) -> str:
    if not isinstance(value, str) or value.strip() == "":
        raise ValidationFailedError("name must be a non-empty string")
    return value


def _require_type(value: Any) -> str:
    if value not in ENTITY_TYPES:
        raise ValidationFailedError(f"type must be one of {', '.join(ENTITY_TYPES)}")
    return value


def _require_int(value: Any, field: str) -> int:
    # bool is an int subclass; JSON true/false is never a valid number here
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationFailedError(f"{field} must be an integer")
    return value


def _require_initiative(value: Any, field: str) -> int:
    initiative = _require_int(value, field)
    if not MIN_INITIATIVE <= initiative <= MAX_INITIATIVE:
        raise ValidationFailedError(f"{field} must be between {MIN_INITIATIVE} and {MAX_INITIATIVE}")
    return initiative
