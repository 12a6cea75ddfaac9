import random

import pytest

from inittracker.backend.entities import (
    build_entity,
    coerce_imported_entity,
    merge_entity,
    roll_initiative,
    toggle_status,
    validate_draft,
)
from inittracker.backend.errors import ValidationFailedError


def _entity(**overrides) -> dict:
    entity = {
        "id": "e1",
        "name": "Goblin",
        "type": "monster",
        "maxHP": 10,
        "currentHP": 10,
        "initiative": 12,
        "statuses": [],
        "isDead": False,
    }
    entity.update(overrides)
    return entity


def test_validate_draft_returns_normalized_fields() -> None:
    draft = validate_draft({"name": "Lyra", "type": "player", "maxHP": 18, "initiative": 14})

    assert draft == {"name": "Lyra", "type": "player", "maxHP": 18, "initiative": 14, "currentHP": None}


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "", "type": "player", "maxHP": 5, "initiative": 1},
        {"name": "   ", "type": "player", "maxHP": 5, "initiative": 1},
        {"name": "Ogre", "type": "dragon", "maxHP": 5, "initiative": 1},
        {"name": "Ogre", "type": "monster", "maxHP": 0, "initiative": 1},
        {"name": "Ogre", "type": "monster", "maxHP": "12", "initiative": 1},
        {"name": "Ogre", "type": "monster", "maxHP": 12, "initiative": -1},
        {"name": "Ogre", "type": "monster", "maxHP": 12, "initiative": 100},
        {"name": "Ogre", "type": "monster", "maxHP": True, "initiative": 1},
        {"name": "Ogre", "type": "monster", "maxHP": 12, "initiative": 1, "currentHP": 2.5},
    ],
)
def test_validate_draft_rejects_malformed_payloads(payload: dict) -> None:
    with pytest.raises(ValidationFailedError):
        validate_draft(payload)


def test_build_entity_defaults_current_hp_to_max_hp() -> None:
    entity = build_entity({"name": "Lyra", "type": "player", "maxHP": 18, "initiative": 14}, entity_id="x")

    assert entity["id"] == "x"
    assert entity["currentHP"] == 18
    assert entity["statuses"] == []
    assert entity["isDead"] is False


def test_build_entity_clamps_supplied_current_hp_and_derives_death() -> None:
    dead = build_entity(
        {"name": "Zombie", "type": "monster", "maxHP": 8, "initiative": 3, "currentHP": -4},
        entity_id="z",
    )
    overhealed = build_entity(
        {"name": "Paladin", "type": "player", "maxHP": 30, "initiative": 9, "currentHP": 45},
        entity_id="p",
    )

    assert dead["currentHP"] == 0
    assert dead["isDead"] is True
    assert overhealed["currentHP"] == 30


def test_merge_entity_clamps_current_hp_into_bounds() -> None:
    low = merge_entity(_entity(), {"currentHP": -5})
    high = merge_entity(_entity(), {"currentHP": 999})

    assert low["currentHP"] == 0
    assert low["isDead"] is True
    assert high["currentHP"] == 10
    assert high["isDead"] is False


def test_merge_entity_clamps_against_post_merge_max_hp() -> None:
    merged = merge_entity(_entity(), {"maxHP": 4, "currentHP": 9})

    assert merged["maxHP"] == 4
    assert merged["currentHP"] == 4


def test_merge_entity_shrinking_max_hp_clamps_existing_hp() -> None:
    merged = merge_entity(_entity(currentHP=10), {"maxHP": 6})

    assert merged["currentHP"] == 6


def test_merge_entity_ignores_id_and_is_dead_in_updates() -> None:
    merged = merge_entity(_entity(), {"id": "other", "isDead": True, "name": "Hobgoblin"})

    assert merged["id"] == "e1"
    assert merged["isDead"] is False
    assert merged["name"] == "Hobgoblin"


def test_merge_entity_deduplicates_statuses() -> None:
    merged = merge_entity(_entity(), {"statuses": ["bleed", "poisoned", "bleed"]})

    assert merged["statuses"] == ["bleed", "poisoned"]


def test_merge_entity_rejects_unknown_status() -> None:
    with pytest.raises(ValidationFailedError):
        merge_entity(_entity(), {"statuses": ["on_fire"]})


def test_toggle_status_adds_then_removes() -> None:
    added = toggle_status([], "stunned")
    removed = toggle_status(added, "stunned")

    assert added == ["stunned"]
    assert removed == []


def test_coerce_imported_entity_recomputes_is_dead_and_defaults_statuses() -> None:
    raw = _entity(currentHP=0, isDead=False)
    del raw["statuses"]

    entity = coerce_imported_entity(raw, position=0)

    assert entity["isDead"] is True
    assert entity["statuses"] == []


def test_coerce_imported_entity_ignores_stale_dead_flag() -> None:
    entity = coerce_imported_entity(_entity(currentHP=7, isDead=True), position=0)

    assert entity["isDead"] is False


def test_coerce_imported_entity_requires_core_fields() -> None:
    raw = _entity()
    del raw["initiative"]

    with pytest.raises(ValidationFailedError, match="initiative"):
        coerce_imported_entity(raw, position=2)


@pytest.mark.parametrize("initiative", [-3, 100])
def test_merge_entity_rejects_out_of_range_initiative(initiative: int) -> None:
    with pytest.raises(ValidationFailedError, match="between 0 and 99"):
        merge_entity(_entity(), {"initiative": initiative})


def test_coerce_imported_entity_rejects_out_of_range_initiative() -> None:
    with pytest.raises(ValidationFailedError, match=r"entities\[1\]\.initiative"):
        coerce_imported_entity(_entity(initiative=-50), position=1)


def test_roll_initiative_stays_on_a_d20() -> None:
    rng = random.Random(7)

    rolls = {roll_initiative(rng) for _ in range(200)}

    assert rolls <= set(range(1, 21))
    assert len(rolls) > 1
