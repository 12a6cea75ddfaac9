"""State builders for encounter snapshots."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any

from .ordering import sort_entities


DEMO_ENCOUNTER_ID = "demo"

DEMO_TEMPLATE: dict[str, Any] = {
    "id": DEMO_ENCOUNTER_ID,
    "name": "Goblin Ambush",
    "round": 1,
    "activeIndex": 0,
    "entities": [
        {
            "id": "demo-valerius",
            "name": "Valerius",
            "type": "player",
            "maxHP": 25,
            "currentHP": 18,
            "initiative": 18,
            "statuses": [],
            "isDead": False,
        },
        {
            "id": "demo-goblin-archer",
            "name": "Goblin Archer",
            "type": "monster",
            "maxHP": 7,
            "currentHP": 7,
            "initiative": 16,
            "statuses": [],
            "isDead": False,
        },
        {
            "id": "demo-lyra",
            "name": "Lyra",
            "type": "player",
            "maxHP": 18,
            "currentHP": 18,
            "initiative": 14,
            "statuses": [],
            "isDead": False,
        },
        {
            "id": "demo-goblin-boss",
            "name": "Goblin Boss",
            "type": "monster",
            "maxHP": 12,
            "currentHP": 5,
            "initiative": 9,
            "statuses": ["bleed"],
            "isDead": False,
        },
    ],
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_initial_state(encounter_id: str, name: str) -> dict[str, Any]:
    """Return an empty encounter at round 1 with nobody on turn."""
    return {
        "id": encounter_id,
        "name": name,
        "entities": [],
        "activeIndex": 0,
        "round": 1,
        "createdAt": utc_now_iso(),
    }


def build_demo_state() -> dict[str, Any]:
    """Return a private copy of the demo encounter, stamped with the current time."""
    state = copy.deepcopy(DEMO_TEMPLATE)
    state["entities"] = sort_entities(state["entities"])
    state["createdAt"] = utc_now_iso()
    return state
