"""Encounter operations: load from the repository, reduce, persist."""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
import random
import re
from typing import Any
import uuid

from .engine import apply_action, import_state, with_sorted_entities
from .entities import roll_initiative, toggle_status, validate_draft
from .errors import NotFoundError, ValidationFailedError
from .models import EncounterExport, EncounterSummary
from .state import DEMO_ENCOUNTER_ID, build_demo_state, build_initial_state
from .store import EncounterRepository


logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


class EncounterService:
    """Runs each encounter operation as one read, one pure reduction and one write.

    Nothing is written when an operation fails, so the stored encounter is
    either fully replaced or left untouched.
    """

    def __init__(self, repository: EncounterRepository, rng: random.Random | None = None) -> None:
        self._repository = repository
        self._rng = rng

    def create_encounter(self, name: str) -> dict[str, Any]:
        if not isinstance(name, str) or name.strip() == "":
            raise ValidationFailedError("Encounter name must be a non-empty string")
        encounter_id = uuid.uuid4().hex[:8]
        state = build_initial_state(encounter_id=encounter_id, name=name)
        self._repository.put(encounter_id, state)
        logger.info("Created encounter %s (%s)", encounter_id, name)
        return state

    def get_encounter(self, encounter_id: str) -> dict[str, Any]:
        state = self._repository.get(encounter_id)
        if state is not None:
            return with_sorted_entities(state)
        if encounter_id == DEMO_ENCOUNTER_ID:
            state = build_demo_state()
            self._repository.put(encounter_id, state)
            logger.info("Materialized demo encounter")
            return state
        raise NotFoundError(f"Encounter not found: {encounter_id}")

    def list_encounters(self) -> list[EncounterSummary]:
        summaries = [
            EncounterSummary(
                encounter_id=state["id"],
                name=state.get("name", ""),
                created_at=state.get("createdAt"),
                entity_count=len(state.get("entities", [])),
            )
            for state in self._repository.list_all()
        ]
        return sorted(summaries, key=lambda summary: summary.created_at or "", reverse=True)

    def add_entity(self, encounter_id: str, draft: Mapping[str, Any]) -> dict[str, Any]:
        entity = validate_draft(draft)
        if entity["initiative"] is None:
            entity["initiative"] = roll_initiative(self._rng)
        return self._apply(
            encounter_id,
            {"type": "ADD_ENTITY", "entityId": str(uuid.uuid4()), "entity": entity},
        )

    def update_entity(self, encounter_id: str, entity_id: str, updates: Mapping[str, Any]) -> dict[str, Any]:
        return self._apply(
            encounter_id,
            {"type": "UPDATE_ENTITY", "entityId": entity_id, "updates": dict(updates)},
        )

    def toggle_entity_status(self, encounter_id: str, entity_id: str, status: str) -> dict[str, Any]:
        state = self.get_encounter(encounter_id)
        entity = next((item for item in state["entities"] if item["id"] == entity_id), None)
        if entity is None:
            raise NotFoundError(f"Entity not found: {entity_id}")
        statuses = toggle_status(list(entity.get("statuses", [])), status)
        return self._apply(
            encounter_id,
            {"type": "UPDATE_ENTITY", "entityId": entity_id, "updates": {"statuses": statuses}},
            state=state,
        )

    def delete_entity(self, encounter_id: str, entity_id: str) -> dict[str, Any]:
        return self._apply(encounter_id, {"type": "DELETE_ENTITY", "entityId": entity_id})

    def next_turn(self, encounter_id: str) -> dict[str, Any]:
        return self._apply(encounter_id, {"type": "NEXT_TURN"})

    def reset_combat(self, encounter_id: str) -> dict[str, Any]:
        return self._apply(encounter_id, {"type": "RESET"})

    def import_encounter(self, raw: str | Mapping[str, Any], encounter_id: str | None = None) -> dict[str, Any]:
        state = import_state(raw, encounter_id=encounter_id)
        self._repository.put(state["id"], state)
        logger.info("Imported encounter %s with %d entities", state["id"], len(state["entities"]))
        return state

    def export_encounter(self, encounter_id: str) -> EncounterExport:
        state = self.get_encounter(encounter_id)
        filename = f"{_WHITESPACE.sub('_', state['name'])}_{state['id']}.json"
        return EncounterExport(filename=filename, document=json.dumps(state, indent=2))

    def _apply(
        self,
        encounter_id: str,
        action: dict[str, Any],
        state: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        current = state if state is not None else self.get_encounter(encounter_id)
        result = apply_action(state=current, action=action)
        self._repository.put(encounter_id, result.state)
        logger.info("Applied %s to encounter %s", action["type"], encounter_id)
        for event in result.engine_events:
            logger.debug("Encounter %s event: %s", encounter_id, {k: v for k, v in event.items() if k != "action"})
        return result.state
