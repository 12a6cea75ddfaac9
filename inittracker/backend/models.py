"""Domain constants and value objects for encounter responses and persistence contracts."""

from __future__ import annotations

from dataclasses import dataclass


ENTITY_TYPES: tuple[str, ...] = ("player", "monster")
STATUSES: tuple[str, ...] = ("poisoned", "stunned", "bleed")

MIN_INITIATIVE = 0
MAX_INITIATIVE = 99


@dataclass(frozen=True)
class EncounterSummary:
    encounter_id: str
    name: str
    created_at: str | None
    entity_count: int

    def to_payload(self) -> dict[str, object]:
        return {
            "id": self.encounter_id,
            "name": self.name,
            "createdAt": self.created_at,
            "entityCount": self.entity_count,
        }


@dataclass(frozen=True)
class EncounterExport:
    filename: str
    document: str
